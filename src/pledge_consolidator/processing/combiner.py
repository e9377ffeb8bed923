"""Multi-file combiner: merges per-file aggregates into one file set."""

from dataclasses import replace
from decimal import Decimal
from typing import Iterable

from pledge_consolidator.models.household import AccountAggregate, MergePolicy
from pledge_consolidator.models.results import CombinedResult, FileParseResult
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)

# Distinct fiscal years needed for a year-over-year comparison
MIN_FISCAL_YEARS = 2


def _merge_amounts(
    existing: AccountAggregate, incoming: AccountAggregate
) -> dict[int, Decimal]:
    merged = dict(existing.year_amounts)
    for year, amount in incoming.year_amounts.items():
        merged[year] = merged.get(year, Decimal("0")) + amount
    return merged


def _merge_account(
    existing: AccountAggregate, incoming: AccountAggregate, policy: MergePolicy
) -> AccountAggregate:
    """Merge two aggregates of the same account into a new one."""
    age = existing.age
    zip_code = existing.zip_code
    if policy is MergePolicy.LAST_WINS:
        if incoming.age is not None:
            age = incoming.age
        if incoming.zip_code is not None:
            zip_code = incoming.zip_code

    return replace(
        existing,
        year_amounts=_merge_amounts(existing, incoming),
        age=age,
        zip_code=zip_code,
    )


def combine_results(
    results: Iterable[FileParseResult],
    merge_policy: MergePolicy = MergePolicy.FIRST_WINS,
) -> CombinedResult:
    """Merge per-file parse results in input order.

    Year amounts for the same account and year are summed, so combining the
    same file twice doubles every total. Age and zip follow ``merge_policy``.
    Inputs are never modified.

    Args:
        results: Per-file results, in the order the files were supplied.
        merge_policy: Which file supplies age/zip for shared accounts.

    Returns:
        CombinedResult; ``error`` is set and ``combined`` is empty when fewer
        than two distinct fiscal years were found across all files.
    """
    combined: dict[str, AccountAggregate] = {}
    years: set[int] = set()
    errors = []
    has_negative = False
    file_count = 0

    for result in results:
        file_count += 1
        errors.extend(result.errors)
        years.update(result.years_found)
        has_negative = has_negative or result.has_negative_values

        for account_id, aggregate in result.aggregates.items():
            existing = combined.get(account_id)
            if existing is None:
                combined[account_id] = aggregate
            else:
                combined[account_id] = _merge_account(existing, aggregate, merge_policy)

    all_years = sorted(years, reverse=True)
    logger.debug(f"Combined {file_count} files: {len(combined)} accounts, years {all_years}")

    if len(all_years) < MIN_FISCAL_YEARS:
        message = (
            f"Only {len(all_years)} fiscal year(s) found; "
            f"at least {MIN_FISCAL_YEARS} are required for year-over-year comparison"
        )
        logger.warning(message)
        return CombinedResult(
            combined={},
            all_years=all_years,
            errors=errors,
            error=message,
            has_negative_values=has_negative,
        )

    logger.info(
        f"Combined {file_count} files into {len(combined)} accounts "
        f"(current FY{all_years[0]}, prior FY{all_years[1]})"
    )
    return CombinedResult(
        combined=combined,
        all_years=all_years,
        errors=errors,
        has_negative_values=has_negative,
    )
