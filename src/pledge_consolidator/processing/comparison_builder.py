"""Builds the two-year comparison rows from a combined file set."""

from pledge_consolidator.models.household import AccountAggregate, ComparisonRow
from pledge_consolidator.models.results import CombinedResult, RowError
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)

BIRTHDAY_COLUMN = "Primary's Birthday"


def _account_error(aggregate: AccountAggregate, message: str, column: str | None = None) -> RowError:
    return RowError(
        row=aggregate.first_row_index,
        column=column,
        message=message,
        file_name=aggregate.source_file,
    )


def build_comparison_rows(
    combined: CombinedResult,
    birthday_column: str = BIRTHDAY_COLUMN,
) -> tuple[list[ComparisonRow], list[RowError]]:
    """Emit one comparison row per valid account.

    The current year is the newest year across the file set and the prior
    year the one before it; an account with no charges in a year gets zero.
    Accounts without a usable age, or with a negative total in either year,
    are left out and reported as one error each.

    Args:
        combined: Output of combine_results.
        birthday_column: Column name reported on missing-age errors.

    Returns:
        Tuple of (rows in combined order, account-level errors).
    """
    if not combined.ok or combined.prior_year is None:
        return [], []

    current_year = combined.current_year
    prior_year = combined.prior_year
    rows: list[ComparisonRow] = []
    errors: list[RowError] = []

    for account_id, aggregate in combined.combined.items():
        if aggregate.age is None:
            errors.append(
                _account_error(
                    aggregate,
                    f"Invalid or missing birthdate for account {account_id}",
                    column=birthday_column,
                )
            )
            continue

        pledge_current = aggregate.amount_for(current_year)
        pledge_prior = aggregate.amount_for(prior_year)
        if pledge_current < 0 or pledge_prior < 0:
            errors.append(
                _account_error(
                    aggregate,
                    f"Negative pledge total for account {account_id} "
                    f"(FY{current_year}: {pledge_current}, FY{prior_year}: {pledge_prior})",
                )
            )
            continue

        rows.append(
            ComparisonRow(
                account_id=account_id,
                age=aggregate.age,
                pledge_current=pledge_current,
                pledge_prior=pledge_prior,
                zip_code=aggregate.zip_code,
            )
        )

    logger.info(f"Built {len(rows)} comparison rows, {len(errors)} accounts excluded")
    return rows, errors
