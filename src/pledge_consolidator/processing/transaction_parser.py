"""Row parser for the transactions export.

Streams data rows, classifies each one and folds accepted rows into a
HouseholdAggregator. A bad row produces one RowError and parsing moves on;
only an unreadable table stops the file.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pledge_consolidator.config import REQUIRED_ROLES, ImportConfig
from pledge_consolidator.models.results import FileParseResult, RowError
from pledge_consolidator.parsers.base import ParseError, Table
from pledge_consolidator.parsers.format_detection import map_columns, matches_category
from pledge_consolidator.processing.fiscal_year import extract_fiscal_year
from pledge_consolidator.processing.household_aggregator import HouseholdAggregator
from pledge_consolidator.utils.decimal_utils import to_amount
from pledge_consolidator.utils.logging_config import LogContext, format_context, get_logger

logger = get_logger(__name__)


class RowOutcome(Enum):
    """What happened to a data row."""

    SKIPPED = "skipped"  # Outside the configured category, no error
    REJECTED = "rejected"  # In category but unusable, one error
    ACCEPTED = "accepted"  # Folded into the aggregate


def _cell(row: list[object], idx: Optional[int]) -> object:
    if idx is None or idx < 0 or idx >= len(row):
        return None
    return row[idx]


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Numeric account IDs read from Excel come back as floats
        return str(int(value))
    return str(value).strip()


def _is_blank_row(row: list[object]) -> bool:
    return all(cell is None or str(cell).strip() == "" for cell in row)


def _row_context(headers: list[str], row: list[object]) -> dict[str, object]:
    """Data row keyed by header, for debug logging."""
    return {h: _cell(row, i) for i, h in enumerate(headers) if h}


class TransactionParser:
    """Parses transaction rows for one file at a time.

    Per-row processing order:
    1. Type label outside the category keyword -> SKIPPED (no error)
    2. Empty account ID -> REJECTED ("missing account id")
    3. No fiscal year tag in the type label -> REJECTED ("missing fiscal year")
    4. Unparseable charge -> REJECTED ("invalid charge value")
    5. Otherwise ACCEPTED and folded into the file's aggregator
    """

    def __init__(self, config: Optional[ImportConfig] = None, reference_date: Optional[date] = None):
        """Initialize row parser.

        Args:
            config: Import configuration (default settings when None).
            reference_date: Date ages are measured at (default: today).
        """
        self.config = config or ImportConfig()
        self.reference_date = reference_date
        # Configured headers may differ from the standard names
        self._masked_columns = (self.config.column_for("birthday"), self.config.column_for("zip"))

    def parse_table(self, table: Table) -> FileParseResult:
        """Run the row-parsing pass over a table.

        Args:
            table: Header and data rows of one file.

        Returns:
            FileParseResult with frozen aggregates, errors and years found.

        Raises:
            ParseError: If a required column is absent from the header.
        """
        mapping = map_columns(table.headers, self.config.columns)
        missing = [
            self.config.column_for(role) for role in REQUIRED_ROLES if role not in mapping
        ]
        if missing:
            names = ", ".join(f'"{name}"' for name in missing)
            raise ParseError(f"Required column(s) {names} not found in {table.file_name}")

        aggregator = HouseholdAggregator(self.reference_date)
        errors: list[RowError] = []
        rows_read = 0
        rows_skipped = 0
        rows_accepted = 0
        rows_rejected = 0
        has_negative = False

        with LogContext(logger, "row parsing", file=table.file_name, rows=len(table.rows)):
            for index, row in enumerate(table.rows):
                if not row or _is_blank_row(row):
                    continue
                rows_read += 1
                row_number = table.row_number(index)

                outcome, error, amount = self._process_row(row, row_number, mapping, aggregator)
                if outcome is RowOutcome.SKIPPED:
                    rows_skipped += 1
                elif outcome is RowOutcome.REJECTED and error is not None:
                    rows_rejected += 1
                    error = replace(error, file_name=table.file_name)
                    errors.append(error)
                    logger.debug(
                        f"Rejected {error} "
                        f"({format_context(_row_context(table.headers, row), self._masked_columns)})"
                    )
                else:
                    rows_accepted += 1
                    if amount is not None and amount < 0:
                        has_negative = True

        if not aggregator.years:
            # File-level error (row 0), not counted as a rejected row
            errors.append(
                RowError(
                    row=0,
                    message=f"No valid {self.config.category_keyword} transactions found in the file",
                    file_name=table.file_name,
                )
            )
            logger.warning(f"No valid {self.config.category_keyword} transactions found in {table.file_name}")

        logger.info(
            f"Parsed {table.file_name}: {rows_accepted} accepted, {rows_rejected} rejected, "
            f"{rows_skipped} outside '{self.config.category_keyword}', "
            f"{len(aggregator)} accounts, years {sorted(aggregator.years, reverse=True)}"
        )
        if rows_rejected:
            logger.warning(f"{rows_rejected} rows could not be imported from {table.file_name} - use -vv for details")

        return FileParseResult(
            file_name=table.file_name,
            aggregates=aggregator.build(table.file_name),
            errors=tuple(errors),
            years_found=aggregator.years,
            rows_read=rows_read,
            rows_accepted=rows_accepted,
            rows_skipped=rows_skipped,
            has_negative_values=has_negative,
        )

    def _process_row(
        self,
        row: list[object],
        row_number: int,
        mapping: dict[str, int],
        aggregator: HouseholdAggregator,
    ) -> tuple[RowOutcome, Optional[RowError], Optional[Decimal]]:
        """Classify one row and fold it if accepted."""
        type_label = _text(_cell(row, mapping.get("type")))
        if not matches_category(type_label, self.config.category_keyword):
            return RowOutcome.SKIPPED, None, None

        keyword = self.config.category_keyword
        account_id = _text(_cell(row, mapping.get("account_id")))
        if not account_id:
            return RowOutcome.REJECTED, RowError(
                row=row_number,
                column=self.config.column_for("account_id"),
                message=f"Missing Account ID for {keyword} transaction",
            ), None

        fiscal_year = extract_fiscal_year(type_label)
        if fiscal_year is None:
            return RowOutcome.REJECTED, RowError(
                row=row_number,
                column=self.config.column_for("type"),
                message=(
                    f"{keyword} transaction missing fiscal year "
                    f'(expected format like "{keyword} 25"): "{type_label}"'
                ),
            ), None

        charge_cell = _cell(row, mapping.get("charge"))
        amount = to_amount(charge_cell)
        if amount is None:
            shown = "" if charge_cell is None else charge_cell
            return RowOutcome.REJECTED, RowError(
                row=row_number,
                column=self.config.column_for("charge"),
                message=f'Invalid charge value: "{shown}"',
            ), None

        aggregator.add(
            account_id=account_id,
            fiscal_year=fiscal_year,
            amount=amount,
            row_number=row_number,
            birthdate=_cell(row, mapping.get("birthday")),
            zip_code=_cell(row, mapping.get("zip")),
        )
        return RowOutcome.ACCEPTED, None, amount
