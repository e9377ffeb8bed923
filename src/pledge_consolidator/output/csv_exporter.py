"""CSV exporter for comparison rows and import errors."""

import csv
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pledge_consolidator.config import OutputConfig
from pledge_consolidator.models.household import ComparisonRow
from pledge_consolidator.models.results import RowError
from pledge_consolidator.utils.decimal_utils import format_currency
from pledge_consolidator.utils.logging_config import get_logger
from pledge_consolidator.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)

ROW_COLUMNS = ["account_id", "age", "pledge_current", "pledge_prior", "zip_code"]
ERROR_COLUMNS = ["file", "row", "column", "message"]


class CSVExporter:
    """Writes import output as CSV files for spreadsheet or dashboard import.

    - comparison.csv: one row per household
    - errors.csv: one row per rejected row or account
    """

    def __init__(self, output_config: Optional[OutputConfig] = None):
        """Initialize CSV exporter.

        Args:
            output_config: Output settings (defaults when None).
        """
        self.output_config = output_config or OutputConfig()

    @property
    def row_columns(self) -> list[str]:
        if self.output_config.include_account_id:
            return list(ROW_COLUMNS)
        return [c for c in ROW_COLUMNS if c != "account_id"]

    def _format_amount(self, amount: Decimal) -> str:
        return format_currency(amount, self.output_config.decimal_places)

    def export_rows(self, output_path: Path, rows: list[ComparisonRow]) -> Path:
        """Export comparison rows.

        Args:
            output_path: Destination CSV file.
            rows: Comparison rows in output order.

        Returns:
            Path to created file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        columns = self.row_columns

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(columns)

            for row in rows:
                values = {
                    "account_id": sanitize_for_csv(row.account_id),
                    "age": str(row.age),
                    "pledge_current": self._format_amount(row.pledge_current),
                    "pledge_prior": self._format_amount(row.pledge_prior),
                    "zip_code": sanitize_for_csv(row.zip_code),
                }
                writer.writerow([values[c] for c in columns])

        logger.info(f"Exported {len(rows)} comparison rows to {output_path}")
        return output_path

    def export_errors(self, output_path: Path, errors: list[RowError]) -> Path:
        """Export row and account errors.

        Args:
            output_path: Destination CSV file.
            errors: Errors in report order.

        Returns:
            Path to created file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(ERROR_COLUMNS)

            for error in errors:
                writer.writerow([
                    sanitize_for_csv(error.file_name),
                    error.row if error.row else "",
                    sanitize_for_csv(error.column),
                    sanitize_for_csv(error.message),
                ])

        logger.info(f"Exported {len(errors)} errors to {output_path}")
        return output_path
