"""Tests for the CSV exporter."""

import csv
from decimal import Decimal
from pathlib import Path

from pledge_consolidator.config import OutputConfig
from pledge_consolidator.models.household import ComparisonRow
from pledge_consolidator.models.results import RowError
from pledge_consolidator.output import CSVExporter


def read_csv(path: Path) -> list[list[str]]:
    """Helper to read a written CSV file."""
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def create_row(account_id: str = "A1", zip_code: str | None = "07030") -> ComparisonRow:
    """Helper to create a ComparisonRow."""
    return ComparisonRow(
        account_id=account_id,
        age=45,
        pledge_current=Decimal("800"),
        pledge_prior=Decimal("400.5"),
        zip_code=zip_code,
    )


class TestExportRows:
    """Tests for CSVExporter.export_rows."""

    def test_columns_and_values(self, tmp_path: Path) -> None:
        """Test the header and formatted values."""
        path = CSVExporter().export_rows(tmp_path / "out" / "comparison.csv", [create_row()])

        assert read_csv(path) == [
            ["account_id", "age", "pledge_current", "pledge_prior", "zip_code"],
            ["A1", "45", "800.00", "400.50", "07030"],
        ]

    def test_missing_zip_is_blank(self, tmp_path: Path) -> None:
        """Test a missing zip is written as an empty cell."""
        path = CSVExporter().export_rows(tmp_path / "c.csv", [create_row(zip_code=None)])
        assert read_csv(path)[1][-1] == ""

    def test_formula_account_id_sanitized(self, tmp_path: Path) -> None:
        """Test account IDs that look like formulas are neutralized."""
        path = CSVExporter().export_rows(tmp_path / "c.csv", [create_row(account_id="=SUM(A1)")])
        assert read_csv(path)[1][0] == "'=SUM(A1)"

    def test_without_account_id(self, tmp_path: Path) -> None:
        """Test the account ID column can be left out."""
        exporter = CSVExporter(OutputConfig(include_account_id=False))
        path = exporter.export_rows(tmp_path / "c.csv", [create_row()])
        rows = read_csv(path)
        assert rows[0] == ["age", "pledge_current", "pledge_prior", "zip_code"]
        assert rows[1] == ["45", "800.00", "400.50", "07030"]

    def test_decimal_places(self, tmp_path: Path) -> None:
        """Test amounts follow the configured precision."""
        exporter = CSVExporter(OutputConfig(decimal_places=0))
        path = exporter.export_rows(tmp_path / "c.csv", [create_row()])
        assert read_csv(path)[1][2:4] == ["800", "401"]

    def test_empty(self, tmp_path: Path) -> None:
        """Test an empty row list writes only the header."""
        path = CSVExporter().export_rows(tmp_path / "c.csv", [])
        assert len(read_csv(path)) == 1


class TestExportErrors:
    """Tests for CSVExporter.export_errors."""

    def test_errors(self, tmp_path: Path) -> None:
        """Test row and account errors are written in order."""
        errors = [
            RowError(row=3, message='Invalid charge value: "abc"', column="Charge", file_name="fy25.csv"),
            RowError(row=0, message="Negative pledge total for account A1"),
        ]

        path = CSVExporter().export_errors(tmp_path / "errors.csv", errors)

        assert read_csv(path) == [
            ["file", "row", "column", "message"],
            ["fy25.csv", "3", "Charge", 'Invalid charge value: "abc"'],
            ["", "", "", "Negative pledge total for account A1"],
        ]

    def test_message_sanitized(self, tmp_path: Path) -> None:
        """Test messages starting with formula characters are neutralized."""
        errors = [RowError(row=2, message="-cmd|' /C calc'!A0")]
        path = CSVExporter().export_errors(tmp_path / "errors.csv", errors)
        assert read_csv(path)[1][3].startswith("'-")
