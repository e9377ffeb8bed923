"""Tests for the CSV and Excel readers and file detection."""

import io
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from openpyxl import Workbook

from pledge_consolidator.parsers import (
    CSVParser,
    ExcelParser,
    FileDetector,
    ParseError,
    detect_delimiter,
)

HEADER = "Type,Charge,Account ID,Primary's Birthday,Zip"


def create_workbook_bytes(rows: list[list[object]], sheet_title: str = "Transactions") -> bytes:
    """Helper to build an .xlsx file in memory."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class TestDetectDelimiter:
    """Tests for detect_delimiter."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("a,b,c\n1,2,3", ","),
            ("a\tb\tc\n1\t2\t3", "\t"),
            ("a;b;c\n1;2;3", ";"),
            ("a|b|c\n1|2|3", "|"),
            ("a,b;c\n", ","),
            ("single\n1", ","),
        ],
    )
    def test_first_candidate_in_first_line(self, text: str, expected: str) -> None:
        """Test priority order and the comma default."""
        assert detect_delimiter(text) == expected

    def test_only_first_line_sampled(self) -> None:
        """Test delimiters in later lines are ignored."""
        assert detect_delimiter("a;b\n1,2") == ";"

    def test_leading_blank_lines_skipped(self) -> None:
        """Test the sample is the first non-blank line."""
        assert detect_delimiter("\n  \r\na\tb\n1\t2") == "\t"


class TestCSVParser:
    """Tests for CSVParser."""

    def test_reads_headers_and_rows(self) -> None:
        """Test a basic export."""
        data = f"{HEADER}\nHineini 25,$500.00,ACC001,1980-01-15,07030\n".encode()
        table = CSVParser().read_bytes(data, "fy25.csv")

        assert table.file_name == "fy25.csv"
        assert table.headers == ["Type", "Charge", "Account ID", "Primary's Birthday", "Zip"]
        assert table.rows == [["Hineini 25", "$500.00", "ACC001", "1980-01-15", "07030"]]
        assert table.row_number(0) == 2

    def test_utf8_bom_stripped(self) -> None:
        """Test that a byte order mark does not leak into the first header."""
        data = b"\xef\xbb\xbf" + f"{HEADER}\n".encode()
        table = CSVParser().read_bytes(data, "bom.csv")
        assert table.headers[0] == "Type"

    def test_semicolon_export(self) -> None:
        """Test semicolon-delimited files."""
        data = "Type;Charge\nHineini 25;1,000.00\n".encode()
        table = CSVParser().read_bytes(data, "semi.csv")
        assert table.rows == [["Hineini 25", "1,000.00"]]

    def test_quoted_commas(self) -> None:
        """Test quoted amounts containing thousands separators."""
        data = f'{HEADER}\nHineini 25,"$1,000.00",ACC001,1980-01-15,07030\n'.encode()
        table = CSVParser().read_bytes(data, "quoted.csv")
        assert table.rows[0][1] == "$1,000.00"

    def test_leading_blank_lines_shift_row_numbers(self) -> None:
        """Test that row numbers still match the file after blank leading lines."""
        data = f"\n\n{HEADER}\nHineini 25,1,A,1980-01-15,1\n".encode()
        table = CSVParser().read_bytes(data, "blank.csv")
        assert table.headers[0] == "Type"
        assert table.header_row == 3
        assert table.row_number(0) == 4

    def test_tab_export_with_leading_blank_line(self) -> None:
        """Test a TSV whose first line is blank still splits its header."""
        data = "\nType\tCharge\tAccount ID\nHineini 25\t100\tA1\n".encode()
        table = CSVParser().read_bytes(data, "export.tsv")
        assert table.headers == ["Type", "Charge", "Account ID"]
        assert table.rows == [["Hineini 25", "100", "A1"]]
        assert table.header_row == 2

    def test_blank_rows_kept_for_numbering(self) -> None:
        """Test that interior blank lines keep their slot."""
        data = f"{HEADER}\nHineini 25,1,A,,\n\nHineini 25,2,B,,\n".encode()
        table = CSVParser().read_bytes(data, "gaps.csv")
        assert len(table.rows) == 3
        assert table.row_number(2) == 4

    @pytest.mark.parametrize("data", [b"", b"   \n\n"])
    def test_empty_file(self, data: bytes) -> None:
        """Test that empty files raise ParseError."""
        with pytest.raises(ParseError, match="empty"):
            CSVParser().read_bytes(data, "empty.csv")

    def test_row_limit(self) -> None:
        """Test that files over the row limit raise ParseError."""
        data = f"{HEADER}\na\nb\n".encode()
        with patch("pledge_consolidator.parsers.base.MAX_ROWS", 1):
            with pytest.raises(ParseError, match="maximum row limit"):
                CSVParser().read_bytes(data, "big.csv")

    def test_read_from_disk(self, tmp_path: Path) -> None:
        """Test reading a file path."""
        path = tmp_path / "fy25.csv"
        path.write_text(f"{HEADER}\nHineini 25,1,A,,\n", encoding="utf-8")
        table = CSVParser().read(path)
        assert table.file_name == "fy25.csv"
        assert len(table.rows) == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            CSVParser().read(tmp_path / "missing.csv")

    def test_file_too_large(self, tmp_path: Path) -> None:
        """Test the upload size limit."""
        path = tmp_path / "big.csv"
        path.write_text(f"{HEADER}\n", encoding="utf-8")
        with patch("pledge_consolidator.parsers.base.MAX_FILE_SIZE", 10):
            with pytest.raises(ParseError, match="too large") as exc_info:
                CSVParser().read(path)
        assert exc_info.value.file_path == path


class TestExcelParser:
    """Tests for ExcelParser."""

    def test_reads_first_sheet_with_types(self) -> None:
        """Test typed cells come through from openpyxl."""
        data = create_workbook_bytes([
            ["Type", "Charge", "Account ID", "Primary's Birthday", "Zip"],
            ["Hineini 25", 500, 1001, datetime(1980, 1, 15), "07030"],
        ])
        table = ExcelParser().read_bytes(data, "fy25.xlsx")

        assert table.sheet_name == "Transactions"
        assert table.headers == ["Type", "Charge", "Account ID", "Primary's Birthday", "Zip"]
        row = table.rows[0]
        assert row[0] == "Hineini 25"
        assert row[1] == 500
        assert row[3] == datetime(1980, 1, 15)

    def test_leading_blank_rows(self) -> None:
        """Test header detection after blank rows."""
        data = create_workbook_bytes([
            [" ", None],
            ["Type", "Charge"],
            ["Hineini 25", 100],
        ])
        table = ExcelParser().read_bytes(data, "offset.xlsx")
        assert table.headers == ["Type", "Charge"]
        assert table.row_number(0) == 3

    def test_invalid_workbook(self) -> None:
        """Test that non-workbook bytes raise ParseError."""
        with pytest.raises(ParseError, match="Not a valid Excel workbook"):
            ExcelParser().read_bytes(b"this is not a zip file", "broken.xlsx")

    def test_empty_workbook(self) -> None:
        """Test that a workbook without data raises ParseError."""
        data = create_workbook_bytes([])
        with pytest.raises(ParseError, match="empty"):
            ExcelParser().read_bytes(data, "empty.xlsx")


class TestFileDetector:
    """Tests for FileDetector."""

    def test_supported_extensions(self) -> None:
        """Test the union of reader extensions."""
        assert FileDetector().supported_extensions == [".csv", ".tsv", ".txt", ".xlsm", ".xlsx"]

    def test_detect_parser(self) -> None:
        """Test reader selection by extension."""
        detector = FileDetector()
        assert isinstance(detector.detect_parser(Path("a.CSV")), CSVParser)
        assert isinstance(detector.detect_parser(Path("a.xlsx")), ExcelParser)
        assert detector.detect_parser(Path("a.pdf")) is None

    def test_read_bytes_unsupported(self) -> None:
        """Test unsupported uploads raise ParseError."""
        with pytest.raises(ParseError, match="Unsupported file type"):
            FileDetector().read_bytes(b"%PDF", "statement.pdf")

    def test_read_bytes_too_large(self) -> None:
        """Test the upload size limit applies to bytes."""
        with patch("pledge_consolidator.parsers.detector.MAX_FILE_SIZE", 4):
            with pytest.raises(ParseError, match="too large"):
                FileDetector().read_bytes(b"Type,Charge\n", "big.csv")

    def test_discover_files(self, tmp_path: Path) -> None:
        """Test directory discovery is sorted and filtered."""
        (tmp_path / "b.xlsx").write_bytes(b"")
        (tmp_path / "A.csv").write_text("", encoding="utf-8")
        (tmp_path / "notes.pdf").write_bytes(b"")
        (tmp_path / "sub").mkdir()

        files = FileDetector().discover_files(tmp_path)
        assert [f.name for f in files] == ["A.csv", "b.xlsx"]

    def test_discover_missing_directory(self, tmp_path: Path) -> None:
        """Test a missing directory gives no files."""
        assert FileDetector().discover_files(tmp_path / "missing") == []

    def test_expand_inputs_keeps_order(self, tmp_path: Path) -> None:
        """Test that explicit files and directories expand in order."""
        folder = tmp_path / "exports"
        folder.mkdir()
        (folder / "fy24.csv").write_text("", encoding="utf-8")
        explicit = tmp_path / "fy25.csv"
        explicit.write_text("", encoding="utf-8")

        files = FileDetector().expand_inputs([explicit, folder])
        assert files == [explicit, folder / "fy24.csv"]
