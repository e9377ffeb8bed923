"""Excel reader using openpyxl library."""

import io
import zipfile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from pledge_consolidator.parsers.base import BaseParser, ParseError, Table
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)


class ExcelParser(BaseParser):
    """Reader for Excel transaction exports.

    Only the first worksheet is read; the export writes a single sheet.
    Cells keep their openpyxl types (numbers, datetimes, strings), which the
    value normalizers accept directly.
    """

    @property
    def supported_extensions(self) -> list[str]:
        """Return supported file extensions."""
        return [".xlsx", ".xlsm"]

    def read_bytes(self, data: bytes, file_name: str) -> Table:
        """Read an Excel workbook into a Table.

        Args:
            data: Workbook content.
            file_name: Name used for error messages.

        Returns:
            Table built from the first worksheet.

        Raises:
            ParseError: If the workbook cannot be opened, has no sheets, or is empty.
        """
        logger.info(f"Reading Excel file: {file_name}")

        try:
            wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile) as e:
            raise ParseError(f"Not a valid Excel workbook: {file_name}") from e
        except Exception as e:
            raise ParseError(f"Failed to open Excel file {file_name}: {e}") from e

        try:
            if not wb.sheetnames:
                raise ParseError(f"No sheets found in workbook: {file_name}")

            sheet_name = wb.sheetnames[0]
            sheet = wb[sheet_name]
            records = [list(r) for r in sheet.iter_rows(values_only=True)]
        finally:
            wb.close()

        header_row = 1
        while records and all(_is_blank(cell) for cell in records[0]):
            records.pop(0)
            header_row += 1
        if not records:
            raise ParseError(f"File is empty: {file_name}")

        headers = ["" if h is None else str(h).strip() for h in records[0]]
        rows = records[1:]
        self._check_row_limit(len(rows), file_name)

        return Table(
            file_name=file_name,
            headers=headers,
            rows=rows,
            sheet_name=sheet_name,
            header_row=header_row,
        )


def _is_blank(cell: object) -> bool:
    return cell is None or str(cell).strip() == ""
