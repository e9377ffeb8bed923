"""Delimited-text reader for transaction exports."""

import csv
import io

from pledge_consolidator.parsers.base import BaseParser, ParseError, Table
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)

# Candidate delimiters in priority order
DELIMITERS = [",", "\t", ";", "|"]
DEFAULT_DELIMITER = ","


def detect_delimiter(text: str) -> str:
    """Pick the delimiter for a delimited-text export.

    The first candidate present in the first non-blank line wins. Exports
    from the congregation system are flat, so no quoting-aware sniffing is
    needed.

    Args:
        text: Decoded file content.

    Returns:
        Delimiter character (comma when none is present).
    """
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    for delimiter in DELIMITERS:
        if delimiter in first_line:
            return delimiter
    return DEFAULT_DELIMITER


def decode_text(data: bytes) -> str:
    """Decode export bytes, dropping a UTF-8 byte order mark.

    Args:
        data: Raw file content.

    Returns:
        Decoded text; undecodable bytes are replaced.
    """
    return data.decode("utf-8-sig", errors="replace")


class CSVParser(BaseParser):
    """Reader for CSV/TSV transaction exports."""

    @property
    def supported_extensions(self) -> list[str]:
        """Return supported file extensions."""
        return [".csv", ".tsv", ".txt"]

    def read_bytes(self, data: bytes, file_name: str) -> Table:
        """Read delimited text into a Table.

        Args:
            data: File content.
            file_name: Name used for error messages.

        Returns:
            Table with stripped string headers and string cells.

        Raises:
            ParseError: If the file is empty or malformed.
        """
        text = decode_text(data)
        if not text.strip():
            raise ParseError(f"File is empty: {file_name}")

        delimiter = detect_delimiter(text)
        logger.info(f"Reading {file_name} as delimited text (delimiter={delimiter!r})")

        try:
            reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
            records = list(reader)
        except csv.Error as e:
            raise ParseError(f"Failed to parse CSV file {file_name}: {e}") from e

        # Leading blank lines are not the header
        header_row = 1
        while records and all(cell.strip() == "" for cell in records[0]):
            records.pop(0)
            header_row += 1
        if not records:
            raise ParseError(f"File is empty: {file_name}")

        headers = [cell.strip() for cell in records[0]]
        rows: list[list[object]] = [list(r) for r in records[1:]]
        self._check_row_limit(len(rows), file_name)

        return Table(file_name=file_name, headers=headers, rows=rows, header_row=header_row)
