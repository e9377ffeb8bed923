"""Abstract base class for tabular file readers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum upload size to prevent memory exhaustion (50 MB)
MAX_FILE_SIZE = 50 * 1024 * 1024

# Maximum number of data rows per file
MAX_ROWS = 500_000


class ParseError(Exception):
    """Raised when a file cannot be read as a table at all.

    Row-level problems are never raised; they are collected as RowError values.
    """

    def __init__(self, message: str, file_path: Optional[Path] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            file_path: Optional path to the file that failed to parse.
        """
        self.file_path = file_path
        super().__init__(message)


@dataclass
class Table:
    """Header row plus data rows of the first sheet of a file.

    Attributes:
        file_name: Name of the source file.
        headers: Header cells, stripped strings.
        rows: Data rows as raw cell values, header excluded, blank rows kept
            so row numbers line up with the spreadsheet.
        sheet_name: Worksheet the table came from (None for delimited text).
        header_row: 1-indexed row number of the header line.
    """

    file_name: str
    headers: list[str]
    rows: list[list[object]] = field(default_factory=list)
    sheet_name: Optional[str] = None
    header_row: int = 1

    def row_number(self, index: int) -> int:
        """Spreadsheet row number of the data row at ``index``."""
        return self.header_row + index + 1


class BaseParser(ABC):
    """Abstract base class for all table readers.

    Subclasses must implement:
    - supported_extensions: List of file extensions this reader handles
    - read_bytes(): Read raw file bytes into a Table
    """

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return list of file extensions this reader supports.

        Returns:
            List of extensions like ['.csv', '.tsv'].
        """
        pass

    @property
    def name(self) -> str:
        """Return reader name for logging."""
        return self.__class__.__name__

    def can_parse(self, file_path: Path) -> bool:
        """Check if this reader can handle the given file.

        Args:
            file_path: Path to the file to check.

        Returns:
            True if the extension is supported.
        """
        return self._check_extension(file_path)

    @abstractmethod
    def read_bytes(self, data: bytes, file_name: str) -> Table:
        """Read raw file content into a Table.

        Args:
            data: File content.
            file_name: Name used for error messages.

        Returns:
            Table with headers and data rows.

        Raises:
            ParseError: If the content is not a readable table.
        """
        pass

    def read(self, file_path: Path) -> Table:
        """Read a file from disk into a Table.

        Args:
            file_path: Path to the file.

        Returns:
            Table with headers and data rows.

        Raises:
            ParseError: If the file is too large or not a readable table.
            FileNotFoundError: If file doesn't exist.
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_size = file_path.stat().st_size
        if file_size > MAX_FILE_SIZE:
            raise ParseError(
                f"File too large ({file_size / 1024 / 1024:.1f} MB). "
                f"Maximum allowed is {MAX_FILE_SIZE / 1024 / 1024:.0f} MB",
                file_path,
            )

        with open(file_path, "rb") as f:
            data = f.read()

        try:
            return self.read_bytes(data, file_path.name)
        except ParseError as e:
            if e.file_path is None:
                e.file_path = file_path
            raise

    def _check_extension(self, file_path: Path) -> bool:
        """Check if file extension matches supported extensions."""
        return file_path.suffix.lower() in self.supported_extensions

    def _check_row_limit(self, row_count: int, file_name: str) -> None:
        if row_count > MAX_ROWS:
            raise ParseError(
                f"{file_name} exceeds maximum row limit ({MAX_ROWS:,} rows). "
                f"Split file into smaller chunks."
            )
