"""Reader selection and file discovery."""

from pathlib import Path

from pledge_consolidator.parsers.base import MAX_FILE_SIZE, BaseParser, ParseError, Table
from pledge_consolidator.parsers.csv_parser import CSVParser
from pledge_consolidator.parsers.excel_parser import ExcelParser
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)


class FileDetector:
    """Picks the reader for an uploaded file.

    This class provides:
    - Reader selection by file extension
    - Reading files or raw bytes into a Table
    - Expansion of directories into the supported files they contain
    """

    def __init__(self) -> None:
        self.parsers: list[BaseParser] = [
            CSVParser(),
            ExcelParser(),
        ]

    @property
    def supported_extensions(self) -> list[str]:
        """Get all supported file extensions.

        Returns:
            Sorted list of supported extensions.
        """
        extensions: set[str] = set()
        for parser in self.parsers:
            extensions.update(parser.supported_extensions)
        return sorted(extensions)

    def detect_parser(self, file_path: Path) -> BaseParser | None:
        """Return the first reader that accepts the file, or None."""
        for parser in self.parsers:
            if parser.can_parse(file_path):
                logger.debug(f"File {file_path.name} matched by {parser.name}")
                return parser

        logger.warning(f"No reader found for {file_path.name}")
        return None

    def read_file(self, file_path: Path) -> Table:
        """Read a file with the appropriate reader.

        Args:
            file_path: Path to the file.

        Returns:
            Table with headers and data rows.

        Raises:
            ParseError: If no reader handles the file or reading fails.
            FileNotFoundError: If the file doesn't exist.
        """
        parser = self.detect_parser(file_path)
        if parser is None:
            raise ParseError(f"Unsupported file type: {file_path.name}", file_path)
        return parser.read(file_path)

    def read_bytes(self, data: bytes, file_name: str) -> Table:
        """Read uploaded bytes, choosing the reader from the file name.

        Args:
            data: File content.
            file_name: Original file name (its extension picks the reader).

        Returns:
            Table with headers and data rows.

        Raises:
            ParseError: If no reader handles the file or reading fails.
        """
        if len(data) > MAX_FILE_SIZE:
            raise ParseError(
                f"{file_name} is too large ({len(data) / 1024 / 1024:.1f} MB). "
                f"Maximum allowed is {MAX_FILE_SIZE / 1024 / 1024:.0f} MB"
            )

        parser = self.detect_parser(Path(file_name))
        if parser is None:
            raise ParseError(f"Unsupported file type: {file_name}")
        return parser.read_bytes(data, file_name)

    def discover_files(self, directory: Path) -> list[Path]:
        """Discover all readable files directly inside a directory.

        Args:
            directory: Directory to search.

        Returns:
            Supported files sorted by name.
        """
        if not directory.is_dir():
            logger.warning(f"Directory not found or not a directory: {directory}")
            return []

        supported = set(self.supported_extensions)
        files = [
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in supported
        ]
        files.sort(key=lambda p: p.name.lower())

        logger.info(f"Discovered {len(files)} files in {directory}")
        return files

    def expand_inputs(self, inputs: list[Path]) -> list[Path]:
        """Expand directories in an input list, keeping the given order.

        Args:
            inputs: Files and/or directories.

        Returns:
            File paths, directories replaced by their supported files.
        """
        files: list[Path] = []
        for path in inputs:
            if path.is_dir():
                files.extend(self.discover_files(path))
            else:
                files.append(path)
        return files
