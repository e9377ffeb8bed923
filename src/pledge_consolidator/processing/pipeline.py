"""Import pipeline: detect, parse, combine and build for a set of files."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from pledge_consolidator.config import ImportConfig
from pledge_consolidator.models.household import MergePolicy
from pledge_consolidator.models.results import FileParseResult, ImportResult
from pledge_consolidator.parsers.base import ParseError, Table
from pledge_consolidator.parsers.detector import FileDetector
from pledge_consolidator.parsers.format_detection import (
    FormatDetectionResult,
    FormatSignature,
    detect_format,
)
from pledge_consolidator.processing.combiner import combine_results
from pledge_consolidator.processing.comparison_builder import build_comparison_rows
from pledge_consolidator.processing.transaction_parser import TransactionParser
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class FileOutcome:
    """What came out of one file: a parse result or a reason it was not ingested.

    Attributes:
        file_name: Name of the file.
        detection: Header detection result, None if the file was unreadable.
        result: Parse result when the file was ingested.
        error: Why the file was not ingested.
    """

    file_name: str
    detection: Optional[FormatDetectionResult] = None
    result: Optional[FileParseResult] = None
    error: Optional[str] = None


class PledgeImporter:
    """Runs the import for one session.

    Each file gets its own parse and aggregator; files share no state, so
    they may be parsed in parallel. Combining waits for every file.
    """

    def __init__(
        self,
        config: Optional[ImportConfig] = None,
        reference_date: Optional[date] = None,
    ):
        """Initialize importer.

        Args:
            config: Import configuration (default settings when None).
            reference_date: Date ages are measured at (default: today).
        """
        self.config = config or ImportConfig()
        self.reference_date = reference_date or date.today()
        self.signature = FormatSignature.from_config(self.config)
        self.detector = FileDetector()
        self.parser = TransactionParser(self.config, self.reference_date)

    def detect(self, table: Table) -> FormatDetectionResult:
        """Classify a table's header row against the export signature."""
        return detect_format(table.headers, self.signature)

    def parse_table(self, table: Table) -> FileOutcome:
        """Gate a table on format detection and parse it if it matches."""
        detection = self.detect(table)
        if not detection.is_match:
            missing = ", ".join(detection.missing)
            error = (
                f"{table.file_name}: not a recognised {self.signature.name} "
                f"({detection.confidence.value} match; missing columns: {missing})"
            )
            logger.warning(error)
            return FileOutcome(file_name=table.file_name, detection=detection, error=error)

        try:
            result = self.parser.parse_table(table)
        except ParseError as e:
            logger.warning(f"{table.file_name}: {e}")
            return FileOutcome(
                file_name=table.file_name, detection=detection, error=f"{table.file_name}: {e}"
            )
        return FileOutcome(file_name=table.file_name, detection=detection, result=result)

    def parse_file(self, file_path: Path) -> FileOutcome:
        """Read and parse one file from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        try:
            table = self.detector.read_file(file_path)
        except ParseError as e:
            logger.warning(f"{file_path.name}: {e}")
            return FileOutcome(file_name=file_path.name, error=f"{file_path.name}: {e}")
        return self.parse_table(table)

    def parse_bytes(self, data: bytes, file_name: str) -> FileOutcome:
        """Read and parse one uploaded file."""
        try:
            table = self.detector.read_bytes(data, file_name)
        except ParseError as e:
            logger.warning(f"{file_name}: {e}")
            return FileOutcome(file_name=file_name, error=f"{file_name}: {e}")
        return self.parse_table(table)

    def parse_files(
        self,
        file_paths: list[Path],
        max_workers: Optional[int] = None,
    ) -> list[FileOutcome]:
        """Parse several files, optionally in parallel.

        Args:
            file_paths: Files in the order they were supplied.
            max_workers: Worker threads (default from config; 1 is sequential).

        Returns:
            One outcome per file, in input order.
        """
        workers = max_workers or self.config.max_workers
        if workers <= 1 or len(file_paths) <= 1:
            return [self.parse_file(path) for path in file_paths]

        outcomes: dict[int, FileOutcome] = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.parse_file, path): i for i, path in enumerate(file_paths)
            }
            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()

        return [outcomes[i] for i in range(len(file_paths))]

    def import_files(
        self,
        file_paths: list[Path],
        max_workers: Optional[int] = None,
        merge_policy: Optional[MergePolicy] = None,
    ) -> ImportResult:
        """Full import of files on disk."""
        return self.assemble(self.parse_files(file_paths, max_workers), merge_policy)

    def import_uploads(
        self,
        uploads: Iterable[tuple[str, bytes]],
        merge_policy: Optional[MergePolicy] = None,
    ) -> ImportResult:
        """Full import of uploaded ``(file_name, data)`` pairs, in order."""
        outcomes = [self.parse_bytes(data, name) for name, data in uploads]
        return self.assemble(outcomes, merge_policy)

    def assemble(
        self,
        outcomes: list[FileOutcome],
        merge_policy: Optional[MergePolicy] = None,
    ) -> ImportResult:
        """Combine parsed files and build the comparison rows.

        Files that were not ingested are listed in ``file_errors``. The import
        is fatal only when no file could be ingested or the file set covers
        fewer than two fiscal years.

        Args:
            outcomes: Per-file outcomes in input order.
            merge_policy: Which file supplies age/zip (default from config).

        Returns:
            ImportResult with rows and errors.
        """
        policy = merge_policy or self.config.merge_policy
        file_results = [o.result for o in outcomes if o.result is not None]
        file_errors = [o.error for o in outcomes if o.error is not None]
        format_results = {o.file_name: o.detection for o in outcomes if o.detection is not None}

        result = ImportResult(
            file_results=file_results,
            file_errors=file_errors,
            format_results=format_results,
        )

        if not file_results:
            if len(file_errors) == 1:
                result.fatal_error = file_errors[0]
            else:
                result.fatal_error = f"None of the {len(outcomes)} files could be imported"
            logger.error(result.fatal_error)
            return result

        combined = combine_results(file_results, policy)
        result.all_years = combined.all_years
        result.errors = list(combined.errors)
        result.has_negative_values = combined.has_negative_values
        if not combined.ok:
            result.fatal_error = combined.error
            return result

        rows, account_errors = build_comparison_rows(
            combined, birthday_column=self.config.column_for("birthday")
        )
        result.rows = rows
        result.errors.extend(account_errors)
        result.total_accounts = combined.total_accounts

        logger.info(
            f"Imported {len(rows)} households from {len(file_results)} files "
            f"({len(result.errors)} errors, {len(file_errors)} files skipped)"
        )
        return result


def import_files(
    file_paths: list[Path],
    config: Optional[ImportConfig] = None,
    reference_date: Optional[date] = None,
) -> ImportResult:
    """Convenience wrapper: import files with a fresh PledgeImporter."""
    return PledgeImporter(config, reference_date).import_files(file_paths)
