"""File readers and export-format detection."""

from pledge_consolidator.parsers.base import BaseParser, ParseError, Table
from pledge_consolidator.parsers.csv_parser import CSVParser, detect_delimiter
from pledge_consolidator.parsers.detector import FileDetector
from pledge_consolidator.parsers.excel_parser import ExcelParser
from pledge_consolidator.parsers.format_detection import (
    TRANSACTIONS_EXPORT,
    FormatConfidence,
    FormatDetectionResult,
    FormatSignature,
    detect_format,
    map_columns,
    matches_category,
    normalize_header,
)

__all__ = [
    "BaseParser",
    "ParseError",
    "Table",
    "CSVParser",
    "ExcelParser",
    "FileDetector",
    "detect_delimiter",
    "TRANSACTIONS_EXPORT",
    "FormatConfidence",
    "FormatDetectionResult",
    "FormatSignature",
    "detect_format",
    "map_columns",
    "matches_category",
    "normalize_header",
]
