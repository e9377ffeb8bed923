"""Header-based detection of the transactions export format."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pledge_consolidator.config import (
    DEFAULT_COLUMNS,
    DEFAULT_OPTIONAL_COLUMNS,
    DEFAULT_REQUIRED_COLUMNS,
    ImportConfig,
)
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)

# Underscores, dashes and whitespace runs all collapse to one space
_SEPARATOR_PATTERN = re.compile(r"[_\s-]+")

# Thresholds for a partial match
PARTIAL_MIN_REQUIRED = 2
PARTIAL_MIN_OPTIONAL = 3


class FormatConfidence(Enum):
    """How well a header row matches the export signature."""

    HIGH = "high"
    PARTIAL = "partial"
    NONE = "none"


@dataclass(frozen=True)
class FormatSignature:
    """Column signature of a known export.

    Attributes:
        name: Display name of the format.
        required_columns: Headers that must all be present.
        optional_columns: Headers that only raise confidence.
    """

    name: str
    required_columns: tuple[str, ...]
    optional_columns: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: ImportConfig) -> "FormatSignature":
        return cls(
            name="Transactions Export",
            required_columns=tuple(config.required_columns),
            optional_columns=tuple(config.optional_columns),
        )


TRANSACTIONS_EXPORT = FormatSignature(
    name="Transactions Export",
    required_columns=tuple(DEFAULT_REQUIRED_COLUMNS),
    optional_columns=tuple(DEFAULT_OPTIONAL_COLUMNS),
)


@dataclass(frozen=True)
class FormatDetectionResult:
    """Result of matching a header row against a signature.

    Attributes:
        confidence: HIGH, PARTIAL or NONE.
        matched: Required columns found, in signature order.
        missing: Required columns not found, in signature order.
        optional_matched: Optional columns found, in signature order.
    """

    confidence: FormatConfidence
    matched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    optional_matched: list[str] = field(default_factory=list)

    @property
    def is_match(self) -> bool:
        """Only a high-confidence match is ingested automatically."""
        return self.confidence is FormatConfidence.HIGH


def normalize_header(header: object) -> str:
    """Normalize a header for comparison.

    Args:
        header: Raw header cell.

    Returns:
        Lowercased header with separator runs collapsed to one space.
    """
    if header is None:
        return ""
    return _SEPARATOR_PATTERN.sub(" ", str(header).strip().lower()).strip()


def detect_format(
    headers: list[object],
    signature: FormatSignature = TRANSACTIONS_EXPORT,
) -> FormatDetectionResult:
    """Classify a header row against the export signature.

    All required columns present gives HIGH. At least two required columns,
    or at least three optional columns, gives PARTIAL. Anything else is NONE.

    Args:
        headers: Header row as read from the file.
        signature: Signature to match against.

    Returns:
        FormatDetectionResult with matched and missing columns.
    """
    present = {normalize_header(h) for h in headers}
    present.discard("")

    matched = [c for c in signature.required_columns if normalize_header(c) in present]
    missing = [c for c in signature.required_columns if normalize_header(c) not in present]
    optional_matched = [
        c for c in signature.optional_columns if normalize_header(c) in present
    ]

    if not missing:
        confidence = FormatConfidence.HIGH
    elif len(matched) >= PARTIAL_MIN_REQUIRED or len(optional_matched) >= PARTIAL_MIN_OPTIONAL:
        confidence = FormatConfidence.PARTIAL
    else:
        confidence = FormatConfidence.NONE

    logger.debug(
        f"Format detection: {confidence.value} "
        f"({len(matched)}/{len(signature.required_columns)} required, "
        f"{len(optional_matched)} optional)"
    )

    return FormatDetectionResult(
        confidence=confidence,
        matched=matched,
        missing=missing,
        optional_matched=optional_matched,
    )


def map_columns(
    headers: list[object],
    columns: Optional[dict[str, str]] = None,
) -> dict[str, int]:
    """Map column roles to header indices.

    Args:
        headers: Header row as read from the file.
        columns: Role to header name (defaults to the standard export names).

    Returns:
        Role mapped to the index of its first matching header. Roles whose
        header is absent are left out.
    """
    if columns is None:
        columns = DEFAULT_COLUMNS

    indices: dict[str, int] = {}
    for i, header in enumerate(headers):
        key = normalize_header(header)
        if key and key not in indices:
            indices[key] = i

    mapping: dict[str, int] = {}
    for role, name in columns.items():
        idx = indices.get(normalize_header(name))
        if idx is not None:
            mapping[role] = idx
    return mapping


def matches_category(type_label: Optional[str], keyword: str) -> bool:
    """Check whether a type label belongs to the configured category.

    Args:
        type_label: Transaction type label.
        keyword: Category keyword from configuration.

    Returns:
        True if the label contains the keyword, ignoring case.
    """
    if not type_label or not keyword:
        return False
    return keyword.casefold() in type_label.casefold()
