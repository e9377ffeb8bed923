"""Data models for household aggregates, comparison rows and import results."""

from pledge_consolidator.models.household import (
    AccountAggregate,
    AccountBuilder,
    ComparisonRow,
    MergePolicy,
)
from pledge_consolidator.models.results import (
    CombinedResult,
    FileParseResult,
    ImportResult,
    RowError,
)

__all__ = [
    "AccountAggregate",
    "AccountBuilder",
    "ComparisonRow",
    "MergePolicy",
    "RowError",
    "FileParseResult",
    "CombinedResult",
    "ImportResult",
]
