"""Result models returned by the parse, combine and build stages."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

from pledge_consolidator.models.household import AccountAggregate, ComparisonRow

if TYPE_CHECKING:
    from pledge_consolidator.parsers.format_detection import FormatDetectionResult


@dataclass(frozen=True)
class RowError:
    """One rejected row or account.

    Collected and returned next to successful output; never raised.

    Attributes:
        row: 1-indexed spreadsheet row (the header is row 1, 0 for file-level).
        message: Human-readable reason.
        column: Offending column name, if any.
        file_name: File the row came from, if known.
    """

    row: int
    message: str
    column: Optional[str] = None
    file_name: Optional[str] = None

    def __str__(self) -> str:
        location = f"row {self.row}" if self.row else "file"
        if self.file_name:
            location = f"{self.file_name} {location}"
        if self.column:
            location = f"{location} [{self.column}]"
        return f"{location}: {self.message}"


@dataclass(frozen=True)
class FileParseResult:
    """Output of one file's row-parsing pass.

    Attributes:
        file_name: Name of the parsed file.
        aggregates: Account ID mapped to its frozen aggregate.
        errors: Row-level errors in file order.
        years_found: Distinct fiscal years seen in accepted rows.
        rows_read: Non-blank data rows read.
        rows_accepted: Rows folded into an aggregate.
        rows_skipped: Rows outside the configured category.
        has_negative_values: Whether any accepted charge was negative.
    """

    file_name: str
    aggregates: Mapping[str, AccountAggregate] = field(default_factory=dict)
    errors: tuple[RowError, ...] = ()
    years_found: frozenset[int] = frozenset()
    rows_read: int = 0
    rows_accepted: int = 0
    rows_skipped: int = 0
    has_negative_values: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.aggregates, MappingProxyType):
            object.__setattr__(self, "aggregates", MappingProxyType(dict(self.aggregates)))
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "years_found", frozenset(self.years_found))

    @property
    def account_count(self) -> int:
        return len(self.aggregates)

    @property
    def rows_rejected(self) -> int:
        return sum(1 for e in self.errors if e.row > 0)

    @property
    def sorted_years(self) -> list[int]:
        """Fiscal years in this file, newest first."""
        return sorted(self.years_found, reverse=True)


@dataclass
class CombinedResult:
    """Output of merging several file results.

    Attributes:
        combined: Account ID mapped to the merged aggregate.
        all_years: Distinct fiscal years across all files, newest first.
        errors: Per-file errors carried through in input order.
        error: File-set-level failure; when set there are no rows to build.
        has_negative_values: Whether any file contained a negative charge.
    """

    combined: dict[str, AccountAggregate] = field(default_factory=dict)
    all_years: list[int] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    error: Optional[str] = None
    has_negative_values: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def current_year(self) -> Optional[int]:
        return self.all_years[0] if self.all_years else None

    @property
    def prior_year(self) -> Optional[int]:
        return self.all_years[1] if len(self.all_years) > 1 else None

    @property
    def total_accounts(self) -> int:
        return len(self.combined)


@dataclass
class ImportResult:
    """Everything an import session hands to the caller.

    Rows and errors coexist: a non-empty error list does not mean failure.
    ``fatal_error`` is only set when nothing could be produced.
    """

    rows: list[ComparisonRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    fatal_error: Optional[str] = None
    all_years: list[int] = field(default_factory=list)
    file_results: list[FileParseResult] = field(default_factory=list)
    file_errors: list[str] = field(default_factory=list)
    format_results: dict[str, "FormatDetectionResult"] = field(default_factory=dict)
    total_accounts: int = 0
    has_negative_values: bool = False

    @property
    def ok(self) -> bool:
        return self.fatal_error is None

    @property
    def current_year(self) -> Optional[int]:
        return self.all_years[0] if len(self.all_years) >= 2 else None

    @property
    def prior_year(self) -> Optional[int]:
        return self.all_years[1] if len(self.all_years) >= 2 else None
