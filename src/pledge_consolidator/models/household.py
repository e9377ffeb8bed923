"""Household data models: per-account aggregates and comparison rows."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Optional


class MergePolicy(Enum):
    """Which file supplies age and zip when an account appears in several files.

    Year amounts are always summed; the policy only governs the scalar fields.
    """

    FIRST_WINS = "first_wins"
    LAST_WINS = "last_wins"


@dataclass(frozen=True)
class AccountAggregate:
    """Running per-fiscal-year totals for one household account.

    Instances are immutable once built; stages hand them to each other
    instead of mutating a shared structure.

    Attributes:
        account_id: Account identifier from the export.
        year_amounts: Fiscal year mapped to the net charge total for that year.
        age: Age derived from the first birthdate seen, None if unusable.
        zip_code: Postal code, None if never supplied.
        first_row_index: Spreadsheet row where the account was first seen.
        source_file: File the account was first seen in.
    """

    account_id: str
    year_amounts: Mapping[int, Decimal]
    age: Optional[int] = None
    zip_code: Optional[str] = None
    first_row_index: int = 0
    source_file: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.year_amounts, MappingProxyType):
            object.__setattr__(self, "year_amounts", MappingProxyType(dict(self.year_amounts)))

    def amount_for(self, year: int) -> Decimal:
        """Net total for a fiscal year, zero when the account has no charges."""
        return self.year_amounts.get(year, Decimal("0"))

    @property
    def years(self) -> list[int]:
        """Fiscal years with charges for this account, newest first."""
        return sorted(self.year_amounts, reverse=True)

    def __repr__(self) -> str:
        years = ", ".join(f"{y}={a}" for y, a in sorted(self.year_amounts.items()))
        return f"AccountAggregate(account_id={self.account_id!r}, years={{{years}}}, age={self.age})"


@dataclass(frozen=True)
class ComparisonRow:
    """Two-year summary for one household, consumed by downstream analytics.

    Attributes:
        account_id: Account identifier.
        age: Age of the primary member (whole years, non-negative).
        pledge_current: Net total for the most recent fiscal year.
        pledge_prior: Net total for the fiscal year before it.
        zip_code: Postal code, if known.
    """

    account_id: str
    age: int
    pledge_current: Decimal
    pledge_prior: Decimal
    zip_code: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        """Plain dict view for serialization."""
        data: dict[str, object] = {
            "account_id": self.account_id,
            "age": self.age,
            "pledge_current": self.pledge_current,
            "pledge_prior": self.pledge_prior,
        }
        if self.zip_code is not None:
            data["zip_code"] = self.zip_code
        return data


@dataclass
class AccountBuilder:
    """Mutable accumulator used while a single file is being folded."""

    account_id: str
    first_row_index: int
    age: Optional[int] = None
    zip_code: Optional[str] = None
    year_amounts: dict[int, Decimal] = field(default_factory=dict)

    def add(self, year: int, amount: Decimal) -> None:
        self.year_amounts[year] = self.year_amounts.get(year, Decimal("0")) + amount

    def freeze(self, source_file: Optional[str] = None) -> AccountAggregate:
        return AccountAggregate(
            account_id=self.account_id,
            year_amounts=self.year_amounts,
            age=self.age,
            zip_code=self.zip_code,
            first_row_index=self.first_row_index,
            source_file=source_file,
        )
