"""Per-file fold of accepted transaction rows into household aggregates."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pledge_consolidator.models.household import AccountAggregate, AccountBuilder
from pledge_consolidator.utils.date_utils import derive_age, to_date


def _clean_zip(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # Excel stores unformatted zips as numbers; leading zeros are lost
        value = int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        text = str(value).zfill(5) if value < 100000 else str(value)
    else:
        text = str(value).strip()
    return text or None


class HouseholdAggregator:
    """Single-pass reducer keyed by account ID.

    One instance is owned by one file's parse; nothing is shared between
    files. Age is derived from the first row seen for an account and never
    retried on later rows, so an unusable first birthdate surfaces later as
    an account error when comparison rows are built. Zip codes take the
    latest non-empty value seen in the file.
    """

    def __init__(self, reference_date: Optional[date] = None):
        """Initialize aggregator.

        Args:
            reference_date: Date ages are measured at (default: today).
        """
        self.reference_date = reference_date or date.today()
        self._accounts: dict[str, AccountBuilder] = {}
        self._years: set[int] = set()

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._accounts

    @property
    def years(self) -> frozenset[int]:
        """Fiscal years folded so far."""
        return frozenset(self._years)

    def add(
        self,
        account_id: str,
        fiscal_year: int,
        amount: Decimal,
        row_number: int,
        birthdate: object = None,
        zip_code: object = None,
    ) -> None:
        """Fold one accepted row.

        Args:
            account_id: Account identifier (non-empty).
            fiscal_year: Four-digit fiscal year.
            amount: Signed charge amount.
            row_number: Spreadsheet row, kept for error attribution.
            birthdate: Raw birthdate cell.
            zip_code: Raw zip cell.
        """
        account = self._accounts.get(account_id)
        if account is None:
            account = AccountBuilder(
                account_id=account_id,
                first_row_index=row_number,
                age=derive_age(to_date(birthdate), self.reference_date),
            )
            self._accounts[account_id] = account

        account.add(fiscal_year, amount)
        self._years.add(fiscal_year)

        zip_value = _clean_zip(zip_code)
        if zip_value is not None:
            account.zip_code = zip_value

    def build(self, source_file: Optional[str] = None) -> dict[str, AccountAggregate]:
        """Freeze the current state into immutable aggregates.

        Args:
            source_file: File name recorded on each aggregate.

        Returns:
            Account ID mapped to AccountAggregate, in first-seen order.
        """
        return {
            account_id: builder.freeze(source_file)
            for account_id, builder in self._accounts.items()
        }
