"""Decimal utilities for charge amounts.

Every amount that flows into a household total is a Decimal; floats coming
out of spreadsheet readers are converted through ``str`` first.
"""

import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional


# Currency symbols to strip
CURRENCY_SYMBOLS = {"$", "€", "£", "¥", "₹", "₪"}

# Accounting negatives: ($1,234.56) or (1234.56)
PARENS_NEGATIVE_PATTERN = re.compile(r"^\s*\(\s*([^()]*)\s*\)\s*$")

# Strings that mean "no value" in exports
EMPTY_MARKERS = {"", "-"}


def parse_amount(raw_amount: str) -> tuple[Decimal, bool]:
    """Parse a raw amount string into a Decimal.

    Handles:
    - Standard: 1234.56, -1234.56
    - With currency: $1,234.56, -$1,234.56, $-1,234.56
    - Accounting parentheses: ($1,234.56), (1234.56)

    Commas are always thousands separators in this export family.

    Args:
        raw_amount: The raw amount string to parse.

    Returns:
        Tuple of (absolute amount as Decimal, is_negative flag).

    Raises:
        ValueError: If the amount is empty, a bare dash, or not a finite number.
    """
    if raw_amount is None:
        raise ValueError("Empty amount string")

    original = raw_amount
    amount_str = raw_amount.strip()
    is_negative = False

    parens_match = PARENS_NEGATIVE_PATTERN.match(amount_str)
    if parens_match:
        amount_str = parens_match.group(1).strip()
        is_negative = True

    if amount_str.startswith("-"):
        is_negative = not is_negative if parens_match else True
        amount_str = amount_str[1:].strip()

    for symbol in CURRENCY_SYMBOLS:
        amount_str = amount_str.replace(symbol, "")

    # "$-100" puts the sign after the symbol
    amount_str = amount_str.strip()
    if amount_str.startswith("-"):
        is_negative = True
        amount_str = amount_str[1:]

    amount_str = amount_str.replace(",", "")
    amount_str = "".join(amount_str.split())

    if amount_str in EMPTY_MARKERS:
        raise ValueError(f"Empty amount: '{original}'")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{original}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Amount is not finite: '{original}'")

    return abs(amount), is_negative


def to_amount(value: object) -> Optional[Decimal]:
    """Convert a raw spreadsheet cell into a signed Decimal amount.

    Args:
        value: Cell value (number, string, or empty).

    Returns:
        Signed Decimal, or None when the cell does not hold a usable amount.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return Decimal(str(value))

    if isinstance(value, str):
        try:
            abs_amount, is_negative = parse_amount(value)
        except ValueError:
            return None
        return -abs_amount if is_negative else abs_amount

    return None


def format_currency(
    amount: Decimal,
    decimal_places: int = 2,
    include_sign: bool = True,
) -> str:
    """Format a Decimal amount for display.

    Args:
        amount: The amount to format.
        decimal_places: Number of decimal places (default 2).
        include_sign: Whether to include sign for negative amounts.

    Returns:
        Formatted string like "-1234.56" or "1234.56".
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "0"
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)

    if include_sign and rounded < 0:
        return str(rounded)
    return str(abs(rounded))


def sum_amounts(amounts: list[Decimal]) -> Decimal:
    """Sum a list of Decimal amounts.

    Args:
        amounts: List of Decimal amounts.

    Returns:
        Sum as Decimal.
    """
    total = Decimal("0")
    for amount in amounts:
        total += amount
    return total
