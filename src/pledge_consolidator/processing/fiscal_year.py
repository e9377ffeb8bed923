"""Fiscal year extraction from transaction type labels."""

import re
from typing import Optional

# A standalone two-digit token starting with 2: "Hineini 25", "HINEINI 26 FAKE"
FISCAL_YEAR_PATTERN = re.compile(r"\b(2\d)\b")

CENTURY = 2000


def extract_fiscal_year(type_label: Optional[str]) -> Optional[int]:
    """Pull the fiscal year out of a free-text type label.

    "Hineini 25" -> 2025. Four-digit years such as "2025" do not count:
    the token must stand on its own.

    Args:
        type_label: Transaction type label.

    Returns:
        Four-digit fiscal year, or None if the label carries no year tag.
    """
    if not type_label:
        return None

    match = FISCAL_YEAR_PATTERN.search(type_label)
    if match is None:
        return None
    return CENTURY + int(match.group(1))
