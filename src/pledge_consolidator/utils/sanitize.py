"""Sanitization of untrusted export text before it is written back to CSV."""

from typing import Optional

# Leading characters that make spreadsheet applications evaluate a cell
_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n", "|")


def sanitize_for_csv(value: Optional[object]) -> str:
    """Render a text cell for CSV output with formula injection neutralized.

    Account IDs, zips, file names and error messages are copied from uploaded
    files. A value starting with a formula character, possibly after leading
    spaces, is prefixed with a single quote.

    Args:
        value: Cell value, or None for an empty cell.

    Returns:
        Text safe to write, empty for None.
    """
    if value is None:
        return ""

    text = str(value)
    if text.lstrip(" ").startswith(_FORMULA_CHARS):
        return "'" + text
    return text
