"""Conversion of CIF value tokens to numbers."""

import math
import re

__all__ = ["MISSING_VALUES", "parse_numeric", "strip_quotes", "is_missing"]

# "." (inapplicable) and "?" (unknown)
MISSING_VALUES = frozenset((".", "?", ""))

_RE_UNCERTAINTY = re.compile(r"\([^)]*\)")
_RE_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def is_missing(value):
    return value is None or str(value).strip() in MISSING_VALUES


def strip_quotes(text):
    """Remove one layer of matching single or double quotes."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


def parse_numeric(token):
    """Convert a CIF value to a number.

    Missing-value markers give None, as does anything that is not a number.
    A standard uncertainty in parentheses is dropped, so "1.234(5)" gives
    1.234. This function never raises.

    Args:
        token (str): the raw value.

    Returns:
        float | None
    """
    if is_missing(token):
        return None
    text = strip_quotes(str(token).strip()).strip()
    text = _RE_UNCERTAINTY.sub("", text).strip()
    if text in MISSING_VALUES:
        return None

    # Trailing text after a number is ignored, so "5.43A" gives 5.43
    match = _RE_FLOAT.match(text)
    if match is None:
        return None
    value = float(match.group())
    if math.isfinite(value):
        return value
    return None
