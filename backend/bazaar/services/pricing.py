import re
from typing import Any, Optional


NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_price(value: Any) -> Optional[float]:
    """Parse a source-native price.

    Strings keep only digits and dots; anything left that is not a number
    (``""``, ``"1.2.3"``, ``"Call for price"``) yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def display_price(value: Any) -> str:
    parsed = parse_price(value)
    if parsed is None:
        return "" if value is None else str(value)
    if parsed.is_integer():
        return f"${int(parsed)}"
    return f"${parsed:.2f}"
