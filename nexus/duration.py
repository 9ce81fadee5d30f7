"""Free-text durations ("2h 30m", "8h", "45m") to and from decimal hours."""

import math
import re

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+([.,]\d*)?|[.,]\d+)")


def _leading_number(text: str) -> float:
    """Parse the numeric prefix of text; anything unparseable contributes 0."""
    match = _LEADING_NUMBER.match(text)
    if not match:
        return 0.0
    value = float(match.group(0).replace(",", "."))
    return value if math.isfinite(value) else 0.0


def parse_duration(text: object) -> float:
    """Return decimal hours for a duration expression. Never raises.

    "2h 30m" → 2.5, "8h" → 8.0, "45m" → 0.75, "3" → 3.0, "" / None → 0.0
    """
    if text is None:
        return 0.0
    clean = re.sub(r"\s+", "", str(text)).lower()
    if not clean:
        return 0.0

    if "h" in clean and "m" in clean:
        hours_part, _, minutes_part = clean.partition("h")
        return _leading_number(hours_part) + _leading_number(minutes_part.replace("m", "")) / 60
    if "h" in clean:
        return _leading_number(clean)
    if "m" in clean:
        return _leading_number(clean) / 60
    return _leading_number(clean)


def format_duration(hours: float) -> str:
    """Render decimal hours compactly: 0 → "0h", 2.5 → "2h 30m", 1 → "1h", 0.75 → "45m"."""
    if not math.isfinite(hours) or hours <= 0:
        return "0h"
    whole = math.floor(hours)
    minutes = round((hours - whole) * 60)
    if minutes == 60:
        whole, minutes = whole + 1, 0

    if whole and minutes:
        return f"{whole}h {minutes}m"
    if whole:
        return f"{whole}h"
    if minutes:
        return f"{minutes}m"
    return "0h"
