import html
import re
from typing import Optional
import bleach


def sanitize_input(value: Optional[str]) -> str:
    """Reduce a user-supplied string to plain text before it is stored.

    - Strips every HTML tag using bleach.clean(..., tags=set(), strip=True)
    - Removes obvious SQL metacharacters like '--' and ';'
    - Trims whitespace

    Entities are decoded again; escaping is left to the templates.
    """
    if value is None:
        return ""
    # remove NULL bytes
    val = value.replace("\x00", "")
    # strip tags
    val = html.unescape(bleach.clean(val, tags=set(), strip=True))
    # remove common SQL comment and statement separators
    val = re.sub(r"(--|;)", "", val)
    return val.strip()


def format_price(minor_units: int | None, symbol: str = "₦") -> str:
    """Render an integer amount of minor units, e.g. 250000 -> '₦2,500.00'."""
    amount = int(minor_units or 0)
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(amount), 100)
    return f"{sign}{symbol}{major:,}.{minor:02d}"


def parse_int(value, default: int | None = None) -> int | None:
    """Lenient form-field integer parsing; anything unparseable yields `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(str(value).strip()))
        except (ValueError, OverflowError):
            return default
