"""
Delivery date parsing for off-plan listings.

Delivery dates are stored as French "month year" labels ("avril 2025").
Filters may also be given as ISO "YYYY-MM".
"""

import re
import unicodedata
from typing import List, Optional, Tuple

FRENCH_MONTHS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]

_ISO_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")
_FRENCH_MONTH = re.compile(r"^([^\W\d_]+)\s+(\d{4})$")


def _fold(text: str) -> str:
    """Lowercase and strip accents."""
    decomposed = unicodedata.normalize("NFKD", text.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


_MONTH_NUMBERS = {_fold(name): index for index, name in enumerate(FRENCH_MONTHS, start=1)}


def parse_month(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Parse "YYYY-MM" or a French "month year" into (year, month).

    Accents and case are ignored. Returns None when the value is not a date.
    """
    if not value:
        return None
    text = str(value).strip()

    match = _ISO_MONTH.match(text)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        return (year, month) if 1 <= month <= 12 else None

    match = _FRENCH_MONTH.match(text)
    if match:
        month = _MONTH_NUMBERS.get(_fold(match.group(1)))
        if month:
            return int(match.group(2)), month
    return None


def month_label(year: int, month: int) -> str:
    return f"{FRENCH_MONTHS[month - 1]} {year}"


def month_spellings() -> List[Tuple[str, int]]:
    """
    Lowercased month-name spellings with their month numbers.

    Lists accented and unaccented names, plus the forms an ASCII-only
    lowercasing leaves for uppercase accented names ("fÉvrier").
    """
    spellings = {}
    for number, name in enumerate(FRENCH_MONTHS, start=1):
        ascii_lowered = "".join(ch.lower() if ch.isascii() else ch for ch in name.upper())
        for spelling in (name, _fold(name), ascii_lowered):
            spellings[spelling] = number
    return list(spellings.items())
