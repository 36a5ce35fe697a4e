# app/core/digits.py
import re
from typing import Optional

# Persian (U+06F0..U+06F9) and Arabic-Indic (U+0660..U+0669) keypads
_LOCAL_DIGITS = str.maketrans(
    "۰۱۲۳۴۵۶۷۸۹٠١٢٣٤٥٦٧٨٩",
    "01234567890123456789",
)


def to_ascii_digits(value: Optional[str]) -> str:
    """Strip ``value`` and rewrite Persian/Arabic-Indic digits as ASCII ones."""
    return (value or "").strip().translate(_LOCAL_DIGITS)


def is_ascii_digits(value: str, length: int) -> bool:
    return re.fullmatch(f"[0-9]{{{length}}}", value) is not None
