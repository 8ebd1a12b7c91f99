"""
Input checks shared by the user and enrollment handlers.
"""

import re
from typing import Any, List, Mapping, Sequence

from app.settings import get_phone_number_example, get_phone_number_pattern

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_blank(value: Any) -> bool:
    """None, empty and whitespace-only strings count as missing"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def missing_fields(data: Mapping[str, Any], required: Sequence[str]) -> List[str]:
    return [name for name in required if is_blank(data.get(name))]


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def is_valid_phone_number(phone_number: str) -> bool:
    if not phone_number:
        return False
    return re.fullmatch(get_phone_number_pattern(), phone_number) is not None


def phone_number_format_message() -> str:
    return f"Invalid phone number format. Expected: {get_phone_number_example()}"
