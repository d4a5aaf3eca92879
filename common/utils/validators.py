"""
Contact detail validation.

Email and phone number syntax checks shared by request schemas and the
auth flows. Phone numbers may be written with spaces, dashes or brackets;
those are stripped before matching.

Example:
    from common.utils import validate_contact_input

    is_valid, error = validate_contact_input("+2348012345678", "PHONE_NUMBER")
"""

import re
from typing import Optional, Tuple

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+[1-9]\d{0,2}[1-9]\d{5,11}$")

_PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def normalize_phone_number(value: str) -> str:
    """Strip formatting characters from a phone number."""
    return _PHONE_SEPARATORS.sub("", value)


def is_valid_email(value: str) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value.strip()))


def is_valid_phone_number(value: str) -> bool:
    return bool(value) and bool(PHONE_PATTERN.match(normalize_phone_number(value)))


def validate_contact_input(value: str, contact_type: str) -> Tuple[bool, Optional[str]]:
    """
    Check that a contact value matches its declared type.

    Args:
        value: Email address or phone number
        contact_type: "EMAIL" or "PHONE_NUMBER"

    Returns:
        Tuple of (is_valid, error message or None)
    """
    if contact_type == "EMAIL":
        if not is_valid_email(value):
            return False, "Invalid email"
        return True, None

    if contact_type == "PHONE_NUMBER":
        if not is_valid_phone_number(value):
            return False, "Invalid phone number"
        return True, None

    return False, "Invalid contact type"
