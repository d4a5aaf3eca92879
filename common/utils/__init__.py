"""
Utilities module - Common helpers for API responses, exceptions, and validation.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import APIException, UnauthorizedException
from common.utils.password import validate_password
from common.utils.validators import (
    is_valid_email,
    is_valid_phone_number,
    normalize_phone_number,
    validate_contact_input,
)

__all__ = [
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "validate_password",
    "is_valid_email",
    "is_valid_phone_number",
    "normalize_phone_number",
    "validate_contact_input",
]
