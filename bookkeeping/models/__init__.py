"""
Document models - enums and document builders for users and tokens.
"""

from bookkeeping.models.token import (
    TokenType,
    EXCLUSIVE_TOKEN_TYPES,
    build_token_document,
    is_expired,
)
from bookkeeping.models.user import (
    AccountType,
    VerificationMethod,
    build_linked_account,
    build_user_document,
    format_user_profile,
    verification_flag_for,
)

__all__ = [
    "TokenType",
    "EXCLUSIVE_TOKEN_TYPES",
    "build_token_document",
    "is_expired",
    "AccountType",
    "VerificationMethod",
    "build_linked_account",
    "build_user_document",
    "format_user_profile",
    "verification_flag_for",
]
