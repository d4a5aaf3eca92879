"""
User documents.

Users live in the ``users`` collection with camelCase keys. A user is created
incomplete by the signup OTP step (contact detail and verification method
only) and filled in by the signup step.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from bson import ObjectId

AVATAR_URL_TEMPLATE = "https://api.dicebear.com/9.x/micah/svg?seed={seed}"


class VerificationMethod(str, Enum):
    """Channel used to verify the account and deliver OTPs."""
    EMAIL = "EMAIL"
    PHONE_NUMBER = "PHONE_NUMBER"


class AccountType(str, Enum):
    BUSINESS = "BUSINESS"
    PERSONAL = "PERSONAL"


def verification_flag_for(method: VerificationMethod) -> str:
    """Name of the method-specific verified flag."""
    if VerificationMethod(method) == VerificationMethod.EMAIL:
        return "isEmailVerified"
    return "isPhoneVerified"


def build_user_document(contact: str, method: VerificationMethod) -> dict:
    """
    Build the incomplete user created when signup starts.

    Args:
        contact: Email address or phone number
        method: Which of the two ``contact`` is

    Returns:
        User document with a fresh ``_id``
    """
    method = VerificationMethod(method)
    now = datetime.now(timezone.utc)

    doc: dict[str, Any] = {
        "_id": ObjectId(),
        "firstName": None,
        "lastName": None,
        "accountType": None,
        "password": None,
        "verificationMethod": method.value,
        "isVerified": False,
        "isEmailVerified": False,
        "isPhoneVerified": False,
        "linkedAccounts": [],
        "createdAt": now,
        "updatedAt": now,
    }

    if method == VerificationMethod.EMAIL:
        doc["email"] = contact.strip().lower()
    else:
        doc["phoneNumber"] = contact.strip()

    return doc


def build_linked_account(
    external_user_id: str,
    email: Optional[str] = None,
    metadata: Optional[dict] = None,
    is_disabled: bool = False,
) -> dict:
    """Build a linked aggregator account entry."""
    return {
        "id": str(ObjectId()),
        "externalUserId": external_user_id,
        "email": email,
        "isDisabled": is_disabled,
        "metadata": metadata or {},
        "createdAt": datetime.now(timezone.utc),
    }


def avatar_url(user: dict) -> str:
    seed = user.get("firstName") or user.get("email") or str(user["_id"])
    return AVATAR_URL_TEMPLATE.format(seed=seed)


def format_user_profile(user: dict) -> dict:
    """Minimal profile returned by login and session endpoints."""
    return {
        "id": str(user["_id"]),
        "email": user.get("email"),
        "phoneNumber": user.get("phoneNumber"),
        "firstName": user.get("firstName"),
        "lastName": user.get("lastName"),
        "avatar": avatar_url(user),
    }
