"""
Pydantic models for Auth system request validation.

Defines schemas for signup, login, token refresh and password reset.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from common.utils.password import validate_password
from common.utils.validators import is_valid_phone_number, normalize_phone_number
from bookkeeping.models.user import AccountType, VerificationMethod
from bookkeeping.services.notifications.events import ResendOtpContext

BUSINESS_REQUIRED_FIELDS = ("companyName", "companyCategory", "businessStructure")


def _check_password_strength(value: str) -> str:
    is_valid, errors = validate_password(value)
    if not is_valid:
        raise ValueError("; ".join(errors))
    return value


class InitiateSignupOtpRequest(BaseModel):
    """Request body for starting signup."""
    details: str = Field(..., min_length=1, description="Email address or phone number")
    type: VerificationMethod


class VerifyOtpRequest(BaseModel):
    """Request body for OTP verification."""
    otp: str = Field(..., min_length=1)


class SignupRequest(BaseModel):
    """Request body for completing signup."""
    signupFlowToken: str = Field(..., min_length=1)
    password: str
    firstName: str = Field(..., min_length=1, max_length=50)
    lastName: str = Field(..., min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    accountType: AccountType
    companyName: Optional[str] = Field(None, max_length=100)
    companyWebsite: Optional[str] = Field(None, max_length=200)
    companyCategory: Optional[str] = Field(None, max_length=100)
    businessStructure: Optional[str] = Field(None, max_length=100)
    financialGoal: Optional[str] = Field(None, max_length=200)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password_strength(value)

    @model_validator(mode="after")
    def business_fields_required(self) -> "SignupRequest":
        if self.accountType == AccountType.BUSINESS:
            missing = [name for name in BUSINESS_REQUIRED_FIELDS if not getattr(self, name)]
            if missing:
                raise ValueError(f"Business accounts require: {', '.join(missing)}")
        return self

    def profile_fields(self) -> dict:
        """Fields written to the user document."""
        return {
            "firstName": self.firstName,
            "lastName": self.lastName,
            "accountType": self.accountType.value,
            "companyName": self.companyName,
            "companyWebsite": self.companyWebsite,
            "companyCategory": self.companyCategory,
            "businessStructure": self.businessStructure,
            "financialGoal": self.financialGoal,
        }


class LoginRequest(BaseModel):
    """Request body for credential login."""
    details: str = Field(..., min_length=1, description="Email address or phone number")
    password: str = Field(..., min_length=1)
    type: VerificationMethod


class ContactRequest(BaseModel):
    """Exactly one of email or phoneNumber."""
    email: Optional[EmailStr] = None
    phoneNumber: Optional[str] = None

    @field_validator("phoneNumber")
    @classmethod
    def phone_number_format(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not is_valid_phone_number(value):
            raise ValueError("Invalid phone number format")
        return normalize_phone_number(value)

    @model_validator(mode="after")
    def exactly_one_contact(self):
        if bool(self.email) == bool(self.phoneNumber):
            raise ValueError("Provide exactly one of email or phoneNumber")
        return self

    def contact(self) -> Tuple[str, VerificationMethod]:
        """The supplied contact detail and its channel."""
        if self.email:
            return self.email.lower(), VerificationMethod.EMAIL
        return self.phoneNumber, VerificationMethod.PHONE_NUMBER


class ForgotPasswordRequest(ContactRequest):
    """Request body for requesting a password reset OTP."""


class ResendOtpRequest(ContactRequest):
    """Request body for resending an OTP."""
    context: ResendOtpContext


class ResetPasswordRequest(BaseModel):
    """Request body for resetting the password with an OTP."""
    otp: str = Field(..., min_length=6, max_length=6)
    newPassword: str = Field(..., min_length=8, max_length=30)

    @field_validator("newPassword")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return _check_password_strength(value)
