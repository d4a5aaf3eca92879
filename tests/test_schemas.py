"""Unit tests for auth request schemas."""

import pytest
from pydantic import ValidationError

from bookkeeping.models.user import AccountType, VerificationMethod
from bookkeeping.schemas.auth import (
    ForgotPasswordRequest,
    InitiateSignupOtpRequest,
    ResendOtpRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from bookkeeping.services.notifications.events import ResendOtpContext


def _signup(**overrides):
    body = {
        "signupFlowToken": "flow",
        "password": "Passw0rd!",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "accountType": "PERSONAL",
    }
    body.update(overrides)
    return SignupRequest(**body)


class TestSignupRequest:
    def test_personal_account(self):
        request = _signup()

        assert request.accountType == AccountType.PERSONAL
        assert request.profile_fields()["accountType"] == "PERSONAL"

    def test_weak_password_rejected(self):
        with pytest.raises(ValidationError, match="uppercase"):
            _signup(password="password1")

    def test_business_account_requires_company_fields(self):
        with pytest.raises(ValidationError, match="companyName"):
            _signup(accountType="BUSINESS")

    def test_complete_business_account(self):
        request = _signup(
            accountType="BUSINESS",
            companyName="Acme",
            companyCategory="Retail",
            businessStructure="LLC",
        )

        assert request.profile_fields()["companyName"] == "Acme"

    def test_unknown_account_type_rejected(self):
        with pytest.raises(ValidationError):
            _signup(accountType="NONPROFIT")

    def test_invalid_optional_email_rejected(self):
        with pytest.raises(ValidationError):
            _signup(email="not-an-email")


class TestContactRequests:
    def test_email_contact(self):
        assert ForgotPasswordRequest(email="A@X.com").contact() == ("a@x.com", VerificationMethod.EMAIL)

    def test_phone_contact(self):
        request = ForgotPasswordRequest(phoneNumber="+2348012345678")

        assert request.contact() == ("+2348012345678", VerificationMethod.PHONE_NUMBER)

    def test_requires_exactly_one(self):
        with pytest.raises(ValidationError, match="exactly one"):
            ForgotPasswordRequest()
        with pytest.raises(ValidationError, match="exactly one"):
            ForgotPasswordRequest(email="a@x.com", phoneNumber="+2348012345678")

    def test_phone_number_format(self):
        with pytest.raises(ValidationError, match="Invalid phone number format"):
            ForgotPasswordRequest(phoneNumber="0801-234-5678")

    def test_phone_number_requires_plus_prefix(self):
        with pytest.raises(ValidationError, match="Invalid phone number format"):
            ForgotPasswordRequest(phoneNumber="2348012345678")

    def test_phone_number_is_normalized(self):
        request = ResendOtpRequest(phoneNumber="+234 801-234-5678", context="LOGIN")

        assert request.contact() == ("+2348012345678", VerificationMethod.PHONE_NUMBER)

    def test_resend_context(self):
        request = ResendOtpRequest(email="a@x.com", context="LOGIN")

        assert request.context == ResendOtpContext.LOGIN

        with pytest.raises(ValidationError):
            ResendOtpRequest(email="a@x.com", context="SOMETHING_ELSE")


class TestOtherRequests:
    def test_signup_otp_type_enum(self):
        with pytest.raises(ValidationError):
            InitiateSignupOtpRequest(details="a@x.com", type="FAX")

    def test_reset_password_otp_length(self):
        with pytest.raises(ValidationError):
            ResetPasswordRequest(otp="12345", newPassword="Passw0rd!")

    def test_reset_password_strength(self):
        with pytest.raises(ValidationError):
            ResetPasswordRequest(otp="123456", newPassword="alllowercase")

        assert ResetPasswordRequest(otp="123456", newPassword="Passw0rd!").newPassword == "Passw0rd!"
