"""Unit tests for contact and password validation."""

import pytest

from common.utils import validate_contact_input, validate_password
from common.utils.validators import is_valid_phone_number, normalize_phone_number


class TestValidateContactInput:
    @pytest.mark.parametrize("email", ["a@x.com", "jane.doe@books.co.uk", "j_d-1@mail.io"])
    def test_accepts_valid_email(self, email):
        assert validate_contact_input(email, "EMAIL") == (True, None)

    @pytest.mark.parametrize("email", ["", "plainaddress", "a@x", "a@x.c", "@x.com"])
    def test_rejects_invalid_email(self, email):
        assert validate_contact_input(email, "EMAIL") == (False, "Invalid email")

    @pytest.mark.parametrize("phone", ["+2348012345678", "+1 (415) 555-0100", "+44 7911 123456"])
    def test_accepts_valid_phone_number(self, phone):
        assert validate_contact_input(phone, "PHONE_NUMBER") == (True, None)

    @pytest.mark.parametrize("phone", ["", "08012345678", "+0123456789", "+12"])
    def test_rejects_invalid_phone_number(self, phone):
        assert validate_contact_input(phone, "PHONE_NUMBER") == (False, "Invalid phone number")

    def test_email_checked_against_phone_rules(self):
        assert validate_contact_input("a@x.com", "PHONE_NUMBER") == (False, "Invalid phone number")

    def test_unknown_type(self):
        assert validate_contact_input("a@x.com", "FAX") == (False, "Invalid contact type")


class TestPhoneHelpers:
    def test_normalize_strips_separators(self):
        assert normalize_phone_number("+1 (415) 555-0100") == "+14155550100"

    def test_plus_prefix_required(self):
        assert is_valid_phone_number("+2348012345678")
        assert not is_valid_phone_number("2348012345678")
        assert not is_valid_phone_number("+0123")


class TestValidatePassword:
    def test_strong_password(self):
        assert validate_password("Passw0rd!") == (True, [])

    def test_too_short(self):
        is_valid, errors = validate_password("Pa5s")

        assert is_valid is False
        assert "Password must be at least 8 characters" in errors

    def test_too_long(self):
        is_valid, errors = validate_password("Aa1" * 11)

        assert is_valid is False
        assert "Password must be no more than 30 characters" in errors

    def test_reports_every_missing_class(self):
        is_valid, errors = validate_password("--------")

        assert is_valid is False
        assert len(errors) == 3
