"""Tests for Indian address validation."""

import pytest
from ordering.address.address import Address
from ordering.address.validation import address_errors, phone_error, postal_code_error
from protean.exceptions import ValidationError


class TestPhone:
    @pytest.mark.parametrize("phone", ["9876543210", "98765 43210", "98765-43210", "6123456789"])
    def test_valid(self, phone):
        assert phone_error(phone) is None

    @pytest.mark.parametrize(
        "phone,message",
        [
            ("", "Phone number is required"),
            ("98765", "Phone number must be exactly 10 digits"),
            ("5876543210", "Please enter a valid Indian mobile number"),
            ("9999999999", "Please enter a valid phone number"),
            ("9800000123", "Please enter a valid phone number"),
        ],
    )
    def test_invalid(self, phone, message):
        assert phone_error(phone) == message


class TestPostalCode:
    def test_valid(self):
        assert postal_code_error("560001") is None

    @pytest.mark.parametrize("code", ["", "56001", "5600011", "060001", "56000A"])
    def test_invalid(self, code):
        assert postal_code_error(code) is not None


class TestAddressErrors:
    def test_complete_address_has_no_errors(self, address):
        assert address_errors(address) == {}

    def test_missing_fields_reported_each(self, address):
        errors = address_errors({**address, "city": "", "full_name": "  "})
        assert set(errors) == {"city", "full_name"}

    def test_line_2_is_optional(self, address):
        assert address_errors({**address, "address_line_2": None}) == {}


class TestAddressAggregate:
    def test_create_validates(self, address):
        with pytest.raises(ValidationError) as exc:
            Address.create("user-001", **{**address, "phone": "123"})
        assert "phone" in exc.value.messages

    def test_snapshot_is_plain_copy(self, address):
        saved = Address.create("user-001", **address)
        assert saved.snapshot() == address

    def test_revise_keeps_untouched_fields(self, address):
        saved = Address.create("user-001", **address)
        saved.revise(city="Mysuru", postal_code="570001")
        assert saved.city == "Mysuru"
        assert saved.full_name == "Ananya Sharma"

    def test_belongs_to(self, address):
        saved = Address.create("user-001", **address)
        assert saved.belongs_to("user-001")
        assert not saved.belongs_to("user-002")
