"""Field checks for Indian delivery addresses."""

import re

_REPEATED_DIGITS = re.compile(r"(\d)\1{4,}")
_PIN_CODE = re.compile(r"^[1-9]\d{5}$")


def phone_error(phone: str | None) -> str | None:
    """Problem with a mobile number, or None when it looks real."""
    if not phone:
        return "Phone number is required"

    digits = re.sub(r"\D", "", phone)
    if len(digits) != 10:
        return "Phone number must be exactly 10 digits"
    if digits[0] not in "6789":
        return "Please enter a valid Indian mobile number"
    # Five or more of the same digit in a row is almost always made up
    if _REPEATED_DIGITS.search(digits):
        return "Please enter a valid phone number"
    return None


def postal_code_error(postal_code: str | None) -> str | None:
    if not postal_code:
        return "PIN code is required"
    if not _PIN_CODE.match(postal_code.strip()):
        return "PIN code must be 6 digits"
    return None


REQUIRED_FIELDS = ("full_name", "phone", "address_line_1", "city", "state", "postal_code")


def address_errors(data: dict) -> dict[str, list[str]]:
    """All problems with an address dict, keyed by field."""
    errors = {}
    for name in REQUIRED_FIELDS:
        if not (data.get(name) or "").strip():
            errors[name] = [f"{name.replace('_', ' ').capitalize()} is required"]

    if "phone" not in errors and (message := phone_error(data.get("phone"))):
        errors["phone"] = [message]
    if "postal_code" not in errors and (message := postal_code_error(data.get("postal_code"))):
        errors["postal_code"] = [message]
    return errors
