"""
Input validation for request payloads.

Each validator returns the cleaned value or raises ValidationError with a
message suitable for showing inline next to the form field.
"""

import re
from decimal import Decimal, InvalidOperation

from nestpay.errors import ValidationError

MAX_AMOUNT = Decimal("100000000")
JOIN_CODE_RE = re.compile(r"^[A-Za-z0-9-]+$")
CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")
UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[0-9 ()-]{7,20}$")


def validate_amount(value, field="Amount"):
    """
    Validate a money amount.

    Requirements:
    - Numeric
    - Greater than 0
    - At most 100,000,000

    Returns:
        Decimal: the amount
    """
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a valid number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a valid number")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds maximum allowed")
    return amount


def validate_currency(value):
    if not isinstance(value, str) or not CURRENCY_RE.match(value.strip()):
        raise ValidationError("Currency must be a 3-letter code")
    return value.strip().upper()


def validate_join_code(value):
    """Join codes are 1-50 chars of letters, digits and hyphens; matched upper-cased."""
    code = (value or "").strip() if isinstance(value, str) else ""
    if not code:
        raise ValidationError("Join code is required")
    if len(code) > 50:
        raise ValidationError("Join code is too long")
    if not JOIN_CODE_RE.match(code):
        raise ValidationError("Join code contains invalid characters")
    return code.upper()


def validate_uuid(value, field="id"):
    if not isinstance(value, str) or not UUID_RE.match(value):
        raise ValidationError(f"Invalid {field}")
    return value.lower()


def validate_text(value, field, max_length, required=False):
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field} must be less than {max_length} characters")
    return value


def validate_int_range(value, field, minimum, maximum, required=False):
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number")
    if number != value and str(number) != str(value):
        raise ValidationError(f"{field} must be a whole number")
    if number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if number > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum}")
    return number


def validate_choice(value, field, choices):
    if value not in choices:
        raise ValidationError(f"Please select a valid {field}")
    return value


def validate_bool(value, field):
    # JSON booleans only; "false" must not become True
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false")
    return value


def validate_email(value, required=False):
    email = validate_text(value, "Email", 255, required=required)
    if email is None:
        return None
    if not EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email address")
    return email.lower()


def validate_phone(value):
    phone = validate_text(value, "Phone number", 30)
    if phone is None:
        return None
    if not PHONE_RE.match(phone):
        raise ValidationError("Please enter a valid phone number")
    return phone
