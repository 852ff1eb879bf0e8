"""Field validation rules by type.

Every rule returns a fresh ValidationResult; valid results carry the value
that should be written (coerced where the type calls for it).
"""
import re
from typing import Any, Iterable, Optional
from urllib.parse import urlsplit

from formfill.domain.models import ErrorKind, FieldOption, TargetField, ValidationResult
from formfill.utils.dates import as_number, from_serial, parse_date
from formfill.utils.text import is_blank, to_text

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_HOST_SCHEMES = {"http", "https", "ftp", "ws", "wss", "file"}

NUMBER_TYPES = {"number", "range"}
DATE_TYPES = {"date", "datetime", "datetime-local"}
SELECT_TYPES = {"select", "select-one", "select-multiple"}


def validate_required(value: Any, field: TargetField) -> ValidationResult:
    if field.required and is_blank(value):
        return ValidationResult.fail(ErrorKind.REQUIRED_EMPTY, "Required field cannot be empty")
    return ValidationResult.ok(value)


def validate_email(value: Any) -> ValidationResult:
    if is_blank(value):
        return ValidationResult.ok(value)
    text = str(value).strip()
    if not EMAIL_RE.match(text):
        return ValidationResult.fail(ErrorKind.INVALID_FORMAT, "Invalid email format")
    return ValidationResult.ok(text)


def validate_phone(value: Any) -> ValidationResult:
    if is_blank(value):
        return ValidationResult.ok(value)
    text = to_text(value).strip()
    digits = sum(1 for char in text if char.isdigit())
    if digits < 7 or digits > 15:
        return ValidationResult.fail(
            ErrorKind.INVALID_LENGTH, f"Invalid phone length ({digits} digits)"
        )
    return ValidationResult.ok(text)


def validate_number(value: Any, field: TargetField) -> ValidationResult:
    if is_blank(value):
        return ValidationResult.ok("")
    number = as_number(value)
    if number is None:
        return ValidationResult.fail(ErrorKind.NOT_A_NUMBER, "Not a valid number")

    minimum = as_number(field.min)
    maximum = as_number(field.max)
    if minimum is not None and number < minimum:
        return ValidationResult.fail(ErrorKind.BELOW_MINIMUM, f"Below minimum ({to_text(minimum)})")
    if maximum is not None and number > maximum:
        return ValidationResult.fail(ErrorKind.ABOVE_MAXIMUM, f"Above maximum ({to_text(maximum)})")
    return ValidationResult.ok(number)


def validate_date(value: Any) -> ValidationResult:
    if is_blank(value):
        return ValidationResult.ok("")

    parsed = parse_date(value)
    if parsed is None:
        serial = as_number(value)
        if serial is not None:
            parsed = from_serial(serial)

    if parsed is None:
        return ValidationResult.fail(ErrorKind.INVALID_FORMAT, "Invalid date format")
    return ValidationResult.ok(parsed.strftime("%Y-%m-%d"))


def _find_option(options: Iterable[FieldOption], wanted: str) -> Optional[FieldOption]:
    options = list(options)
    for option in options:
        if str(option.value).lower() == wanted:
            return option
    for option in options:
        if str(option.text).strip().lower() == wanted:
            return option
    for option in options:
        text = str(option.text).strip().lower()
        if text and (wanted in text or text in wanted):
            return option
    return None


def validate_select(value: Any, options: Optional[Iterable[FieldOption]]) -> ValidationResult:
    if is_blank(value):
        return ValidationResult.ok("")
    if not options:
        return ValidationResult.ok(value)

    match = _find_option(options, to_text(value).strip().lower())
    if match is None:
        return ValidationResult.fail(ErrorKind.NOT_IN_OPTIONS, f'"{value}" not in dropdown options')
    return ValidationResult.ok(match.value)


def is_absolute_url(text: str) -> bool:
    """True when text has a scheme and, for network schemes, a host."""
    if not text or any(char.isspace() for char in text):
        return False
    try:
        parts = urlsplit(text)
    except ValueError:
        return False
    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return False
    if parts.scheme.lower() in _HOST_SCHEMES:
        return bool(parts.netloc)
    return bool(parts.netloc or parts.path)


def validate_url(value: Any) -> ValidationResult:
    if is_blank(value):
        return ValidationResult.ok("")
    text = str(value).strip()
    if is_absolute_url(text):
        return ValidationResult.ok(text)
    prefixed = "https://" + text
    if is_absolute_url(prefixed):
        return ValidationResult.ok(prefixed)
    return ValidationResult.fail(ErrorKind.INVALID_FORMAT, "Invalid URL format")


def validate(value: Any, field: TargetField) -> ValidationResult:
    """Validate a value for a field and return the value to write."""
    required = validate_required(value, field)
    if not required.valid:
        return required

    field_type = field.field_type
    if field_type == "email":
        return validate_email(value)
    if field_type == "tel":
        return validate_phone(value)
    if field_type in NUMBER_TYPES:
        return validate_number(value, field)
    if field_type in DATE_TYPES:
        return validate_date(value)
    if field_type in SELECT_TYPES:
        return validate_select(value, field.options)
    if field_type == "url":
        return validate_url(value)
    return ValidationResult.ok(value)
