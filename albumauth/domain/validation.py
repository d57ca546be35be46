"""Input validation rules for signup, login and password recovery.

Every function is pure: it never normalises or mutates its input and can be
called from any thread.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 20
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 50
PHONE_NUMBER_LENGTH = 11
OTP_LENGTH = 6

_USERNAME_PATTERN = re.compile(r"[a-zA-Z0-9_]+")
_EMAIL_PATTERN = re.compile(r"[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Local mobile numbers: 01 followed by an operator digit 3-9.
_PHONE_PATTERN = re.compile(r"01[3-9][0-9]{8}")
_DIGITS_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    error_message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.is_valid


VALID = ValidationResult(True)


def _invalid(message: str) -> ValidationResult:
    return ValidationResult(False, message)


def _is_blank(value: str) -> bool:
    return not value.strip()


def _is_digits(value: str) -> bool:
    return _DIGITS_PATTERN.fullmatch(value) is not None


def validate_username(username: str) -> ValidationResult:
    """3-20 characters, letters, digits and underscore only."""
    if _is_blank(username):
        return _invalid("Username cannot be empty")
    if len(username) < MIN_USERNAME_LENGTH:
        return _invalid(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if len(username) > MAX_USERNAME_LENGTH:
        return _invalid(f"Username cannot exceed {MAX_USERNAME_LENGTH} characters")
    if not _USERNAME_PATTERN.fullmatch(username):
        return _invalid("Username can only contain letters, numbers, and underscore")
    return VALID


def validate_email(email: str) -> ValidationResult:
    """Email is optional, so a blank value is valid."""
    if _is_blank(email):
        return VALID
    if not _EMAIL_PATTERN.fullmatch(email):
        return _invalid("Invalid email format")
    return VALID


def validate_phone_number(phone_number: str) -> ValidationResult:
    """11 digits starting with 013-019."""
    if _is_blank(phone_number):
        return _invalid("Phone number cannot be empty")
    if len(phone_number) != PHONE_NUMBER_LENGTH:
        return _invalid(f"Phone number must be {PHONE_NUMBER_LENGTH} digits")
    if not _is_digits(phone_number):
        return _invalid("Phone number must contain only digits")
    if not _PHONE_PATTERN.fullmatch(phone_number):
        return _invalid("Invalid phone number. Must start with 013-019")
    return VALID


def validate_password(password: str) -> ValidationResult:
    if _is_blank(password):
        return _invalid("Password cannot be empty")
    if len(password) < MIN_PASSWORD_LENGTH:
        return _invalid(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password) > MAX_PASSWORD_LENGTH:
        return _invalid(f"Password cannot exceed {MAX_PASSWORD_LENGTH} characters")
    return VALID


def validate_confirm_password(password: str, confirm_password: str) -> ValidationResult:
    if _is_blank(confirm_password):
        return _invalid("Please confirm your password")
    if password != confirm_password:
        return _invalid("Passwords do not match")
    return VALID


def validate_otp(otp: str) -> ValidationResult:
    if _is_blank(otp):
        return _invalid("OTP cannot be empty")
    if len(otp) != OTP_LENGTH:
        return _invalid(f"OTP must be {OTP_LENGTH} digits")
    if not _is_digits(otp):
        return _invalid("OTP must contain only digits")
    return VALID


def validate_signup(
    username: str,
    email: str,
    phone_number: str,
    password: str,
    confirm_password: str,
) -> ValidationResult:
    """Run the signup validators in form order and return the first failure."""
    for result in (
        validate_username(username),
        validate_email(email),
        validate_phone_number(phone_number),
        validate_password(password),
        validate_confirm_password(password, confirm_password),
    ):
        if not result:
            return result
    return VALID


def sanitize_phone_number(phone_number: str) -> str:
    """Drop spaces, dashes and anything else that is not an ASCII digit."""
    return "".join(ch for ch in phone_number if "0" <= ch <= "9")


def format_phone_number(phone_number: str) -> str:
    """Display form, e.g. ``01712345678`` -> ``01712-345678``."""
    if _PHONE_PATTERN.fullmatch(phone_number):
        return f"{phone_number[:5]}-{phone_number[5:]}"
    return phone_number
