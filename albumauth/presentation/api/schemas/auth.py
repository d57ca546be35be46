from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator

from ....domain.validation import sanitize_phone_number


def _digits_only(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_phone_number(value)
    return value


# Lookup payloads accept the display form (``01712-345678``) echoed back by clients.
LookupPhoneNumber = Annotated[str, BeforeValidator(_digits_only)]


class SignupRequest(BaseModel):
    username: str
    email: str = ""
    phone_number: str
    password: str
    confirm_password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class PhonePayload(BaseModel):
    phone_number: LookupPhoneNumber


class OtpPayload(BaseModel):
    phone_number: LookupPhoneNumber
    otp: str


class ResetPasswordRequest(BaseModel):
    username: str
    phone_number: LookupPhoneNumber
    new_password: str
    confirm_password: str


class AccountResponse(BaseModel):
    id: int
    username: str
    email: Optional[str]
    phone_number: str
    phone_display: str
    is_verified: bool
    created_at: datetime


class SessionResponse(BaseModel):
    is_logged_in: bool
    user_id: Optional[int] = None
    username: Optional[str] = None
    last_login: Optional[datetime] = None
