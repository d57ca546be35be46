"""Account domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class NewAccount:
    """Signup input. The plaintext password never leaves the store boundary."""

    username: str
    phone_number: str
    password: str
    email: Optional[str] = None
    is_verified: Optional[bool] = None

    def __repr__(self) -> str:
        return f"<NewAccount username={self.username} phone={self.phone_number}>"


@dataclass(slots=True)
class Account:
    """
    Registered user account.

    Attributes:
        id: Store-assigned identifier, never reused
        username: Unique login name
        email: Optional contact address
        phone_number: 11 digit local number, shared accounts allowed
        password_hash: Salted one-way hash of the password
        is_verified: Whether the phone number passed OTP verification
        created_at: Creation timestamp (UTC)
    """

    id: int
    username: str
    email: Optional[str]
    phone_number: str
    password_hash: str
    is_verified: bool
    created_at: datetime

    def __repr__(self) -> str:
        return f"<Account id={self.id} username={self.username} verified={self.is_verified}>"
