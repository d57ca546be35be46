"""Outcome of the most recent authentication operation.

The service starts in ``Idle``, moves to ``Loading`` when an operation starts
and to exactly one terminal variant when it completes. Only the consumer moves
it back to ``Idle``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict


@dataclass(frozen=True, slots=True)
class AuthState:
    kind: ClassVar[str] = "unknown"

    @property
    def is_terminal(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"state": self.kind}


@dataclass(frozen=True, slots=True)
class Idle(AuthState):
    kind: ClassVar[str] = "idle"

    @property
    def is_terminal(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Loading(AuthState):
    kind: ClassVar[str] = "loading"

    @property
    def is_terminal(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Error(AuthState):
    message: str
    kind: ClassVar[str] = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"state": self.kind, "message": self.message}


@dataclass(frozen=True, slots=True)
class LoginSuccess(AuthState):
    kind: ClassVar[str] = "login_success"


@dataclass(frozen=True, slots=True)
class SignupSuccess(AuthState):
    kind: ClassVar[str] = "signup_success"


@dataclass(frozen=True, slots=True)
class PasswordResetSuccess(AuthState):
    kind: ClassVar[str] = "password_reset_success"


@dataclass(frozen=True, slots=True)
class PhoneNumberFound(AuthState):
    phone_number: str
    kind: ClassVar[str] = "phone_number_found"

    def to_dict(self) -> Dict[str, Any]:
        return {"state": self.kind, "phone_number": self.phone_number}


@dataclass(frozen=True, slots=True)
class OtpVerified(AuthState):
    kind: ClassVar[str] = "otp_verified"


@dataclass(frozen=True, slots=True)
class LogoutSuccess(AuthState):
    kind: ClassVar[str] = "logout_success"
