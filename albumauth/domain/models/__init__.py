"""Domain models for the albumauth core."""

from .account import Account, NewAccount
from .auth_state import (
    AuthState,
    Error,
    Idle,
    Loading,
    LoginSuccess,
    LogoutSuccess,
    OtpVerified,
    PasswordResetSuccess,
    PhoneNumberFound,
    SignupSuccess,
)
from .session import Session

__all__ = [
    "Account",
    "AuthState",
    "Error",
    "Idle",
    "Loading",
    "LoginSuccess",
    "LogoutSuccess",
    "NewAccount",
    "OtpVerified",
    "PasswordResetSuccess",
    "PhoneNumberFound",
    "Session",
    "SignupSuccess",
]
