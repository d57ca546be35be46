from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, TypeVar

from ...domain.errors import AuthError, ConflictError, NotFoundError, ValidationError
from ...domain.models import (
    Account,
    AuthState,
    Error,
    Idle,
    Loading,
    LoginSuccess,
    LogoutSuccess,
    NewAccount,
    OtpVerified,
    PasswordResetSuccess,
    PhoneNumberFound,
    Session,
    SignupSuccess,
)
from ...domain.ports.persistence import AccountRepository
from ...domain.validation import validate_confirm_password, validate_password
from ...services.otp import OtpIssuer, mask_phone
from ...services.session_store import SessionStore
from ...services.state_feed import StateFeed

logger = logging.getLogger(__name__)

T = TypeVar("T")

USERNAME_TAKEN_MESSAGE = "Username already registered"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials or account not verified"
PHONE_NOT_FOUND_MESSAGE = "No account found with this phone number"
RESET_ACCOUNT_NOT_FOUND_MESSAGE = "No account found with this username and phone number"
RESET_FAILED_MESSAGE = "Failed to reset password. Try again."
NOT_LOGGED_IN_MESSAGE = "No user is currently logged in"
GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."


class AuthService:
    """
    Drives signup, login, logout, phone lookup, OTP verification, password
    reset and account deletion.

    The service owns one observable ``AuthState`` cell. Each operation
    publishes ``Loading``, performs its store I/O off the event loop and then
    publishes exactly one terminal state, which it also returns. Failures never
    escape an operation; they become ``Error(message)``. The consumer calls
    ``reset_ui_state`` after acting on a terminal state.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        sessions: SessionStore,
        otp_issuer: OtpIssuer,
        *,
        verified_on_signup: bool = True,
        login_requires_verification: bool = False,
    ) -> None:
        self._accounts = accounts
        self._sessions = sessions
        self._otp = otp_issuer
        self._verified_on_signup = verified_on_signup
        self._login_requires_verification = login_requires_verification
        self._state: StateFeed[AuthState] = StateFeed(Idle())

    # Observable state --------------------------------------------------------
    @property
    def state(self) -> AuthState:
        return self._state.value

    @property
    def state_feed(self) -> StateFeed[AuthState]:
        return self._state

    @property
    def session_feed(self) -> StateFeed[Session]:
        return self._sessions.feed

    def reset_ui_state(self) -> AuthState:
        self._state.publish(Idle())
        return self._state.value

    # Operations --------------------------------------------------------------
    async def register(self, account: NewAccount) -> AuthState:
        async def work() -> AuthState:
            if await self._io(self._accounts.username_exists, account.username):
                return Error(USERNAME_TAKEN_MESSAGE)
            new_account = account
            if new_account.is_verified is None:
                new_account = replace(account, is_verified=self._verified_on_signup)
            try:
                account_id = await self._io(self._accounts.insert_account, new_account)
            except ConflictError:
                return Error(USERNAME_TAKEN_MESSAGE)
            logger.info("Account %s created for %s", account_id, account.username)
            return SignupSuccess()

        return await self._run("register", work)

    async def login(self, username: str, password: str) -> AuthState:
        async def work() -> AuthState:
            account = await self._io(self._accounts.verify_credentials, username, password)
            if account is None:
                return Error(INVALID_CREDENTIALS_MESSAGE)
            if self._login_requires_verification and not account.is_verified:
                logger.info("Rejected login for unverified account %s", account.id)
                return Error(INVALID_CREDENTIALS_MESSAGE)
            await self._io(self._sessions.save, account.id, account.username)
            return LoginSuccess()

        return await self._run("login", work)

    async def logout(self) -> AuthState:
        async def work() -> AuthState:
            await self._io(self._sessions.clear)
            return LogoutSuccess()

        return await self._run("logout", work)

    async def check_phone_number(self, phone_number: str) -> AuthState:
        async def work() -> AuthState:
            account = await self._io(self._accounts.get_account_by_phone_number, phone_number)
            if account is None:
                raise NotFoundError(PHONE_NOT_FOUND_MESSAGE)
            await self._io(self._otp.issue, phone_number)
            return PhoneNumberFound(phone_number)

        return await self._run("check_phone_number", work)

    async def verify_otp(self, phone_number: str, otp: str) -> AuthState:
        async def work() -> AuthState:
            if not await self._io(self._otp.verify, phone_number, otp):
                return Error(self._otp.failure_message)
            updated = await self._io(self._accounts.mark_verified, phone_number)
            logger.info("Marked %d account(s) verified for %s", updated, mask_phone(phone_number))
            return OtpVerified()

        return await self._run("verify_otp", work)

    async def reset_password(
        self,
        username: str,
        phone_number: str,
        new_password: str,
        confirm_password: str,
    ) -> AuthState:
        async def work() -> AuthState:
            for result in (
                validate_password(new_password),
                validate_confirm_password(new_password, confirm_password),
            ):
                if not result:
                    raise ValidationError(result.error_message or "Invalid password")
            account = await self._io(
                self._accounts.get_account_by_username_and_phone, username, phone_number
            )
            if account is None:
                raise NotFoundError(RESET_ACCOUNT_NOT_FOUND_MESSAGE)
            rows = await self._io(
                self._accounts.update_password, phone_number, new_password, username=username
            )
            if rows <= 0:
                return Error(RESET_FAILED_MESSAGE)
            logger.info("Password reset for account %s", account.id)
            return PasswordResetSuccess()

        return await self._run("reset_password", work)

    async def delete_current_account(self) -> AuthState:
        """Delete the logged-in account, then log out. Ends in ``LogoutSuccess``."""

        async def work() -> AuthState:
            session = await self._io(self._sessions.read)
            if not session.is_logged_in or session.username is None:
                return Error(NOT_LOGGED_IN_MESSAGE)
            deleted = await self._io(self._accounts.delete_account, session.username)
            logger.info("Deleted %d account(s) for user %s", deleted, session.user_id)
            await self._io(self._sessions.clear)
            return LogoutSuccess()

        return await self._run("delete_current_account", work)

    # Queries -------------------------------------------------------------------
    async def get_current_account(self) -> Optional[Account]:
        session = await self._io(self._sessions.read)
        if session.user_id is None:
            return None
        return await self._io(self._accounts.get_account_by_id, session.user_id)

    async def list_accounts(self) -> List[Account]:
        return await self._io(self._accounts.list_accounts)

    def current_session(self) -> Session:
        return self._sessions.read()

    def is_logged_in(self) -> bool:
        return self._sessions.read().is_logged_in

    def current_username(self) -> Optional[str]:
        return self._sessions.read().username

    # Internals -----------------------------------------------------------------
    async def _run(self, operation: str, work: Callable[[], Awaitable[AuthState]]) -> AuthState:
        self._state.publish(Loading())
        try:
            outcome = await work()
        except AuthError as exc:
            outcome = Error(exc.message)
        except Exception as exc:
            logger.exception("Unexpected failure during %s", operation)
            outcome = Error(str(exc) or GENERIC_FAILURE_MESSAGE)
        if isinstance(outcome, Error):
            logger.info("%s failed: %s", operation, outcome.message)
        self._state.publish(outcome)
        return outcome

    @staticmethod
    async def _io(func: Callable[..., T], *args, **kwargs) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)
