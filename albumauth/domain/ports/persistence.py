from __future__ import annotations

from typing import List, Optional, Protocol

from ..models import Account, NewAccount, Session


class AccountRepository(Protocol):
    """Durable table of registered accounts. Each call is one transaction."""

    def insert_account(self, account: NewAccount) -> int:
        """Persist ``account`` and return its id; raises ``ConflictError`` on a taken username."""
        ...

    def get_account_by_id(self, account_id: int) -> Optional[Account]:
        ...

    def get_account_by_username(self, username: str) -> Optional[Account]:
        ...

    def get_account_by_phone_number(self, phone_number: str) -> Optional[Account]:
        ...

    def get_account_by_username_and_phone(self, username: str, phone_number: str) -> Optional[Account]:
        ...

    def verify_credentials(self, username: str, password: str) -> Optional[Account]:
        ...

    def username_exists(self, username: str) -> bool:
        ...

    def mark_verified(self, phone_number: str) -> int:
        ...

    def update_password(
        self,
        phone_number: str,
        new_password: str,
        *,
        username: Optional[str] = None,
    ) -> int:
        ...

    def delete_account(self, username: str) -> int:
        ...

    def list_accounts(self) -> List[Account]:
        ...


class SessionRepository(Protocol):
    """Durable single-record region describing the logged-in principal."""

    def save_session(self, user_id: int, username: str) -> None:
        ...

    def clear_session(self) -> None:
        ...

    def load_session(self) -> Session:
        ...


class PersistenceGateway(AccountRepository, SessionRepository, Protocol):
    """Composite gateway combining every persistence concern used by the app."""

    def close(self) -> None:
        ...
