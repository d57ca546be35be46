import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ...domain.errors import ConflictError, StoreError
from ...domain.models import Account, NewAccount, Session
from ...domain.ports.persistence import PersistenceGateway
from ...services.passwords import PasswordHasher

logger = logging.getLogger(__name__)


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed account table and session region."""

    def __init__(self, path: Path, hasher: PasswordHasher) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._hasher = hasher
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    email TEXT,
                    phone_number TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    is_verified INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_accounts_phone_number
                    ON accounts(phone_number);

                CREATE TABLE IF NOT EXISTS session_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                logger.exception("Account store read failed")
                raise StoreError(f"Storage error: {exc}") from exc

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.IntegrityError as exc:
                raise ConflictError(f"Constraint violated: {exc}") from exc
            except sqlite3.Error as exc:
                logger.exception("Account store write failed")
                raise StoreError(f"Storage error: {exc}") from exc

    # AccountRepository API ---------------------------------------------------
    def insert_account(self, account: NewAccount) -> int:
        password_hash = self._hasher.hash(account.password)
        is_verified = True if account.is_verified is None else account.is_verified
        with self._write() as conn:
            cur = conn.execute("SELECT 1 FROM accounts WHERE username = ?", (account.username,))
            if cur.fetchone():
                raise ConflictError("Username already registered")
            cur = conn.execute(
                """
                INSERT INTO accounts (
                    username, email, phone_number, password_hash, is_verified, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    account.username,
                    account.email if account.email and account.email.strip() else None,
                    account.phone_number,
                    password_hash,
                    int(is_verified),
                    self._now(),
                ),
            )
            account_id = cur.lastrowid
        if not account_id:
            raise StoreError("Failed to persist account.")
        return account_id

    def get_account_by_id(self, account_id: int) -> Optional[Account]:
        return self._fetch_one("SELECT * FROM accounts WHERE id = ?", (account_id,))

    def get_account_by_username(self, username: str) -> Optional[Account]:
        return self._fetch_one("SELECT * FROM accounts WHERE username = ?", (username,))

    def get_account_by_phone_number(self, phone_number: str) -> Optional[Account]:
        return self._fetch_one(
            "SELECT * FROM accounts WHERE phone_number = ? ORDER BY id ASC LIMIT 1",
            (phone_number,),
        )

    def get_account_by_username_and_phone(self, username: str, phone_number: str) -> Optional[Account]:
        return self._fetch_one(
            "SELECT * FROM accounts WHERE username = ? AND phone_number = ?",
            (username, phone_number),
        )

    def verify_credentials(self, username: str, password: str) -> Optional[Account]:
        account = self.get_account_by_username(username)
        if account is None:
            self._hasher.dummy_verify()
            return None
        if not self._hasher.verify(password, account.password_hash):
            return None
        return account

    def username_exists(self, username: str) -> bool:
        with self._read() as conn:
            cur = conn.execute("SELECT COUNT(*) FROM accounts WHERE username = ?", (username,))
            (count,) = cur.fetchone()
        return count > 0

    def mark_verified(self, phone_number: str) -> int:
        with self._write() as conn:
            cur = conn.execute(
                "UPDATE accounts SET is_verified = 1 WHERE phone_number = ?", (phone_number,)
            )
            return cur.rowcount

    def update_password(
        self,
        phone_number: str,
        new_password: str,
        *,
        username: Optional[str] = None,
    ) -> int:
        password_hash = self._hasher.hash(new_password)
        statement = "UPDATE accounts SET password_hash = ? WHERE phone_number = ?"
        params: List[object] = [password_hash, phone_number]
        if username is not None:
            statement += " AND username = ?"
            params.append(username)
        with self._write() as conn:
            cur = conn.execute(statement, params)
            return cur.rowcount

    def delete_account(self, username: str) -> int:
        with self._write() as conn:
            cur = conn.execute("DELETE FROM accounts WHERE username = ?", (username,))
            return cur.rowcount

    def list_accounts(self) -> List[Account]:
        with self._read() as conn:
            cur = conn.execute("SELECT * FROM accounts ORDER BY created_at DESC, id DESC")
            rows = cur.fetchall()
        return [self._row_to_account(row) for row in rows]

    # SessionRepository API ---------------------------------------------------
    def save_session(self, user_id: int, username: str) -> None:
        values = {
            "is_logged_in": "1",
            "user_id": str(user_id),
            "username": username,
            "last_login": self._now(),
        }
        with self._write() as conn:
            conn.execute("DELETE FROM session_state")
            conn.executemany(
                "INSERT INTO session_state (key, value) VALUES (?, ?)",
                list(values.items()),
            )

    def clear_session(self) -> None:
        with self._write() as conn:
            conn.execute("DELETE FROM session_state")

    def load_session(self) -> Session:
        with self._read() as conn:
            cur = conn.execute("SELECT key, value FROM session_state")
            values: Dict[str, str] = {row["key"]: row["value"] for row in cur.fetchall()}
        if values.get("is_logged_in") != "1" or "user_id" not in values or "username" not in values:
            return Session.logged_out()
        last_login = values.get("last_login")
        return Session.logged_in(
            user_id=int(values["user_id"]),
            username=values["username"],
            last_login=self._parse_datetime(last_login) if last_login else None,
        )

    # Helpers ----------------------------------------------------------------
    def _fetch_one(self, query: str, params: tuple) -> Optional[Account]:
        with self._read() as conn:
            cur = conn.execute(query, params)
            row = cur.fetchone()
        return self._row_to_account(row) if row else None

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        try:
            result = datetime.fromisoformat(value)
        except ValueError:
            # Fallback for legacy formats without 'T'
            result = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            phone_number=row["phone_number"],
            password_hash=row["password_hash"],
            is_verified=bool(row["is_verified"]),
            created_at=self._parse_datetime(row["created_at"]),
        )
