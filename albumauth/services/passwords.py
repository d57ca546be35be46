from __future__ import annotations

from typing import Sequence

from passlib.context import CryptContext

DEFAULT_SCHEMES = ("pbkdf2_sha256",)


class PasswordHasher:
    """Salted one-way password hashing backed by passlib."""

    def __init__(self, schemes: Sequence[str] = DEFAULT_SCHEMES) -> None:
        if not schemes:
            raise RuntimeError("At least one password hashing scheme is required.")
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Unrecognised or malformed hash in the database.
            return False

    def dummy_verify(self) -> None:
        """Burn the same time as a real verify so unknown usernames are not observable."""
        self._context.dummy_verify()
