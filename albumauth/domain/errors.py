"""Error taxonomy shared by the stores and the authentication service."""


class AuthError(Exception):
    """Base class for recoverable authentication failures.

    The message is meant to be shown to the user verbatim.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(AuthError):
    """Input rejected by a validator."""


class ConflictError(AuthError):
    """A uniqueness rule was violated (duplicate username)."""


class NotFoundError(AuthError):
    """A lookup matched no account."""


class StoreError(AuthError):
    """The underlying persistence layer failed."""
