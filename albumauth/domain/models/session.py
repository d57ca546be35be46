from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class Session:
    """Who is logged in on this device. At most one principal at a time."""

    is_logged_in: bool = False
    user_id: Optional[int] = None
    username: Optional[str] = None
    last_login: Optional[datetime] = None

    @classmethod
    def logged_out(cls) -> "Session":
        return cls()

    @classmethod
    def logged_in(cls, user_id: int, username: str, last_login: Optional[datetime] = None) -> "Session":
        return cls(is_logged_in=True, user_id=user_id, username=username, last_login=last_login)
