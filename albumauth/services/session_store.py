from __future__ import annotations

import logging
import threading

from ..domain.models import Session
from ..domain.ports.persistence import SessionRepository
from .state_feed import StateFeed, Subscription

logger = logging.getLogger(__name__)


class SessionStore:
    """Persistent "who is logged in" record with a live feed of every committed value."""

    def __init__(self, repository: SessionRepository) -> None:
        self._repository = repository
        self._lock = threading.Lock()
        self._feed: StateFeed[Session] = StateFeed(repository.load_session())

    @property
    def feed(self) -> StateFeed[Session]:
        return self._feed

    def save(self, user_id: int, username: str) -> Session:
        with self._lock:
            self._repository.save_session(user_id, username)
            session = self._repository.load_session()
            self._feed.publish(session)
        logger.info("Session opened for user %s", user_id)
        return session

    def clear(self) -> Session:
        with self._lock:
            self._repository.clear_session()
            session = self._repository.load_session()
            self._feed.publish(session)
        logger.info("Session cleared")
        return session

    def read(self) -> Session:
        with self._lock:
            return self._repository.load_session()

    def observe(self) -> Subscription[Session]:
        return self._feed.subscribe()
