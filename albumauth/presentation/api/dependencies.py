from fastapi import Depends, HTTPException, status

from ...core.dependencies import get_session_store
from ...domain.models import Session
from ...services.session_store import SessionStore


def require_session(session_store: SessionStore = Depends(get_session_store)) -> Session:
    session = session_store.read()
    if not session.is_logged_in:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No user is currently logged in")
    return session
