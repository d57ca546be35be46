from dataclasses import dataclass

from ..application.services.auth_service import AuthService
from ..domain.ports.persistence import PersistenceGateway
from ..services.otp import OtpIssuer
from ..services.passwords import PasswordHasher
from ..services.session_store import SessionStore
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    password_hasher: PasswordHasher
    session_store: SessionStore
    otp_issuer: OtpIssuer
    auth_service: AuthService
