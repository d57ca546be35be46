from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.auth_service import AuthService
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.routers import auth as auth_router
from ..presentation.websocket import routes as websocket_routes
from ..services.otp import build_otp_issuer
from ..services.passwords import PasswordHasher
from ..services.session_store import SessionStore

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Album Auth Core", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)
    app.include_router(websocket_routes.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        container: ApplicationContainer = app.state.container  # type: ignore[attr-defined]
        return {
            "ok": True,
            "logged_in": container.session_store.read().is_logged_in,
            "state": container.auth_service.state.to_dict(),
        }

    return app


def build_container(settings: Settings) -> ApplicationContainer:
    """Construct the stores and the auth service explicitly; the caller owns teardown."""
    hasher = PasswordHasher(settings.password_schemes)
    persistence = SQLitePersistence(settings.database_path, hasher)
    session_store = SessionStore(persistence)
    otp_issuer = build_otp_issuer(settings)
    auth_service = AuthService(
        persistence,
        session_store,
        otp_issuer,
        verified_on_signup=settings.accounts_verified_on_signup,
        login_requires_verification=settings.login_requires_verification,
    )
    return ApplicationContainer(
        settings=settings,
        persistence=persistence,
        password_hasher=hasher,
        session_store=session_store,
        otp_issuer=otp_issuer,
        auth_service=auth_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = build_container(settings)
        app.state.container = container  # type: ignore[attr-defined]
        logger.info(
            "Auth core started (database=%s, otp=%s)",
            settings.database_path,
            settings.otp_provider,
        )
        try:
            yield
        finally:
            container.persistence.close()
            logger.info("Auth core stopped.")

    return lifespan
