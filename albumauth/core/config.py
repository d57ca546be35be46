import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/albumauth.db")).resolve()
        self.otp_provider = os.getenv("OTP_PROVIDER", "static").strip().lower()
        self.otp_static_code = os.getenv("OTP_STATIC_CODE", "111111")
        self.otp_ttl_minutes = self._get_int("OTP_TTL_MINUTES", default=10)
        self.otp_max_attempts = self._get_int("OTP_MAX_ATTEMPTS", default=5)
        self.accounts_verified_on_signup = self._get_bool("ACCOUNTS_VERIFIED_ON_SIGNUP", default=True)
        self.login_requires_verification = self._get_bool("LOGIN_REQUIRES_VERIFICATION", default=False)
        self.password_schemes = self._get_list("PASSWORD_SCHEMES") or ["pbkdf2_sha256"]
        self.cors_allow_origins = self._get_list("CORS_ALLOW_ORIGINS") or ["*"]

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise RuntimeError(f"Environment variable {key} must be a boolean")

    @staticmethod
    def _get_list(key: str) -> List[str]:
        value = os.getenv(key)
        if not value:
            return []
        return [item.strip() for item in value.split(",") if item.strip()]
