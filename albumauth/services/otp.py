"""
One-time passcodes for phone verification and password recovery.

Issuers:
- StaticOtpIssuer: one fixed code for every phone number. This is the demo
  behaviour of the mobile client and the default provider; it also serves as
  the test double.
- GeneratedOtpIssuer: random 6 digit code per phone number, stored only as a
  SHA-256 hash, compared in constant time, expiring after a TTL, locked after
  too many attempts and deleted after a successful verification.

Delivery of generated codes goes through an ``OtpDelivery`` implementation.
Only a logging delivery ships here; an SMS gateway plugs in behind the same
interface.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from typing import TYPE_CHECKING, Callable, Dict, Optional

if TYPE_CHECKING:
    from ..core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_STATIC_CODE = "111111"
OTP_TTL_MINUTES = 10
OTP_MAX_ATTEMPTS = 5


def mask_phone(phone_number: str) -> str:
    """Keep the operator prefix and the last two digits for log lines."""
    if len(phone_number) <= 5:
        return "***"
    return f"{phone_number[:3]}******{phone_number[-2:]}"


def generate_otp() -> str:
    """Cryptographically random 6 digit code, zero padded."""
    return f"{secrets.randbelow(1000000):06d}"


def hash_otp(otp: str) -> str:
    return sha256(otp.encode("utf-8")).hexdigest()


def verify_otp_hash(otp: str, otp_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(otp), otp_hash)


# ============================================================
# Delivery
# ============================================================


class OtpDelivery(ABC):
    """Out-of-band channel that carries a code to the phone owner."""

    @abstractmethod
    def send(self, phone_number: str, otp: str) -> bool:
        """Deliver ``otp``; return False when the channel failed."""

    @abstractmethod
    def get_provider_name(self) -> str:
        ...


class LoggingOtpDelivery(OtpDelivery):
    """Development delivery: writes the code to the application log."""

    def send(self, phone_number: str, otp: str) -> bool:
        logger.info("[DEV OTP] Code for %s: %s", mask_phone(phone_number), otp)
        return True

    def get_provider_name(self) -> str:
        return "log"


# ============================================================
# Issuers
# ============================================================


class OtpIssuer(ABC):
    @abstractmethod
    def issue(self, phone_number: str) -> None:
        """Create (and deliver) a code for ``phone_number``."""

    @abstractmethod
    def verify(self, phone_number: str, otp: str) -> bool:
        ...

    @property
    @abstractmethod
    def failure_message(self) -> str:
        """Message shown when ``verify`` rejects a code."""


class StaticOtpIssuer(OtpIssuer):
    def __init__(self, code: str = DEFAULT_STATIC_CODE) -> None:
        self._code = code

    def issue(self, phone_number: str) -> None:
        logger.info("Static OTP in use for %s", mask_phone(phone_number))

    def verify(self, phone_number: str, otp: str) -> bool:
        return hmac.compare_digest(otp.encode("utf-8"), self._code.encode("utf-8"))

    @property
    def failure_message(self) -> str:
        return f"Invalid OTP. Please enter {self._code}"


@dataclass(slots=True)
class PendingCode:
    otp_hash: str
    expires_at: datetime
    attempts: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class GeneratedOtpIssuer(OtpIssuer):
    """Single-use random codes held in memory, one active code per phone number."""

    def __init__(
        self,
        delivery: OtpDelivery,
        *,
        ttl_minutes: int = OTP_TTL_MINUTES,
        max_attempts: int = OTP_MAX_ATTEMPTS,
        clock: Optional[Callable[[], datetime]] = None,
        generator: Callable[[], str] = generate_otp,
    ) -> None:
        self._delivery = delivery
        self._ttl = timedelta(minutes=ttl_minutes)
        self._max_attempts = max_attempts
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._generator = generator
        self._pending: Dict[str, PendingCode] = {}
        self._lock = threading.Lock()

    def issue(self, phone_number: str) -> None:
        otp = self._generator()
        with self._lock:
            now = self._clock()
            previous = self._pending.get(phone_number)
            attempts = 0
            if previous is not None and not previous.is_expired(now):
                # Failed guesses carry over so a reissue cannot lift a lock early.
                attempts = previous.attempts
            self._pending[phone_number] = PendingCode(
                otp_hash=hash_otp(otp),
                expires_at=now + self._ttl,
                attempts=attempts,
            )
        if self._delivery.send(phone_number, otp):
            logger.info(
                "OTP issued for %s via %s", mask_phone(phone_number), self._delivery.get_provider_name()
            )
        else:
            logger.warning("OTP delivery failed for %s", mask_phone(phone_number))

    def verify(self, phone_number: str, otp: str) -> bool:
        with self._lock:
            record = self._pending.get(phone_number)
            if record is None:
                logger.info("No pending OTP for %s", mask_phone(phone_number))
                return False
            if record.is_expired(self._clock()):
                del self._pending[phone_number]
                logger.info("OTP expired for %s", mask_phone(phone_number))
                return False
            if record.attempts >= self._max_attempts:
                logger.warning("OTP locked for %s", mask_phone(phone_number))
                return False
            if not verify_otp_hash(otp, record.otp_hash):
                record.attempts += 1
                logger.info(
                    "OTP mismatch for %s, %d attempts remaining",
                    mask_phone(phone_number),
                    self._max_attempts - record.attempts,
                )
                return False
            del self._pending[phone_number]
        logger.info("OTP verified for %s", mask_phone(phone_number))
        return True

    @property
    def failure_message(self) -> str:
        return "Invalid or expired OTP. Request a new code and try again."


def build_otp_issuer(settings: "Settings") -> OtpIssuer:
    """Select the issuer named by ``OTP_PROVIDER``."""
    provider = settings.otp_provider
    if provider == "generated":
        return GeneratedOtpIssuer(
            LoggingOtpDelivery(),
            ttl_minutes=settings.otp_ttl_minutes,
            max_attempts=settings.otp_max_attempts,
        )
    if provider != "static":
        logger.warning("Unknown OTP_PROVIDER '%s', falling back to static", provider)
    return StaticOtpIssuer(settings.otp_static_code)
