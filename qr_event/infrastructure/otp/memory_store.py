import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

from ...application.ports.otp_store import Clock, OTPStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 5 * 60 * 1000
DEFAULT_SWEEP_THRESHOLD = 10_000


class SystemClock(Clock):
    def now_ms(self) -> int:
        return int(time.time() * 1000)


@dataclass(frozen=True)
class OtpEntry:
    code: str
    expires_at: int  # epoch milliseconds


def generate_code() -> str:
    """Uniformly random 6-digit code in 100000..999999."""
    return str(100000 + secrets.randbelow(900000))


class InMemoryOTPStore(OTPStore):
    """Process-local phone -> one-time code map.

    At most one entry exists per identifier; issuing again replaces it.
    A successful verify consumes the entry. Expired entries are dropped
    when their key is next touched, or in bulk by ``purge_expired`` once
    the map reaches ``sweep_threshold`` entries, and after that each time
    it doubles past the size left by the previous sweep. Contents do not
    survive a restart.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
    ) -> None:
        self._clock = clock or SystemClock()
        self._default_ttl_ms = default_ttl_ms
        self._sweep_threshold = sweep_threshold
        self._next_sweep = sweep_threshold
        self._entries: Dict[str, OtpEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def issue(self, identifier: str, ttl_ms: Optional[int] = None) -> str:
        ttl = self._default_ttl_ms if ttl_ms is None else ttl_ms
        code = generate_code()
        with self._lock:
            now = self._clock.now_ms()
            if self._sweep_threshold and len(self._entries) >= self._next_sweep:
                self._purge_locked(now)
                # live entries survive a sweep; wait for the map to double before scanning again
                self._next_sweep = max(self._sweep_threshold, 2 * len(self._entries))
            self._entries[identifier] = OtpEntry(code=code, expires_at=now + ttl)
        return code

    def verify(self, identifier: str, candidate: str) -> bool:
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None:
                return False
            if self._clock.now_ms() > entry.expires_at:
                del self._entries[identifier]
                return False
            if entry.code != candidate:
                return False
            del self._entries[identifier]
            return True

    def peek(self, identifier: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(identifier)
            return entry.code if entry else None

    def purge_expired(self) -> int:
        with self._lock:
            removed = self._purge_locked(self._clock.now_ms())
            self._next_sweep = max(self._sweep_threshold, 2 * len(self._entries))
            return removed

    def _purge_locked(self, now: int) -> int:
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired OTP entries")
        return len(expired)
