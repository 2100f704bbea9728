import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..ports.audit_logger import AuditLogger
from ..ports.otp_delivery import OTPDelivery
from ..ports.otp_store import OTPStore
from ..ports.rate_limiter import RateLimiter
from ...utils import normalize_phone

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    def __init__(self, scope: str):
        super().__init__(f"Too many OTP requests for this {scope}. Please try again later.")
        self.scope = scope


@dataclass(frozen=True)
class OTPRequestOutcome:
    whatsapp_sent: bool
    message: str
    error: Optional[str] = None


@dataclass
class OTPService:
    store: OTPStore
    delivery: OTPDelivery
    rate_limiter: RateLimiter
    audit: AuditLogger
    window_seconds: int = 900
    max_per_phone: int = 5
    max_per_ip: int = 30

    def _check_rate_limit(self, phone: str, ip_address: Optional[str], request_id: Optional[str]) -> None:
        # Address first, so a blocked caller never spends the phone's quota.
        # Phone buckets use the delivery form, so formatting variants share one.
        checks = []
        if ip_address:
            checks.append(("address", f"otp:ip:{ip_address}", self.max_per_ip))
        checks.append(("phone", f"otp:phone:{normalize_phone(phone)}", self.max_per_phone))
        for scope, key, limit in checks:
            if not self.rate_limiter.allow(key, limit, self.window_seconds):
                self.audit.log("otp_rate_limited", phone, request_id=request_id, ip_address=ip_address, success=False, details={"scope": scope})
                raise RateLimitExceeded(scope)

    async def request_code(self, phone: str, ip_address: Optional[str] = None, request_id: Optional[str] = None) -> OTPRequestOutcome:
        """Issue a fresh code for ``phone`` and hand it to the delivery channel.

        A failed delivery leaves the code issued; the outcome carries the
        failure so the caller can tell the visitor to retry.
        """
        # limiter backends may do network I/O
        await asyncio.to_thread(self._check_rate_limit, phone, ip_address, request_id)
        code = self.store.issue(phone)
        result = await self.delivery.send(phone, code)
        channel = self.delivery.channel

        if result.sent:
            message = f"OTP sent successfully via {channel}"
        elif result.error:
            message = f"OTP generated but {channel} send failed: {result.error}"
        else:
            message = f"OTP generated but {channel} send failed"

        self.audit.log(
            "otp_request",
            phone,
            request_id=request_id,
            ip_address=ip_address,
            success=result.sent,
            details={"channel": channel, "error": result.error} if result.error else {"channel": channel},
        )
        return OTPRequestOutcome(whatsapp_sent=result.sent, message=message, error=result.error)

    def verify_code(self, phone: str, code: str, ip_address: Optional[str] = None, request_id: Optional[str] = None) -> bool:
        ok = self.store.verify(phone, code)
        self.audit.log("otp_verify", phone, request_id=request_id, ip_address=ip_address, success=ok)
        return ok

    def debug_code(self, phone: str) -> Optional[str]:
        logger.warning("OTP debug lookup used; this must stay disabled in production")
        return self.store.peek(phone)
