import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import aiohttp

from ...application.ports.otp_delivery import DeliveryResult, OTPDelivery
from ...utils import mask_phone, normalize_phone

logger = logging.getLogger(__name__)


class WhatsAppOTPDelivery(OTPDelivery):
    """Sends OTP codes through the WhatsApp gateway's ``/auth/send-otp`` template endpoint."""

    channel = "WhatsApp"

    def __init__(
        self,
        base_url: str,
        token: str,
        channel_id: str,
        template_name: str = "otp_verification",
        template_language: str = "en",
        timeout_seconds: float = 10.0,
        session_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.url = f"{base_url.rstrip('/')}/auth/send-otp"
        self.token = token
        self.channel_id = channel_id
        self.template_name = template_name
        self.template_language = template_language
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session_factory = session_factory or aiohttp.ClientSession

    def build_payload(self, phone: str, code: str) -> Dict[str, Any]:
        return {
            "to": normalize_phone(phone),
            "code": code,
            "templateName": self.template_name,
            "templateLanguage": self.template_language,
            "channelId": self.channel_id,
        }

    async def send(self, phone: str, code: str) -> DeliveryResult:
        payload = self.build_payload(phone, code)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }
        try:
            async with self._session_factory(timeout=self.timeout) as session:
                async with session.post(self.url, json=payload, headers=headers) as response:
                    result = await _read_json(response)
                    if 200 <= response.status < 300:
                        logger.info(f"OTP sent successfully to {mask_phone(payload['to'])} via WhatsApp")
                        return DeliveryResult(sent=True)
                    error = result.get("message") or result.get("error") or f"HTTP {response.status}"
                    logger.error(f"WhatsApp OTP send failed: {error}")
                    return DeliveryResult(sent=False, error=str(error))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"WhatsApp OTP send error: {e!r}")
            return DeliveryResult(sent=False, error=str(e) or "Failed to send OTP")


async def _read_json(response) -> Dict[str, Any]:
    try:
        data = await response.json(content_type=None)
    except (aiohttp.ContentTypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}
