import asyncio
import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from ...application.ports.otp_delivery import DeliveryResult, OTPDelivery
from ...utils import mask_phone, normalize_phone

logger = logging.getLogger(__name__)

SMS_TEMPLATE = "Your verification code is {code}. It expires in {minutes} minutes."


class TwilioSMSOTPDelivery(OTPDelivery):
    channel = "SMS"

    def __init__(self, account_sid: str, auth_token: str, from_number: str, ttl_minutes: int = 5, client: Optional[Client] = None):
        self.client = client or Client(account_sid, auth_token)
        self.from_number = from_number
        self.ttl_minutes = ttl_minutes

    def _send_sync(self, to: str, code: str) -> str:
        if not self.from_number:
            raise RuntimeError("Twilio phone number not configured")
        message = self.client.messages.create(
            to=to,
            from_=self.from_number,
            body=SMS_TEMPLATE.format(code=code, minutes=self.ttl_minutes),
        )
        return message.sid

    async def send(self, phone: str, code: str) -> DeliveryResult:
        to = normalize_phone(phone)
        try:
            # twilio's client is blocking
            sid = await asyncio.to_thread(self._send_sync, to, code)
        except (TwilioException, RuntimeError) as e:
            logger.error(f"Twilio SMS OTP send failed: {e}")
            return DeliveryResult(sent=False, error=str(e))
        logger.info(f"OTP sent to {mask_phone(to)} via SMS (sid={sid})")
        return DeliveryResult(sent=True)
