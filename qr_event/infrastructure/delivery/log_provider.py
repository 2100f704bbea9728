import logging

from ...application.ports.otp_delivery import DeliveryResult, OTPDelivery
from ...utils import mask_phone

logger = logging.getLogger(__name__)


class LogOTPDelivery(OTPDelivery):
    """Local development channel: nothing leaves the process."""

    channel = "log"

    def __init__(self, reveal_code: bool = False) -> None:
        self.reveal_code = reveal_code

    async def send(self, phone: str, code: str) -> DeliveryResult:
        if self.reveal_code:
            logger.info(f"OTP for {mask_phone(phone)}: {code}")
        else:
            logger.info(f"OTP generated for {mask_phone(phone)} (delivery disabled)")
        return DeliveryResult(sent=True)
