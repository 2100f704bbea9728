# Delivery channels (selected by OTP_DELIVERY_CHANNEL)
from ...application.ports.otp_delivery import OTPDelivery
from ...config import Settings
from .log_provider import LogOTPDelivery


def build_delivery(settings: Settings) -> OTPDelivery:
    channel = settings.OTP_DELIVERY_CHANNEL.strip().lower()
    if channel == "whatsapp":
        from .whatsapp_provider import WhatsAppOTPDelivery

        return WhatsAppOTPDelivery(
            base_url=settings.WHATSAPP_API_BASE_URL,
            token=settings.WHATSAPP_API_TOKEN,
            channel_id=settings.WHATSAPP_CHANNEL_ID,
            template_name=settings.WHATSAPP_OTP_TEMPLATE,
            template_language=settings.WHATSAPP_TEMPLATE_LANGUAGE,
            timeout_seconds=settings.WHATSAPP_TIMEOUT_SECONDS,
        )
    if channel == "sms":
        from .twilio_provider import TwilioSMSOTPDelivery

        return TwilioSMSOTPDelivery(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_PHONE_NUMBER,
            ttl_minutes=max(1, settings.OTP_TTL_SECONDS // 60),
        )
    if channel == "log":
        return LogOTPDelivery(reveal_code=settings.DEBUG)
    raise ValueError(f"Unknown OTP delivery channel: {settings.OTP_DELIVERY_CHANNEL!r}")


__all__ = ["build_delivery", "LogOTPDelivery"]
