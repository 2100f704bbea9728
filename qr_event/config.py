# qr_event/config.py
import os
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "QR Event API"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 4000))
    FORWARDED_ALLOW_IPS: str = "127.0.0.1"  # proxies whose X-Forwarded-For is trusted

    # CORS Settings (comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = "*"
    ALLOWED_METHODS: str = "GET,POST,OPTIONS"
    ALLOWED_HEADERS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # OTP Settings
    OTP_TTL_SECONDS: int = 5 * 60
    OTP_SWEEP_THRESHOLD: int = 10_000
    OTP_DELIVERY_CHANNEL: str = "whatsapp"  # whatsapp | sms | log

    # OTP request rate limiting
    OTP_REQUEST_WINDOW_SECONDS: int = 900  # 15 min
    OTP_REQUEST_MAX_PER_PHONE: int = 5
    OTP_REQUEST_MAX_PER_IP: int = 30
    REDIS_URL: Optional[str] = None

    # WhatsApp gateway
    WHATSAPP_API_BASE_URL: str = "https://api.whatsapp.nepalirudraksha.com"
    WHATSAPP_API_TOKEN: str = ""
    WHATSAPP_CHANNEL_ID: str = ""
    WHATSAPP_OTP_TEMPLATE: str = "otp_verification"
    WHATSAPP_TEMPLATE_LANGUAGE: str = "en"
    WHATSAPP_TIMEOUT_SECONDS: float = 10.0

    # Twilio Settings (SMS channel)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def allowed_methods_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_METHODS)

    @property
    def allowed_headers_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_HEADERS)

    @property
    def is_production(self) -> bool:
        return self.ENV.strip().lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s
