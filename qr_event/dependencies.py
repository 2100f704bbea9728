from typing import Optional

from fastapi import Request

from .application.services.otp_service import OTPService
from .config import Settings


def get_otp_service(request: Request) -> OTPService:
    return request.app.state.otp_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_client_ip(request: Request) -> Optional[str]:
    # Peer address only. Behind a proxy, uvicorn rewrites it from
    # X-Forwarded-For for the hosts listed in FORWARDED_ALLOW_IPS.
    return request.client.host if request.client else None


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)
