import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..application.services.otp_service import OTPService, RateLimitExceeded
from ..config import Settings
from ..dependencies import get_app_settings, get_client_ip, get_otp_service, get_request_id
from ..schemas import (
    OTPRequest, OTPRequestResponse, OTPVerifyRequest, OTPVerifyResponse, OTPDebugResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/otp", tags=["OTP"])


@router.post("/request", response_model=OTPRequestResponse, response_model_exclude_none=True)
async def request_otp(
    body: OTPRequest,
    service: OTPService = Depends(get_otp_service),
    ip_address: Optional[str] = Depends(get_client_ip),
    request_id: Optional[str] = Depends(get_request_id),
):
    try:
        outcome = await service.request_code(body.phone, ip_address=ip_address, request_id=request_id)
    except RateLimitExceeded as e:
        logger.warning(f"OTP request rate limited ({e.scope})")
        raise HTTPException(status_code=429, detail=str(e))
    return OTPRequestResponse(
        ok=True,
        whatsapp_sent=outcome.whatsapp_sent,
        message=outcome.message,
        error=outcome.error,
    )


@router.post("/verify", response_model=OTPVerifyResponse)
def verify_otp(
    body: OTPVerifyRequest,
    service: OTPService = Depends(get_otp_service),
    ip_address: Optional[str] = Depends(get_client_ip),
    request_id: Optional[str] = Depends(get_request_id),
):
    ok = service.verify_code(body.phone, body.code, ip_address=ip_address, request_id=request_id)
    return OTPVerifyResponse(ok=ok)


@router.get("/debug", response_model=OTPDebugResponse, include_in_schema=False)
def debug_otp(
    phone: str = Query(...),
    service: OTPService = Depends(get_otp_service),
    settings: Settings = Depends(get_app_settings),
):
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not Found")
    return OTPDebugResponse(phone=phone, otp=service.debug_code(phone))
