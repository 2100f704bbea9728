# qr_event/schemas/otp.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OTPRequest(BaseModel):
    phone: str = Field(..., min_length=6, max_length=20, description="Visitor phone number")


class OTPVerifyRequest(BaseModel):
    phone: str = Field(..., min_length=6, max_length=20)
    code: str = Field(..., min_length=6, max_length=6, description="6-digit code")


class OTPRequestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    whatsapp_sent: bool = Field(
        ...,
        alias="whatsappSent",
        description="Whether the configured delivery channel accepted the code. Named after WhatsApp for client compatibility; also set for the SMS and log channels.",
    )
    message: str
    error: Optional[str] = None


class OTPVerifyResponse(BaseModel):
    ok: bool


class OTPDebugResponse(BaseModel):
    phone: str
    otp: Optional[str] = None
