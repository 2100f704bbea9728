from .otp import (
    OTPRequest, OTPRequestResponse, OTPVerifyRequest, OTPVerifyResponse, OTPDebugResponse
)

__all__ = [
    "OTPRequest",
    "OTPRequestResponse",
    "OTPVerifyRequest",
    "OTPVerifyResponse",
    "OTPDebugResponse",
]
