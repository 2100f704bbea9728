# Routers package
from . import otp_router

__all__ = ["otp_router"]
