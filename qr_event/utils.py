import re
import uuid

_PHONE_NOISE = re.compile(r"[\s\-\(\)]")


def normalize_phone(phone: str) -> str:
    """Format a phone number for delivery gateways: no separators, leading '+'."""
    phone_number = _PHONE_NOISE.sub("", phone.strip())
    if not phone_number.startswith("+"):
        phone_number = "+" + phone_number
    return phone_number


def generate_request_id() -> str:
    """Generate a unique request ID"""
    return str(uuid.uuid4())


def mask_phone(phone: str) -> str:
    """Keep only the last four digits for log lines, e.g. '******3210'."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]
