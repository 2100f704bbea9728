from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class DeliveryResult:
    sent: bool
    error: Optional[str] = None


class OTPDelivery(Protocol):
    channel: str

    async def send(self, phone: str, code: str) -> DeliveryResult:
        ...
