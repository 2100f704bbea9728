from typing import Optional, Protocol


class Clock(Protocol):
    def now_ms(self) -> int:
        ...


class OTPStore(Protocol):
    def issue(self, identifier: str, ttl_ms: Optional[int] = None) -> str:
        ...

    def verify(self, identifier: str, candidate: str) -> bool:
        ...

    def peek(self, identifier: str) -> Optional[str]:
        ...
