from dataclasses import dataclass, field
from typing import Optional, Protocol, Dict, Any


class SmsTransportError(Exception):
    """The provider could not be reached or answered with something unreadable."""


@dataclass
class SmsSendResult:
    success: bool
    provider_message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class SmsGateway(Protocol):
    name: str

    def send(self, to: str, sender: str, text: str) -> SmsSendResult:
        ...
