from typing import Optional, Protocol


class Cache(Protocol):
    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    def get(self, key: str) -> Optional[str]:
        ...

    def forget(self, key: str) -> bool:
        """Remove ``key``; True only for the caller that actually removed it."""
        ...
