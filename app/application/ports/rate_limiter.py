from typing import Protocol


class RateLimiter(Protocol):
    """Counter per key that expires ``decay_seconds`` after the latest hit."""

    def too_many_attempts(self, key: str, max_attempts: int) -> bool:
        ...

    def hit(self, key: str, decay_seconds: int) -> int:
        ...

    def attempts(self, key: str) -> int:
        ...

    def available_in(self, key: str) -> int:
        ...

    def clear(self, key: str) -> None:
        ...
