from typing import Optional

import redis

from ...application.ports.cache import Cache


class RedisCache(Cache):
    def __init__(self, url: str, prefix: str = "cache:", client=None) -> None:
        self.client = client or redis.Redis.from_url(url, decode_responses=True)
        self.prefix = prefix

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self.client.set(f"{self.prefix}{key}", value, ex=ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(f"{self.prefix}{key}")
        if isinstance(value, bytes):
            value = value.decode()
        return value

    def forget(self, key: str) -> bool:
        return int(self.client.delete(f"{self.prefix}{key}")) == 1
