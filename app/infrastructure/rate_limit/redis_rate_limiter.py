import redis

from ...application.ports.rate_limiter import RateLimiter


class RedisRateLimiter(RateLimiter):
    def __init__(self, url: str, prefix: str = "rl:", client=None) -> None:
        self.client = client or redis.Redis.from_url(url)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def too_many_attempts(self, key: str, max_attempts: int) -> bool:
        return self.attempts(key) >= int(max_attempts)

    def hit(self, key: str, decay_seconds: int) -> int:
        rk = self._key(key)
        # INCR + EXPIRE in one MULTI so concurrent hits never lose a count
        pipe = self.client.pipeline(transaction=True)
        pipe.incr(rk, 1)
        pipe.expire(rk, decay_seconds)
        count, _ = pipe.execute()
        return int(count)

    def attempts(self, key: str) -> int:
        return int(self.client.get(self._key(key)) or 0)

    def available_in(self, key: str) -> int:
        ttl = self.client.ttl(self._key(key))
        return max(0, int(ttl or 0))

    def clear(self, key: str) -> None:
        self.client.delete(self._key(key))
