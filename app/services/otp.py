import json
import secrets
import time
from enum import Enum, auto
from typing import Callable, Dict, NamedTuple, Optional

from redis.asyncio import Redis

OTP_MIN = 100000
OTP_MAX = 999999


class OtpCheck(Enum):
    """OTP verification result without throwing exceptions"""
    OK = auto()
    MISSING = auto()
    EXPIRED = auto()
    MISMATCH = auto()


class OtpEntry(NamedTuple):
    code: str
    expires_at: float


def generate_code() -> str:
    """Uniform 6-digit code without a leading zero"""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OtpStore:
    """
    Keyed one-time-code store.
    At most one live code per email; issuing again replaces the previous one.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    async def issue(self, email: str) -> str:
        raise NotImplementedError

    async def verify(self, email: str, code: str) -> OtpCheck:
        raise NotImplementedError

    async def expire_sweep(self) -> int:
        raise NotImplementedError


class InMemoryOtpStore(OtpStore):
    """Process-local store; restarting the process drops all codes"""

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.time):
        super().__init__(ttl_seconds, clock)
        self._entries: Dict[str, OtpEntry] = {}

    async def issue(self, email: str) -> str:
        code = generate_code()
        self._entries[email] = OtpEntry(code, self.clock() + self.ttl_seconds)
        return code

    async def verify(self, email: str, code: str) -> OtpCheck:
        entry = self._entries.get(email)
        if entry is None:
            return OtpCheck.MISSING

        if self.clock() > entry.expires_at:
            self._entries.pop(email, None)
            return OtpCheck.EXPIRED

        if not secrets.compare_digest(entry.code.encode(), str(code).encode()):
            return OtpCheck.MISMATCH

        self._entries.pop(email, None)
        return OtpCheck.OK

    async def expire_sweep(self) -> int:
        now = self.clock()
        expired = [email for email, entry in self._entries.items() if now > entry.expires_at]
        for email in expired:
            self._entries.pop(email, None)
        return len(expired)

    def peek(self, email: str) -> Optional[OtpEntry]:
        return self._entries.get(email)


class RedisOtpStore(OtpStore):
    """Shared store for multi-instance deployments; Redis TTL handles expiry"""

    def __init__(self, redis: Redis, ttl_seconds: int = 300, clock: Callable[[], float] = time.time):
        super().__init__(ttl_seconds, clock)
        self.redis = redis

    @staticmethod
    def _key(email: str) -> str:
        return f"otp:{email}"

    async def issue(self, email: str) -> str:
        code = generate_code()
        payload = json.dumps({"code": code, "expires_at": self.clock() + self.ttl_seconds})
        await self.redis.set(self._key(email), payload, ex=self.ttl_seconds)
        return code

    async def verify(self, email: str, code: str) -> OtpCheck:
        raw = await self.redis.get(self._key(email))
        if not raw:
            return OtpCheck.MISSING

        entry = json.loads(raw)
        if self.clock() > entry["expires_at"]:
            await self.redis.delete(self._key(email))
            return OtpCheck.EXPIRED

        if not secrets.compare_digest(entry["code"].encode(), str(code).encode()):
            return OtpCheck.MISMATCH

        await self.redis.delete(self._key(email))
        return OtpCheck.OK

    async def expire_sweep(self) -> int:
        return 0
