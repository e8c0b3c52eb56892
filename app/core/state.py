from dataclasses import dataclass
from typing import Optional
from redis.asyncio import Redis

from app.services.otp import OtpStore

@dataclass
class RuntimeState:
    """Centralized runtime state"""
    redis: Optional[Redis] = None
    otp_store: Optional[OtpStore] = None

state = RuntimeState()
