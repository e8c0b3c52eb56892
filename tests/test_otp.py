import json

import pytest

from app.services.otp import InMemoryOtpStore, OtpCheck, RedisOtpStore
from conftest import FakeClock


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, key):
        self.data.pop(key, None)


@pytest.mark.asyncio
async def test_issue_returns_six_digit_code():
    store = InMemoryOtpStore()
    for _ in range(50):
        code = await store.issue("a@example.com")
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


@pytest.mark.asyncio
async def test_new_issue_replaces_previous_code():
    store = InMemoryOtpStore()
    first = await store.issue("a@example.com")
    second = await store.issue("a@example.com")
    while second == first:
        second = await store.issue("a@example.com")

    assert await store.verify("a@example.com", first) == OtpCheck.MISMATCH
    assert await store.verify("a@example.com", second) == OtpCheck.OK


@pytest.mark.asyncio
async def test_code_is_single_use():
    store = InMemoryOtpStore()
    code = await store.issue("a@example.com")

    assert await store.verify("a@example.com", code) == OtpCheck.OK
    assert await store.verify("a@example.com", code) == OtpCheck.MISSING


@pytest.mark.asyncio
async def test_mismatch_keeps_entry():
    store = InMemoryOtpStore()
    code = await store.issue("a@example.com")
    wrong = "000000" if code != "000000" else "111111"

    assert await store.verify("a@example.com", wrong) == OtpCheck.MISMATCH
    assert await store.verify("a@example.com", code) == OtpCheck.OK


@pytest.mark.asyncio
async def test_expired_code_fails_and_is_removed():
    clock = FakeClock()
    store = InMemoryOtpStore(ttl_seconds=300, clock=clock)
    code = await store.issue("a@example.com")

    clock.advance(300.5)
    assert await store.verify("a@example.com", code) == OtpCheck.EXPIRED
    assert store.peek("a@example.com") is None
    assert await store.verify("a@example.com", code) == OtpCheck.MISSING


@pytest.mark.asyncio
async def test_code_valid_up_to_expiry():
    clock = FakeClock()
    store = InMemoryOtpStore(ttl_seconds=300, clock=clock)
    code = await store.issue("a@example.com")

    clock.advance(300)
    assert await store.verify("a@example.com", code) == OtpCheck.OK


@pytest.mark.asyncio
async def test_expire_sweep_removes_only_stale_entries():
    clock = FakeClock()
    store = InMemoryOtpStore(ttl_seconds=300, clock=clock)
    await store.issue("old@example.com")
    clock.advance(200)
    await store.issue("new@example.com")
    clock.advance(150)

    assert await store.expire_sweep() == 1
    assert store.peek("old@example.com") is None
    assert store.peek("new@example.com") is not None


@pytest.mark.asyncio
async def test_redis_store_semantics():
    clock = FakeClock()
    redis = FakeRedis()
    store = RedisOtpStore(redis, ttl_seconds=300, clock=clock)

    code = await store.issue("a@example.com")
    assert redis.ttls["otp:a@example.com"] == 300
    assert json.loads(redis.data["otp:a@example.com"])["code"] == code

    assert await store.verify("a@example.com", code) == OtpCheck.OK
    assert await store.verify("a@example.com", code) == OtpCheck.MISSING

    code = await store.issue("a@example.com")
    clock.advance(301)
    assert await store.verify("a@example.com", code) == OtpCheck.EXPIRED
    assert "otp:a@example.com" not in redis.data
