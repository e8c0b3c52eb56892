import pytest

from app.services.store import AlreadySubscribed
from conftest import admin_token, api_client


@pytest.mark.asyncio
async def test_subscribe_then_duplicate(env):
    async with api_client() as ac:
        first = await ac.post("/subscribe", json={"email": "reader@example.com"})
        second = await ac.post("/subscribe", json={"email": "reader@example.com"})

    assert first.status_code == 201
    assert first.json()["success"] is True
    assert second.status_code == 409
    assert second.json() == {"success": False, "message": "Email already subscribed"}
    assert len(await env.store.list_subscriptions()) == 1


@pytest.mark.asyncio
async def test_duplicate_check_ignores_case_and_whitespace(env):
    async with api_client() as ac:
        await ac.post("/subscribe", json={"email": "Reader@Example.com"})
        response = await ac.post("/subscribe", json={"email": "  reader@example.COM "})

    assert response.status_code == 409
    [row] = await env.store.list_subscriptions()
    assert row["email"] == "reader@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"email": ""}, {"email": "not-an-email"}, {"email": "a@b"}])
async def test_subscribe_rejects_invalid_email(env, body):
    async with api_client() as ac:
        response = await ac.post("/subscribe", json=body)

    assert response.status_code == 400
    assert response.json()["message"] == "A valid email is required"


@pytest.mark.asyncio
async def test_store_raises_on_duplicate(store):
    await store.add_subscription("x@example.com")

    with pytest.raises(AlreadySubscribed):
        await store.add_subscription("x@example.com")


@pytest.mark.asyncio
async def test_admin_lists_subscriptions_newest_first(env):
    async with api_client() as ac:
        for email in ("one@example.com", "two@example.com", "three@example.com"):
            await ac.post("/subscribe", json={"email": email})

        unauthorized = await ac.get("/admin/subscriptions")
        token = await admin_token(ac, env)
        response = await ac.get("/admin/subscriptions", headers={"Authorization": f"Bearer {token}"})

    assert unauthorized.status_code == 401
    assert response.status_code == 200
    emails = [row["email"] for row in response.json()["subscriptions"]]
    assert emails == ["three@example.com", "two@example.com", "one@example.com"]
