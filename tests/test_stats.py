from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.services.stats import compute_stats
from conftest import admin_token, api_client


def test_mixed_statuses():
    stats = compute_stats([
        (Decimal("100"), "captured", datetime(2024, 1, 1, 10)),
        (Decimal("50"), "failed", datetime(2024, 1, 1, 11)),
    ])

    assert stats.totalPayments == 2
    assert stats.totalRevenue == "100.00"
    assert stats.successfulPayments == 1
    assert stats.failedPayments == 1
    assert stats.pendingPayments == 0
    assert stats.successRate == "50.00"
    assert stats.paymentsByDate == {"2024-01-01": 150.0}


def test_no_payments():
    stats = compute_stats([])

    assert stats.totalPayments == 0
    assert stats.totalRevenue == "0.00"
    assert stats.successRate == "0.00"
    assert stats.paymentsByDate == {}


def test_success_rate_rounds_to_two_places():
    facts = [(Decimal("1"), "captured", None)] + [(Decimal("1"), "failed", None)] * 2

    assert compute_stats(facts).successRate == "33.33"


def test_pending_statuses():
    facts = [
        (Decimal("1"), "created", None),
        (Decimal("1"), "authorized", None),
        (Decimal("1"), "pending", None),
        (Decimal("1"), "refunded", None),
    ]
    stats = compute_stats(facts)

    assert stats.pendingPayments == 3
    assert stats.successfulPayments == 0
    assert stats.failedPayments == 0
    assert stats.totalPayments == 4


def test_revenue_is_exact_decimal():
    facts = [(Decimal("0.10"), "captured", None)] * 3

    assert compute_stats(facts).totalRevenue == "0.30"


def test_days_bucket_in_store_timezone():
    facts = [
        # 20:00 UTC is 01:30 next day in Kolkata
        (Decimal("10"), "captured", datetime(2024, 3, 1, 20, 0)),
        (Decimal("5"), "failed", datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)),
    ]

    assert compute_stats(facts, "Asia/Kolkata").paymentsByDate == {"2024-03-01": 5.0, "2024-03-02": 10.0}
    assert compute_stats(facts, "UTC").paymentsByDate == {"2024-03-01": 15.0}


@pytest.mark.asyncio
async def test_stats_endpoint(env):
    await env.store.insert_payment({"payment_id": "a", "status": "captured", "amount": Decimal("100")})
    await env.store.insert_payment({"payment_id": "b", "status": "failed", "amount": Decimal("50")})

    async with api_client() as ac:
        token = await admin_token(ac, env)
        response = await ac.get("/admin/stats", headers={"Authorization": f"Bearer {token}"})

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    stats = body["stats"]
    assert stats["totalPayments"] == 2
    assert stats["totalRevenue"] == "100.00"
    assert stats["successRate"] == "50.00"
    assert stats["failedPayments"] == 1
    assert sum(stats["paymentsByDate"].values()) == 150.0


@pytest.mark.asyncio
async def test_stats_endpoint_requires_admin(env):
    async with api_client() as ac:
        response = await ac.get("/admin/stats")

    assert response.status_code == 401
