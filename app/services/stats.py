from collections import defaultdict
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple
from zoneinfo import ZoneInfo

from app.models.response import PaymentStats

CAPTURED = "captured"
FAILED = "failed"
PENDING_STATUSES = {"created", "authorized", "pending"}

CENT = Decimal("0.01")


def _money(value: Decimal) -> str:
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _local_day(created_at: datetime, tz: ZoneInfo) -> str:
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at.astimezone(tz).date().isoformat()


def compute_stats(
    facts: Iterable[Tuple[Optional[Decimal], str, Optional[datetime]]],
    tz_name: str = "UTC",
) -> PaymentStats:
    """
    Aggregate (amount, status, created_at) rows.
    Revenue counts captured payments only; the per-day series counts every payment.
    """
    tz = ZoneInfo(tz_name)
    total = successful = failed = pending = 0
    revenue = Decimal("0")
    by_date = defaultdict(Decimal)

    for amount, status, created_at in facts:
        amount = Decimal(str(amount)) if amount is not None else Decimal("0")
        total += 1
        if status == CAPTURED:
            successful += 1
            revenue += amount
        elif status == FAILED:
            failed += 1
        elif status in PENDING_STATUSES:
            pending += 1

        if created_at is not None:
            by_date[_local_day(created_at, tz)] += amount

    success_rate = Decimal(successful * 100) / Decimal(total) if total else Decimal("0")

    return PaymentStats(
        totalPayments=total,
        totalRevenue=_money(revenue),
        successfulPayments=successful,
        successRate=_money(success_rate),
        failedPayments=failed,
        pendingPayments=pending,
        paymentsByDate={day: float(value.quantize(CENT)) for day, value in sorted(by_date.items())},
    )
