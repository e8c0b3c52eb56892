import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import razorpay

from app.config.settings import GatewayConfig
from app.models.internal import GatewayPayment

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    pass


class PaymentGateway:
    """Razorpay client wrapper; SDK calls are blocking so they run in a thread"""

    def __init__(self, gateway_config: GatewayConfig, client: Optional[razorpay.Client] = None):
        self.gateway_config = gateway_config
        self.client = client or razorpay.Client(auth=(gateway_config.key_id, gateway_config.key_secret))

    @property
    def secret(self) -> str:
        return self.gateway_config.key_secret

    async def create_order(self, amount_minor: int, receipt: str, notes: Optional[dict] = None) -> dict:
        data = {
            "amount": amount_minor,
            "currency": self.gateway_config.currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        if notes:
            data["notes"] = notes

        try:
            return await asyncio.to_thread(self.client.order.create, data=data)
        except Exception as e:
            raise GatewayError(f"Order creation failed: {e}") from e

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        try:
            raw = await asyncio.to_thread(self.client.payment.fetch, payment_id)
        except Exception as e:
            raise GatewayError(f"Payment fetch failed: {e}") from e
        return to_gateway_payment(raw)

    async def try_fetch_payment(self, payment_id: Optional[str]) -> Optional[GatewayPayment]:
        """Best-effort lookup: None instead of an error"""
        if not payment_id:
            return None
        try:
            return await self.fetch_payment(payment_id)
        except GatewayError as e:
            logger.warning(f"Could not fetch payment details for {payment_id}: {e}")
            return None


def to_gateway_payment(raw: dict) -> GatewayPayment:
    created_at = raw.get("created_at")
    paid_at = (
        datetime.fromtimestamp(int(created_at), tz=timezone.utc)
        if created_at
        else datetime.now(timezone.utc)
    )
    return GatewayPayment(
        id=raw.get("id", ""),
        amount=Decimal(int(raw.get("amount") or 0)) / 100,
        currency=raw.get("currency") or "INR",
        status=raw.get("status") or "unknown",
        method=raw.get("method") or "unknown",
        created_at=paid_at,
        email=raw.get("email") or None,
        contact=raw.get("contact") or None,
    )
