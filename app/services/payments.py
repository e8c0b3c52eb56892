import logging
import time
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Optional

from app.config.settings import StoreConfig
from app.core.errors import UpstreamError, ValidationError
from app.core.logging import mask_email
from app.models.internal import CustomerInfo
from app.services.gateway import GatewayError, PaymentGateway
from app.services.mailer import MailError, Mailer, purchase_email
from app.services.store import PaymentStore, StoreError
from app.utils.hash import checkout_signature, signature_matches

logger = logging.getLogger(__name__)

CAPTURED = "captured"


def parse_amount(amount: Any) -> Decimal:
    """Positive decimal amount in major units, or ValidationError"""
    if amount is None or isinstance(amount, bool) or amount == "":
        raise ValidationError("error.amount_required")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("error.invalid_amount")
    if not value.is_finite() or value <= 0:
        raise ValidationError("error.invalid_amount")
    return value


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class PaymentService:
    """Order creation, checkout verification and failure recording"""

    def __init__(
        self,
        gateway: PaymentGateway,
        store: PaymentStore,
        mailer: Mailer,
        store_config: StoreConfig,
        clock: Callable[[], float] = time.time,
    ):
        self.gateway = gateway
        self.store = store
        self.mailer = mailer
        self.store_config = store_config
        self.clock = clock

    def _epoch_ms(self) -> int:
        return int(self.clock() * 1000)

    async def create_order(self, amount: Any, product_name: Optional[str] = None) -> dict:
        value = parse_amount(amount)
        amount_minor = to_minor_units(value)
        if amount_minor < 1:
            raise ValidationError("error.invalid_amount")
        receipt = f"receipt_{self._epoch_ms()}"
        notes = {"product_name": product_name or self.store_config.product_name}

        try:
            order = await self.gateway.create_order(amount_minor, receipt, notes)
        except GatewayError as e:
            logger.error(f"Error creating order: {e}")
            raise UpstreamError("error.order_failed")

        logger.info(f"Order {order.get('id')} created for {amount_minor} minor units")
        return order

    async def verify(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
        customer: CustomerInfo,
    ) -> dict:
        """
        Check the callback signature, then record the gateway's own view of the payment.
        Nothing from the callback body besides the ids and customer contact is trusted.
        """
        if not order_id or not payment_id or not signature:
            raise ValidationError("error.missing_payment_params")

        expected = checkout_signature(self.gateway.secret, order_id, payment_id)
        if not signature_matches(expected, signature):
            logger.warning(f"Signature mismatch for payment {payment_id}")
            raise ValidationError("error.verification_failed")

        try:
            payment = await self.gateway.fetch_payment(payment_id)
        except GatewayError as e:
            logger.error(f"Error verifying payment {payment_id}: {e}")
            raise UpstreamError("error.verification_server")

        email = customer.email or payment.email
        record_fields = {
            "payment_id": payment_id,
            "order_id": order_id,
            "name": customer.name,
            "email": email,
            "phone": customer.phone or payment.contact,
            "product_name": customer.product_name or self.store_config.product_name,
            "amount": payment.amount,
            "currency": payment.currency,
            "payment_method": payment.method,
            "status": payment.status,
            "payment_date": _naive_utc(payment.created_at),
            "razorpay_signature": signature,
        }

        try:
            record = await self.store.insert_payment(record_fields)
        except StoreError as e:
            logger.error(f"Payment {payment_id} verified but not saved: {e}")
            raise UpstreamError("error.payment_save_failed")

        logger.info(f"Payment {payment_id} verified with status {payment.status}")

        if payment.status == CAPTURED and email:
            await self.send_ebook(email, customer.name, record_fields["product_name"])

        return record

    async def send_ebook(self, email: str, name: Optional[str], product_name: str) -> bool:
        """Purchase confirmation; failures are logged, never raised"""
        subject, html, text = purchase_email(
            name, product_name, self.store_config.download_url, self.store_config.name
        )
        try:
            await self.mailer.send(email, subject, html, text)
        except MailError as e:
            logger.error(f"Purchase email to {mask_email(email)} failed: {e}")
            return False

        logger.info(f"Purchase email sent to {mask_email(email)}")
        return True

    async def record_failure(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        error_code: Optional[str],
        error_description: Optional[str],
        customer: CustomerInfo,
    ) -> None:
        """Best effort: enrichment and persistence problems are logged only"""
        logger.info(f"Payment failed: {error_description or error_code or 'no reason given'}")

        details = await self.gateway.try_fetch_payment(payment_id)
        amount = details.amount if details else Decimal("0")
        method = details.method if details else "unknown"

        record_fields = {
            "payment_id": payment_id or f"failed_{self._epoch_ms()}",
            "order_id": order_id,
            "name": customer.name,
            "email": customer.email or None,
            "phone": customer.phone or None,
            "product_name": customer.product_name or self.store_config.product_name,
            "amount": amount,
            "currency": details.currency if details else self.gateway.gateway_config.currency,
            "payment_method": method,
            "status": "failed",
            "payment_date": _naive_utc(datetime.now(timezone.utc)),
            "razorpay_signature": error_code or error_description,
        }

        try:
            await self.store.insert_payment(record_fields)
        except StoreError as e:
            logger.error(f"Could not record failed payment {record_fields['payment_id']}: {e}")
