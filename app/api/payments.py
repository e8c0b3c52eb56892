from fastapi import APIRouter, Depends, Request

from app.api.deps import get_payment_service, get_store
from app.config.settings import config
from app.core.errors import NotFoundError, UpstreamError
from app.core.logging import log_error, log_info
from app.models.request import CreateOrderRequest, PaymentFailedRequest, VerifyPaymentRequest
from app.services.payments import PaymentService
from app.services.store import PaymentStore, StoreError
from app.utils.locale import translator

router = APIRouter()


async def public_reads_enabled():
    if not config.api.public_payment_reads:
        raise NotFoundError("error.not_available")


@router.post("/create-order")
async def create_order(
    request: Request,
    body: CreateOrderRequest,
    payments: PaymentService = Depends(get_payment_service),
):
    """Create a gateway order; returns the gateway's order object"""
    order = await payments.create_order(body.amount, body.product_name)
    log_info(request, f"Order created: {order.get('id')}")
    return order


@router.post("/verify-payment")
async def verify_payment(
    request: Request,
    body: VerifyPaymentRequest,
    payments: PaymentService = Depends(get_payment_service),
):
    """Verify a checkout callback, record it and send the e-book when captured"""
    _ = translator(request)
    record = await payments.verify(
        body.razorpay_order_id,
        body.razorpay_payment_id,
        body.razorpay_signature,
        body.to_customer(),
    )
    return {"success": True, "message": _("response.payment_verified"), "data": record}


@router.post("/payment-failed")
async def payment_failed(
    request: Request,
    body: PaymentFailedRequest,
    payments: PaymentService = Depends(get_payment_service),
):
    _ = translator(request)
    await payments.record_failure(
        body.razorpay_order_id,
        body.razorpay_payment_id,
        body.error_code,
        body.error_description,
        body.to_customer(),
    )
    return {"success": True, "message": _("response.failure_recorded")}


@router.get("/payments", dependencies=[Depends(public_reads_enabled)])
async def payment_history(request: Request, store: PaymentStore = Depends(get_store)):
    try:
        payments = await store.list_payments()
    except StoreError as e:
        log_error(request, f"Error fetching payments: {e}")
        raise UpstreamError("error.payments_fetch_failed")
    return {"success": True, "payments": payments}


@router.get("/payment/{payment_id}", dependencies=[Depends(public_reads_enabled)])
async def payment_by_id(request: Request, payment_id: str, store: PaymentStore = Depends(get_store)):
    try:
        payment = await store.latest_payment(payment_id)
    except StoreError as e:
        log_error(request, f"Error fetching payment {payment_id}: {e}")
        raise UpstreamError("error.payments_fetch_failed")

    if payment is None:
        raise NotFoundError("error.payment_not_found")
    return {"success": True, "payment": payment}
