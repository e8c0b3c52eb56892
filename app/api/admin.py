from fastapi import APIRouter, Depends, Request

from app.api.deps import get_analytics_service, get_auth_service, get_store
from app.config.settings import config
from app.core.auth import AdminIdentity, require_admin
from app.core.errors import UpstreamError
from app.core.logging import log_error, log_info, mask_email
from app.infra.rate_limit import login_limiter, otp_limiter
from app.models.request import LoginRequest, OtpVerifyRequest
from app.services.analytics import AnalyticsService
from app.services.auth_service import AuthService
from app.services.stats import compute_stats
from app.services.store import PaymentStore, StoreError
from app.utils.locale import translator

router = APIRouter()


@router.post("/login", dependencies=[Depends(login_limiter)])
async def login(
    request: Request,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Step 1: check credentials and email a one-time code"""
    _ = translator(request)
    await auth.login(body.email, body.password)
    log_info(request, f"Admin OTP dispatched to {mask_email(body.email)}")
    return {"success": True, "message": _("response.otp_sent")}


@router.post("/verify-otp", dependencies=[Depends(otp_limiter)])
async def verify_otp(
    request: Request,
    body: OtpVerifyRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Step 2: exchange the code for a session token"""
    _ = translator(request)
    session = await auth.verify_otp(body.email, body.otp)
    return {"success": True, "message": _("response.login_success"), **session}


@router.get("/payments")
async def list_payments(
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
    store: PaymentStore = Depends(get_store),
):
    try:
        payments = await store.list_payments()
    except StoreError as e:
        log_error(request, f"Error fetching payments: {e}")
        raise UpstreamError("error.payments_fetch_failed")
    return {"success": True, "payments": payments}


@router.get("/stats")
async def payment_stats(
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
    store: PaymentStore = Depends(get_store),
):
    try:
        facts = await store.payment_facts()
    except StoreError as e:
        log_error(request, f"Error fetching stats: {e}")
        raise UpstreamError("error.stats_failed")

    stats = compute_stats(facts, config.store.timezone)
    return {"success": True, "stats": stats.model_dump()}


@router.get("/subscriptions")
async def list_subscriptions(
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
    store: PaymentStore = Depends(get_store),
):
    try:
        subscriptions = await store.list_subscriptions()
    except StoreError as e:
        log_error(request, f"Error fetching subscriptions: {e}")
        raise UpstreamError("error.subscriptions_fetch_failed")
    return {"success": True, "subscriptions": subscriptions}


@router.get("/analytics")
async def analytics(
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Analytics snapshot; live fetch failures surface with a setupRequired hint"""
    snapshot = await service.get_snapshot(strict=True)
    log_info(request, f"Analytics served from {snapshot.source}")
    return {"success": True, "data": snapshot.model_dump()}
