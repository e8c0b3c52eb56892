from fastapi import APIRouter, Depends, Request

from app.api.deps import get_store
from app.core.errors import ConflictError, UpstreamError, ValidationError
from app.core.logging import log_error, log_info, mask_email
from app.infra.rate_limit import subscribe_limiter
from app.models.request import SubscribeRequest
from app.services.store import AlreadySubscribed, PaymentStore, StoreError
from app.utils.locale import translator

router = APIRouter()


@router.post("/subscribe", status_code=201, dependencies=[Depends(subscribe_limiter)])
async def subscribe(request: Request, body: SubscribeRequest, store: PaymentStore = Depends(get_store)):
    """Newsletter signup; one row per address"""
    _ = translator(request)

    email = body.normalized_email()
    if not email:
        raise ValidationError("error.email_required")

    try:
        await store.add_subscription(email)
    except AlreadySubscribed:
        raise ConflictError("error.already_subscribed")
    except StoreError as e:
        log_error(request, f"Subscription failed: {e}")
        raise UpstreamError("error.subscribe_failed")

    log_info(request, f"New subscriber {mask_email(email)}")
    return {"success": True, "message": _("response.subscribed")}
