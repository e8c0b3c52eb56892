import asyncio
import logging
import uuid
from contextlib import suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import admin, health, payments, subscriptions
from app.api.deps import get_analytics_service, get_otp_store
from app.config.settings import config
from app.core.errors import ServiceError
from app.core.logging import log_error, setup_logging
from app.core.state import state
from app.infra.database import init_db
from app.infra.redis import close_redis, init_redis
from app.services.otp import RedisOtpStore
from app.utils.locale import translator

logger = logging.getLogger(__name__)

OTP_SWEEP_INTERVAL = 60

app = FastAPI(
    title=config.api.title,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    _ = translator(request)
    if exc.status_code >= 500:
        log_error(request, f"{type(exc).__name__}: {exc.key}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": _(exc.key, **exc.params), **exc.extra},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    _ = translator(request)
    reason = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": _("error.invalid_request", reason=reason)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    _ = translator(request)
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "message": _("error.internal")})


# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(payments.router, tags=["Payments"])
app.include_router(subscriptions.router, tags=["Newsletter"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


async def sweep_expired_otps():
    while True:
        await asyncio.sleep(OTP_SWEEP_INTERVAL)
        removed = await get_otp_store().expire_sweep()
        if removed:
            logger.debug(f"Swept {removed} expired OTPs")


@app.on_event("startup")
async def startup_event():
    setup_logging(config.logging)

    await asyncio.to_thread(init_db)

    state.redis = await init_redis()
    if state.redis:
        state.otp_store = RedisOtpStore(state.redis, ttl_seconds=config.auth.otp_ttl_minutes * 60)

    if not config.auth.admins:
        logger.warning("No admin credentials configured; admin login is disabled")
    if not config.gateway.key_secret:
        logger.warning("RAZORPAY_KEY_SECRET is not set; payment verification will fail")
    if not get_analytics_service().is_configured():
        logger.info("Google Analytics not configured - admin analytics will use mock data")

    app.state.otp_sweeper = asyncio.create_task(sweep_expired_otps())

@app.on_event("shutdown")
async def shutdown_event():
    sweeper = getattr(app.state, "otp_sweeper", None)
    if sweeper:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    await close_redis()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=config.api.port)
