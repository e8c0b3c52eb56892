from functools import lru_cache

from fastapi import Depends

from app.config.settings import config
from app.core.state import state
from app.infra.database import SessionLocal
from app.services.analytics import AnalyticsService
from app.services.auth_service import AuthService
from app.services.gateway import PaymentGateway
from app.services.mailer import MailPurpose, Mailer, build_mailers
from app.services.otp import InMemoryOtpStore, OtpStore
from app.services.payments import PaymentService
from app.services.store import PaymentStore

_mailers = build_mailers(config.mail)
_memory_otp_store = InMemoryOtpStore(ttl_seconds=config.auth.otp_ttl_minutes * 60)


def get_otp_store() -> OtpStore:
    return state.otp_store or _memory_otp_store


def get_admin_mailer() -> Mailer:
    return _mailers[MailPurpose.ADMIN]


def get_customer_mailer() -> Mailer:
    return _mailers[MailPurpose.CUSTOMER]


@lru_cache
def get_gateway() -> PaymentGateway:
    return PaymentGateway(config.gateway)


@lru_cache
def get_store() -> PaymentStore:
    return PaymentStore(SessionLocal)


@lru_cache
def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(config.analytics)


def get_auth_service(
    otp_store: OtpStore = Depends(get_otp_store),
    mailer: Mailer = Depends(get_admin_mailer),
) -> AuthService:
    return AuthService(config.auth, otp_store, mailer)


def get_payment_service(
    gateway: PaymentGateway = Depends(get_gateway),
    store: PaymentStore = Depends(get_store),
    mailer: Mailer = Depends(get_customer_mailer),
) -> PaymentService:
    return PaymentService(gateway, store, mailer, config.store)
