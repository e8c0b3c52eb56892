from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from app.api import deps
from app.config.settings import AdminCredential, AnalyticsConfig, GatewayConfig, SmtpConfig, config
from app.infra.database import init_db, make_engine, make_session_factory
from app.main import app
from app.services.analytics import AnalyticsService
from app.services.gateway import PaymentGateway
from app.services.mailer import MailError, Mailer, MailPurpose
from app.services.otp import InMemoryOtpStore
from app.services.store import PaymentStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-Pass"
GATEWAY_SECRET = "test_gateway_secret"
JWT_SECRET = "test-jwt-secret"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMailer(Mailer):
    """Records messages instead of talking SMTP"""

    def __init__(self, purpose: MailPurpose, fail: bool = False):
        super().__init__(SmtpConfig(host="smtp.test"), purpose)
        self.fail = fail
        self.sent = []

    async def send(self, to, subject, html, text=None):
        if self.fail:
            raise MailError("smtp unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})


class FakeRazorpayClient:
    """Stands in for razorpay.Client (order.create / payment.fetch)"""

    def __init__(self):
        self.orders = []
        self.payments = {}
        self.fetched = []
        self.fail_orders = False
        self.order = SimpleNamespace(create=self._create_order)
        self.payment = SimpleNamespace(fetch=self._fetch_payment)

    def add_payment(self, payment_id, amount=49900, status="captured", method="upi", **extra):
        self.payments[payment_id] = {
            "id": payment_id,
            "entity": "payment",
            "amount": amount,
            "currency": "INR",
            "status": status,
            "method": method,
            "created_at": 1_700_000_000,
            **extra,
        }

    def _create_order(self, data):
        if self.fail_orders:
            raise RuntimeError("SERVER_ERROR")
        self.orders.append(data)
        return {"id": f"order_{len(self.orders)}", "entity": "order", "status": "created", **data}

    def _fetch_payment(self, payment_id):
        self.fetched.append(payment_id)
        if payment_id not in self.payments:
            raise RuntimeError("BAD_REQUEST_ERROR: The id provided does not exist")
        return self.payments[payment_id]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield PaymentStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def razorpay_client():
    return FakeRazorpayClient()


@pytest.fixture
def gateway(razorpay_client):
    return PaymentGateway(GatewayConfig(key_id="rzp_test", key_secret=GATEWAY_SECRET), client=razorpay_client)


@pytest.fixture
def env(store, gateway, razorpay_client, clock):
    """App wired to in-memory/fake collaborators"""
    otp_store = InMemoryOtpStore(ttl_seconds=300, clock=clock)
    admin_mailer = FakeMailer(MailPurpose.ADMIN)
    customer_mailer = FakeMailer(MailPurpose.CUSTOMER)
    analytics = AnalyticsService(AnalyticsConfig())

    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_otp_store] = lambda: otp_store
    app.dependency_overrides[deps.get_admin_mailer] = lambda: admin_mailer
    app.dependency_overrides[deps.get_customer_mailer] = lambda: customer_mailer
    app.dependency_overrides[deps.get_analytics_service] = lambda: analytics

    original_auth = config.auth.model_copy(deep=True)
    original_download_url = config.store.download_url
    config.auth.admins = [AdminCredential(email=ADMIN_EMAIL, password=ADMIN_PASSWORD)]
    config.auth.jwt_secret = JWT_SECRET
    config.store.download_url = "https://cdn.example.com/ebook.pdf"

    yield SimpleNamespace(
        store=store,
        gateway=gateway,
        razorpay=razorpay_client,
        otp_store=otp_store,
        admin_mailer=admin_mailer,
        customer_mailer=customer_mailer,
        analytics=analytics,
        clock=clock,
    )

    app.dependency_overrides.clear()
    config.auth = original_auth
    config.store.download_url = original_download_url


def api_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def admin_token(ac: AsyncClient, env) -> str:
    """Run both login steps and return the session token"""
    response = await ac.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    code = env.otp_store.peek(ADMIN_EMAIL).code
    response = await ac.post("/admin/verify-otp", json={"email": ADMIN_EMAIL, "otp": code})
    assert response.status_code == 200
    return response.json()["token"]
