"""Shared test fixtures for Mi Store."""

import hashlib
import hmac
import time

import pytest
from httpx import ASGITransport, AsyncClient

from mistore.common.config import StoreSettings
from mistore.common.database import DatabaseManager
from mistore.common.exceptions import GatewayError, UploadError
from mistore.payments.gateway import CheckoutSession, StripeGateway

SECRET_KEY = "test-secret-key"
WEBHOOK_SECRET = "whsec_test_secret"
STRIPE_KEY = "sk_test_123"
ADMIN_PASSWORD = "test-admin-password"
APK = "application/vnd.android.package-archive"


def make_settings(**overrides) -> StoreSettings:
    defaults = {
        "db_url": "sqlite+aiosqlite://",
        "secret_key": SECRET_KEY,
        "admin_password": ADMIN_PASSWORD,
        "stripe_secret_key": STRIPE_KEY,
        "stripe_webhook_secret": WEBHOOK_SECRET,
        "s3_bucket": "mistore-test",
        "public_base_url": "https://store.test",
    }
    defaults.update(overrides)
    return StoreSettings(**defaults)


def sign_stripe_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header (t=...,v1=...) for a raw body."""
    ts = str(int(timestamp if timestamp is not None else time.time()))
    sig = hmac.new(secret.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def checkout_completed_event(session_id: str = "cs_test_1", app_id="1", **overrides) -> dict:
    obj = {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": 500,
        "currency": "usd",
        "customer_details": {"email": "buyer@example.com", "name": "Jane Buyer"},
        "metadata": {"app_id": app_id} if app_id is not None else {},
    }
    obj.update(overrides)
    return {
        "id": f"evt_{session_id}",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": obj},
    }


class FakeObjectStore:
    """In-memory object store with switchable failures."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.fail_prefixes: set[str] = set()
        self.fail_presign = False

    async def put_object(self, key, data, content_type):
        if any(key.startswith(p) for p in self.fail_prefixes):
            raise UploadError(f"Upload of {key} failed")
        self.objects[key] = (data, content_type)
        return key

    async def presign_get(self, key, expires_in, filename=None):
        if self.fail_presign:
            raise GatewayError(f"Could not sign URL for {key}")
        expires = int(time.time()) + expires_in
        return f"https://objects.test/{key}?X-Amz-Expires={expires_in}&expires={expires}"

    async def delete_object(self, key):
        self.deleted.append(key)
        self.objects.pop(key, None)


class FakePaymentGateway(StripeGateway):
    """Real Stripe webhook verification, canned checkout sessions."""

    def __init__(self, settings):
        super().__init__(settings)
        self.sessions: list[dict] = []
        self.fail = False

    async def create_checkout_session(self, *, app_id, name, amount, currency, success_url, cancel_url):
        if self.fail:
            raise GatewayError("Stripe session creation failed")
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append({
            "id": session_id, "app_id": app_id, "name": name, "amount": amount,
            "currency": currency, "success_url": success_url, "cancel_url": cancel_url,
        })
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/pay/{session_id}")


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
async def db(settings):
    manager = DatabaseManager(settings)
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def payment_gateway(settings):
    return FakePaymentGateway(settings)


@pytest.fixture
def signer():
    return sign_stripe_payload


@pytest.fixture
def checkout_event():
    return checkout_completed_event


@pytest.fixture
def app(monkeypatch, object_store):
    """Create a test app with in-memory DB and fake gateways."""
    monkeypatch.setenv("MISTORE_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("MISTORE_SECRET_KEY", SECRET_KEY)
    monkeypatch.setenv("MISTORE_ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("MISTORE_STRIPE_SECRET_KEY", STRIPE_KEY)
    monkeypatch.setenv("MISTORE_STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("MISTORE_PUBLIC_BASE_URL", "https://store.test")

    # Clear caches and singletons so new env vars take effect
    from mistore.common.config import get_settings
    get_settings.cache_clear()

    from mistore.deps import override_gateways, reset_singletons
    reset_singletons()
    override_gateways(
        object_store=object_store,
        payment_gateway=FakePaymentGateway(get_settings()),
    )

    from mistore.app import create_app
    yield create_app()

    reset_singletons()
    get_settings.cache_clear()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from mistore.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


def _cookie_header(user_id: int, username: str, role: str) -> dict:
    from mistore.common.security import COOKIE_NAME, Principal, create_session_cookie
    cookie = create_session_cookie(Principal(user_id=user_id, username=username, role=role))
    return {"Cookie": f"{COOKIE_NAME}={cookie}"}


@pytest.fixture
def admin_headers(app):
    return _cookie_header(1, "admin", "admin")


@pytest.fixture
def user_headers(app):
    return _cookie_header(2, "player", "user")


@pytest.fixture
def webhook_headers():
    def build(payload: bytes, secret: str = WEBHOOK_SECRET) -> dict:
        return {
            "Stripe-Signature": sign_stripe_payload(payload, secret),
            "Content-Type": "application/json",
        }
    return build
