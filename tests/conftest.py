# tests/conftest.py
import os
import tempfile

# konfiguracja musi byc ustawiona przed pierwszym importem storefront
_TMP_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["API_LOG_ENABLED"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test-secret"
os.environ["SHIPMENT_BACKOFF_SECONDS"] = "0"
os.environ["SMTP_HOST"] = ""

import itertools

import pytest
import requests
from fastapi.testclient import TestClient

from storefront.api import create_app
from storefront.api import deps
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import AddressModel, ProductModel, UserModel
from storefront.services.carrier_client import CarrierError
from storefront.services.notification_service import NotificationService
from storefront.services.payment_gateway import RazorpayGateway, payment_signature

SECRET = "test-secret"


class InMemoryLocks:
    def __init__(self):
        self.held = {}

    def acquire_shipment_lock(self, order_id, owner, ttl):
        if order_id in self.held:
            return False
        self.held[order_id] = owner
        return True

    def release_shipment_lock(self, order_id, owner):
        if self.held.get(order_id) == owner:
            del self.held[order_id]
            return True
        return False


class FakeGateway(RazorpayGateway):
    def __init__(self):
        super().__init__(key_id="rzp_test_key", key_secret=SECRET, base_url="http://gateway.test")
        self._ids = itertools.count(1)
        self.intents = []

    def create_intent(self, amount_minor, currency, receipt):
        intent_id = f"order_test_{next(self._ids)}"
        self.intents.append({"id": intent_id, "amount": amount_minor, "currency": currency, "receipt": receipt})
        return intent_id


class FakeCarrier:
    def __init__(self, failures=0):
        self.failures = failures
        self.payloads = []
        self.tracking = {}
        self.broken_tracking = set()
        self._waybills = itertools.count(1000)

    def create_shipment(self, payload):
        self.payloads.append(payload)
        if self.failures > 0:
            self.failures -= 1
            raise CarrierError("Pincode not serviceable")
        waybill = f"WB{next(self._waybills)}"
        return {
            "waybill": waybill,
            "order_ref": payload["shipments"][0]["order"],
            "status": "Success",
            "sort_code": "DEL/HUB",
            "raw": {"packages": [{"waybill": waybill, "status": "Success"}]},
        }

    def track(self, waybill):
        if waybill in self.broken_tracking:
            raise requests.ConnectionError(f"tracking down for {waybill}")
        return self.tracking.get(waybill, {"status": "In Transit", "location": "Delhi", "expected_delivery": "2026-10-25"})


class FakeNotifier(NotificationService):
    def __init__(self):
        self.calls = []

    def send_otp(self, user_id, phone, code):
        self.calls.append(("send_otp", user_id, phone, code))

    def shipment_attempt_failed(self, order_id, attempt, max_attempts, error):
        self.calls.append(("attempt_failed", order_id, attempt))

    def shipment_failed(self, order_id, attempts, error):
        self.calls.append(("failed", order_id, attempts))

    def shipment_created(self, order_id, attempts_used):
        self.calls.append(("created", order_id, attempts_used))

    def names(self):
        return [c[0] for c in self.calls]


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def carrier():
    return FakeCarrier()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def locks():
    return InMemoryLocks()


@pytest.fixture
def sign():
    def _sign(order_ref, payment_ref):
        return payment_signature(SECRET, order_ref, payment_ref)

    return _sign


@pytest.fixture
def product(db):
    p = ProductModel(
        name="Himalayan Pink Salt",
        product_type="spices",
        sizes=["small", "large"],
        size_prices={"small": 100, "large": 200},
        discounted_prices={"small": 80},
        image_urls=["https://cdn.test/salt.jpg"],
    )
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def other_product(db):
    p = ProductModel(
        name="Mustard Oil",
        product_type="oils",
        sizes=["1l"],
        size_prices={"1l": 150.5},
        discounted_prices={},
        image_urls=[],
    )
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def user(db):
    u = UserModel(name="Asha Rao", email="asha@example.com", phone_number="+91 98765-43210")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def address(db, user):
    a = AddressModel(
        user_id=user.id,
        full_name="Asha Rao",
        phone_number="+91 98765-43210",
        address_line1="12 MG Road",
        address_line2="Indiranagar",
        city="Bengaluru",
        state="Karnataka",
        country="India",
        postal_code="560038",
        is_active=True,
        is_default=True,
    )
    db.add(a)
    db.commit()
    return a


@pytest.fixture
def client(gateway, carrier, notifier, locks):
    app = create_app()
    app.dependency_overrides[deps.get_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_carrier] = lambda: carrier
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    app.dependency_overrides[deps.get_lock_service] = lambda: locks
    with TestClient(app) as c:
        yield c
