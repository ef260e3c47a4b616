import hashlib
import hmac
import json
import os
import time
from decimal import Decimal

os.environ.setdefault("POSTGRES_DSN", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import get_db
from storefront.db.models import Cart, CartItem, Product, User
from storefront.db.session import Base
from storefront.main import app
from storefront.security.utils import create_access_token, hash_password
from storefront.services import checkout
from storefront.services.payments import StripeGateway, get_payment_gateway
from storefront.services.processed_events import ProcessedEvents, get_processed_events

WEBHOOK_SECRET = "whsec_test"
PASSWORD = "secret-pass"
PASSWORD_HASH = hash_password(PASSWORD)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class FakeGateway(StripeGateway):
    def __init__(self):
        super().__init__(api_key="sk_test", webhook_secret=WEBHOOK_SECRET)
        self.sessions = []

    def create_session(self, params: dict) -> dict:
        self.sessions.append(params)
        sid = f"cs_test_{len(self.sessions)}"
        return {"id": sid, "url": f"https://checkout.stripe.test/{sid}"}


class FakeRedis:
    def __init__(self):
        self.values = {}

    def exists(self, key):
        return int(key in self.values)

    def set(self, key, value, ex=None):
        self.values[key] = value
        return True


class BrokenRedis:
    def exists(self, key):
        raise RedisConnectionError("redis is down")

    def set(self, key, value, ex=None):
        raise RedisConnectionError("redis is down")


def sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    ts = int(timestamp if timestamp is not None else time.time())
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def completed_event(cart_id, email, amount_total, address=None, event_id="evt_1") -> bytes:
    metadata = {"cartId": str(cart_id)}
    if address is not None:
        metadata["shippingAddress"] = json.dumps(address)
    return json.dumps({
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_test_1",
            "client_reference_id": str(cart_id),
            "customer_email": email,
            "amount_total": amount_total,
            "metadata": metadata,
        }},
    }).encode("utf-8")


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def processed():
    return ProcessedEvents(client=FakeRedis(), ttl=60)


@pytest.fixture(autouse=True)
def published(monkeypatch):
    sent = []
    monkeypatch.setattr(checkout, "send", lambda topic, key, value: sent.append((topic, key, value)))
    return sent


@pytest.fixture
def client(db, gateway, processed):
    def _db():
        yield db
    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_processed_events] = lambda: processed
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="buyer@example.com", role="user", name="Buyer"):
        user = User(name=name, email=email, password_hash=PASSWORD_HASH, role=role)
        db.add(user); db.commit(); db.refresh(user)
        return user
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin", name="Admin")


def headers_for(user: User) -> dict:
    token, _ = create_access_token(user.id, user.email, user.name, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_product(db):
    def _make(title="Desk Lamp", price="20.00", quantity=10, **extra):
        product = Product(title=title, slug=title.lower().replace(" ", "-"), price=Decimal(price),
                          quantity=quantity, sold=0, **extra)
        db.add(product); db.commit(); db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_cart(db):
    def _make(owner: User, lines, discount=None, after_discount=None):
        items = [CartItem(product_id=p.id, quantity=q, price=p.price) for p, q in lines]
        total = sum((Decimal(p.price) * q for p, q in lines), Decimal("0.00"))
        cart = Cart(user_id=owner.id, items=items, total_price=total,
                    discount=discount, total_price_after_discount=after_discount)
        db.add(cart); db.commit(); db.refresh(cart)
        return cart
    return _make
