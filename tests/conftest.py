"""
Pytest fixtures: in-memory SQLite database, seeded actors, product factory
and in-memory stand-ins for Redis, the address book and the notifier.
"""
import os

# Set test environment before importing storefront modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["TAX_RATE"] = "0.21"
os.environ["MAX_QTY_PER_PRODUCT"] = "10"
os.environ["ORDER_NUMBER_PREFIX"] = "MAA"

from decimal import Decimal

import pytest

from storefront.data.database import Base, SessionLocal, engine, init_db
from storefront.data.models import ProductModel, UserModel
from storefront.domain.enums import ProductStatus, UserRole
from storefront.services.address_client import AddressNotFound


class FakeLockService:
    """Dict-backed replacement of the Redis lock/idempotency store."""

    def __init__(self):
        self.locks = {}
        self.idempotency = {}

    def acquire_checkout_lock(self, user_id, token, ttl):
        if user_id in self.locks:
            return False
        self.locks[user_id] = token
        return True

    def release_checkout_lock(self, user_id, token):
        if self.locks.get(user_id) == token:
            del self.locks[user_id]
            return True
        return False

    def get_idempotent_order(self, user_id, key):
        return self.idempotency.get((user_id, key))

    def remember_idempotent_order(self, user_id, key, order_id, ttl=None):
        self.idempotency[(user_id, key)] = order_id


class FakeAddressClient:
    def __init__(self):
        self.addresses = {}

    def add(self, user_id, address_id, **fields):
        data = {
            "full_name": "Ana Pérez",
            "phone": "+54 11 5555-0000",
            "country": "Argentina",
            "state": "Buenos Aires",
            "city": "La Plata",
            "postal_code": "1900",
            "line1": "Calle 7 1234",
        }
        data.update(fields)
        self.addresses[(user_id, address_id)] = data
        return data

    def find_owned_address(self, user_id, address_id):
        try:
            return dict(self.addresses[(user_id, address_id)])
        except KeyError:
            raise AddressNotFound(address_id)


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def notify(self, event, payload):
        self.events.append((event, payload))


class BrokenNotifier:
    def notify(self, event, payload):
        raise RuntimeError("broker down")


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def customer(db):
    user = UserModel(id=1, name="Ana", email="ana@example.com", role=UserRole.CUSTOMER)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_customer(db):
    user = UserModel(id=2, name="Bruno", email="bruno@example.com", role=UserRole.CUSTOMER)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db):
    user = UserModel(id=3, name="Admin", email="admin@example.com", role=UserRole.ADMIN)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def make_product(db):
    def _make(
        name="Shampoo",
        price="100.00",
        stock=5,
        status=ProductStatus.ACTIVE,
        track_inventory=True,
        **extra,
    ):
        product = ProductModel(
            name=name,
            description="",
            price=Decimal(price),
            stock=stock,
            status=status,
            track_inventory=track_inventory,
            **extra,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def address_client():
    return FakeAddressClient()


@pytest.fixture
def notifier():
    return RecordingNotifier()
