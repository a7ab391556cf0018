import pytest
import requests

from storefront.services import address_client as address_module
from storefront.services import notification_service as events
from storefront.services.address_client import AddressClient, AddressNotFound
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService, send_notification_task


class FakeResponse:
    def __init__(self, status_code, data=None):
        self.status_code = status_code
        self._data = data or {}

    def json(self):
        return self._data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")


def test_address_snapshot_keeps_known_fields(monkeypatch):
    seen = []

    def fake_get(url, timeout):
        seen.append(url)
        return FakeResponse(200, {"id": 7, "user_id": 1, "city": "La Plata", "line1": "Calle 7", "is_default": True})

    monkeypatch.setattr(address_module.requests, "get", fake_get)

    snapshot = AddressClient(base_url="http://addresses/").find_owned_address(1, 7)

    assert seen == ["http://addresses/users/1/addresses/7"]
    assert snapshot["city"] == "La Plata"
    assert snapshot["line2"] is None
    assert "is_default" not in snapshot


@pytest.mark.parametrize("status", [403, 404, 500])
def test_address_errors_become_not_found(monkeypatch, status):
    monkeypatch.setattr(address_module.requests, "get", lambda url, timeout: FakeResponse(status))

    with pytest.raises(AddressNotFound):
        AddressClient(base_url="http://addresses").find_owned_address(1, 7)


def test_address_of_another_owner(monkeypatch):
    monkeypatch.setattr(
        address_module.requests, "get", lambda url, timeout: FakeResponse(200, {"user_id": 2, "city": "X"})
    )

    with pytest.raises(AddressNotFound):
        AddressClient(base_url="http://addresses").find_owned_address(1, 7)


class NotJsonResponse(FakeResponse):
    def json(self):
        raise requests.JSONDecodeError("Expecting value", "<html>", 0)


def test_unreadable_address_body_is_not_found(monkeypatch):
    monkeypatch.setattr(address_module.requests, "get", lambda url, timeout: NotJsonResponse(200))

    with pytest.raises(AddressNotFound):
        AddressClient(base_url="http://addresses").find_owned_address(1, 7)


@pytest.mark.parametrize("body", [{"city": "X"}, {"user_id": "abc", "city": "X"}, {"user_id": None}, ["not", "a", "dict"]])
def test_address_without_a_readable_owner_is_not_found(monkeypatch, body):
    monkeypatch.setattr(address_module.requests, "get", lambda url, timeout: FakeResponse(200, body))

    with pytest.raises(AddressNotFound):
        AddressClient(base_url="http://addresses").find_owned_address(1, 7)


def test_unreachable_address_book_is_retried(monkeypatch):
    calls = []

    def down(url, timeout):
        calls.append(url)
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(address_module.requests, "get", down)
    monkeypatch.setattr(AddressClient._get.retry, "sleep", lambda seconds: None)

    with pytest.raises(AddressNotFound):
        AddressClient(base_url="http://addresses").find_owned_address(1, 7)

    assert len(calls) == 3


class BrokenTask:
    def delay(self, *args, **kwargs):
        raise ConnectionError("broker down")


def test_notifier_swallows_broker_errors(monkeypatch):
    monkeypatch.setattr(events, "send_notification_task", BrokenTask())

    NotificationService().notify(events.ORDER_CREATED, {"order_id": 1})


def test_notification_task_runs_eagerly():
    result = send_notification_task.delay(events.ORDER_CREATED, {"order_id": 1})

    assert result.get()["event"] == events.ORDER_CREATED


class FakeRedis:
    def __init__(self):
        self.store = {}

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.store:
            return None
        self.store[name] = value
        return True

    def get(self, name):
        return self.store.get(name)

    def eval(self, script, numkeys, key, token):
        if self.store.get(key) == token:
            del self.store[key]
            return 1
        return 0


@pytest.fixture
def locks():
    service = LockService(url="redis://localhost:6379/0")
    service.redis = FakeRedis()
    return service


def test_checkout_lock_is_exclusive(locks):
    assert locks.acquire_checkout_lock(1, "a", 30) is True
    assert locks.acquire_checkout_lock(1, "b", 30) is False
    assert locks.acquire_checkout_lock(2, "c", 30) is True


def test_checkout_lock_release_needs_owner_token(locks):
    locks.acquire_checkout_lock(1, "a", 30)

    assert locks.release_checkout_lock(1, "b") is False
    assert locks.release_checkout_lock(1, "a") is True
    assert locks.acquire_checkout_lock(1, "b", 30) is True


def test_idempotency_keys_are_per_user(locks):
    locks.remember_idempotent_order(1, "k", 42)

    assert locks.get_idempotent_order(1, "k") == 42
    assert locks.get_idempotent_order(2, "k") is None
