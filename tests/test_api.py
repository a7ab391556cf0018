import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import get_address_client, get_lock_service, get_notifier
from storefront.data.database import get_db
from storefront.main import app


@pytest.fixture
def client(db, lock_service, address_client, notifier):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_address_client] = lambda: address_client
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_and_get_user(client):
    r = client.post("/users/", json={"id": 10, "name": "Carla", "email": "carla@example.com"})
    assert r.status_code == 201
    assert r.json()["role"] == "customer"

    r = client.get("/users/10")
    assert r.json()["name"] == "Carla"

    r = client.post("/users/", json={"id": 11, "name": "Otra", "email": "carla@example.com"})
    assert r.status_code == 409
    assert r.json()["code"] == "EMAIL_ALREADY_USED"


def test_unknown_actor_is_404(client):
    r = client.get("/cart/", params={"user_id": 999})

    assert r.status_code == 404
    assert r.json()["code"] == "USER_NOT_FOUND"


def test_catalog_is_admin_only(client, customer, admin):
    body = {"name": "Cera", "price": "12.50", "stock": 3}

    r = client.post("/products/", params={"user_id": customer.id}, json=body)
    assert r.status_code == 403

    r = client.post("/products/", params={"user_id": admin.id}, json=body)
    assert r.status_code == 201
    product_id = r.json()["id"]

    r = client.patch(f"/products/{product_id}", params={"user_id": admin.id}, json={"stock": 7})
    assert r.json()["stock"] == 7


def test_cart_flow(client, customer, make_product):
    product = make_product(price="100.00", stock=5)
    who = {"user_id": customer.id}

    r = client.post("/cart/items", params=who, json={"product_id": product.id, "quantity": 2})
    assert r.status_code == 200
    assert r.json()["subtotal"] == "200.00"

    r = client.patch("/cart/items", params=who, json={"product_id": product.id, "quantity": 4})
    assert r.json()["data"][0]["quantity"] == 4

    r = client.post("/cart/items", params=who, json={"product_id": product.id, "quantity": 2})
    assert r.status_code == 409
    assert r.json()["code"] == "INSUFFICIENT_STOCK"
    assert r.json()["available"] == 5

    r = client.delete(f"/cart/items/{product.id}", params=who)
    assert r.json()["total"] == 0

    r = client.delete(f"/cart/items/{product.id}", params=who)
    assert r.status_code == 404

    r = client.delete("/cart/", params=who)
    assert r.json() == {"message": "Carrito vaciado.", "removed": 0}


def test_cart_rejects_zero_quantity(client, customer, make_product):
    product = make_product()

    r = client.post(
        "/cart/items", params={"user_id": customer.id}, json={"product_id": product.id, "quantity": 0}
    )

    assert r.status_code == 422


def test_quantity_cap_is_400(client, customer, make_product):
    product = make_product(stock=50)

    r = client.post(
        "/cart/items", params={"user_id": customer.id}, json={"product_id": product.id, "quantity": 11}
    )

    assert r.status_code == 400
    assert r.json()["code"] == "QUANTITY_CAP_EXCEEDED"


def test_checkout_and_order_lifecycle(client, customer, admin, make_product, address_client):
    product = make_product(price="100.00", stock=5)
    address_client.add(customer.id, 3)
    who = {"user_id": customer.id}
    client.post("/cart/items", params=who, json={"product_id": product.id, "quantity": 2})

    r = client.post(
        "/orders/from-cart",
        params=who,
        json={"delivery_type": "delivery", "shipping_address_id": 3},
        headers={"Idempotency-Key": "k-1"},
    )
    assert r.status_code == 201
    order = r.json()
    assert order["status"] == "awaiting_shipping_cost"
    assert order["subtotal"] == "200.00"

    r = client.get("/orders/admin/awaiting-shipping-cost", params={"user_id": admin.id})
    assert [o["id"] for o in r.json()] == [order["id"]]

    r = client.patch(
        f"/orders/{order['id']}/shipping-cost", params={"user_id": admin.id}, json={"shipping_cost": "50.00"}
    )
    assert r.status_code == 200
    assert r.json()["total"] == "292.00"

    r = client.patch(f"/orders/{order['id']}/confirm", params=who)
    assert r.json()["status"] == "confirmed"

    r = client.patch(
        f"/orders/{order['id']}/status", params={"user_id": admin.id}, json={"payment_status": "approved"}
    )
    assert r.json()["status"] == "paid"
    assert r.json()["stock_release_errors"] == []

    r = client.get(f"/orders/{order['id']}", params=who)
    assert len(r.json()["history"]) == 3

    r = client.get(f"/orders/admin/search/{order['order_number']}", params={"user_id": admin.id})
    assert r.json()["id"] == order["id"]

    r = client.get("/orders/admin/statistics", params={"user_id": admin.id})
    assert r.json()["revenue"] == "292.00"


def test_checkout_errors(client, customer):
    r = client.post("/orders/from-cart", params={"user_id": customer.id}, json={"delivery_type": "pickup"})

    assert r.status_code == 400
    assert r.json()["code"] == "EMPTY_CART"


def test_checkout_replays_idempotency_key(client, customer, make_product):
    product = make_product(stock=5)
    who = {"user_id": customer.id}
    headers = {"Idempotency-Key": "same"}
    client.post("/cart/items", params=who, json={"product_id": product.id, "quantity": 1})

    first = client.post("/orders/from-cart", params=who, json={"delivery_type": "pickup"}, headers=headers)
    second = client.post("/orders/from-cart", params=who, json={"delivery_type": "pickup"}, headers=headers)

    assert first.status_code == second.status_code == 201
    assert first.json()["id"] == second.json()["id"]


def test_customer_cancel_and_foreign_access(client, customer, other_customer, make_product):
    product = make_product(stock=5)
    who = {"user_id": customer.id}
    client.post("/cart/items", params=who, json={"product_id": product.id, "quantity": 2})
    order = client.post("/orders/from-cart", params=who, json={"delivery_type": "pickup"}).json()

    r = client.get(f"/orders/{order['id']}", params={"user_id": other_customer.id})
    assert r.status_code == 403

    r = client.patch(f"/orders/{order['id']}/cancel", params=who)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    r = client.patch(f"/orders/{order['id']}/cancel", params=who)
    assert r.status_code == 409
    assert r.json()["code"] == "ONLY_PENDING_ORDERS_CANCELLABLE"

    r = client.get("/orders/my-orders", params=who)
    assert r.json()["total"] == 1

    r = client.get(f"/products/{product.id}")
    assert r.json()["stock"] == 5


def test_admin_routes_reject_customers(client, customer):
    who = {"user_id": customer.id}

    assert client.get("/orders/admin/all", params=who).status_code == 403
    assert client.get("/orders/admin/statistics", params=who).status_code == 403
    assert client.get("/orders/admin/awaiting-shipping-cost", params=who).status_code == 403


def test_unknown_order_is_404(client, admin):
    r = client.get("/orders/12345", params={"user_id": admin.id})

    assert r.status_code == 404
    assert r.json()["code"] == "ORDER_NOT_FOUND"
