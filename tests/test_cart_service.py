from decimal import Decimal

import pytest

from storefront.domain.enums import ProductStatus
from storefront.domain.errors import (
    InsufficientStock,
    InvalidQuantity,
    ItemNotFound,
    ProductNotFound,
    ProductUnavailable,
    QuantityCapExceeded,
)
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartService


@pytest.fixture
def carts(db):
    return CartService(db)


def test_get_or_create_is_idempotent(carts, customer):
    first = carts.get_or_create(customer.id)
    second = carts.get_or_create(customer.id)

    assert first.id == second.id


def test_add_item_creates_then_merges_line(carts, customer, make_product):
    product = make_product(stock=8)

    carts.add_item(customer, product.id, 2)
    view = carts.add_item(customer, product.id, 3)

    assert view["total"] == 1
    assert view["data"][0]["quantity"] == 5
    assert view["subtotal"] == Decimal("500.00")


def test_add_item_rejects_non_positive_quantity(carts, customer, make_product):
    product = make_product()

    with pytest.raises(InvalidQuantity):
        carts.add_item(customer, product.id, 0)


def test_add_item_unknown_product(carts, customer):
    with pytest.raises(ProductNotFound):
        carts.add_item(customer, 999, 1)


def test_add_item_inactive_product(carts, customer, make_product):
    product = make_product(status=ProductStatus.INACTIVE)

    with pytest.raises(ProductUnavailable):
        carts.add_item(customer, product.id, 1)


def test_add_item_counts_existing_quantity_against_stock(carts, customer, make_product):
    product = make_product(stock=4)
    carts.add_item(customer, product.id, 3)

    with pytest.raises(InsufficientStock):
        carts.add_item(customer, product.id, 2)


def test_quantity_cap_applies_even_with_enough_stock(carts, customer, make_product, db):
    # 5 in the cart + 6 more > cap of 10, stock is not the problem
    product = make_product(name="Q", stock=6)
    carts.add_item(customer, product.id, 5)
    product.stock = 20
    db.commit()

    with pytest.raises(QuantityCapExceeded):
        carts.add_item(customer, product.id, 6)

    view = carts.view(customer)
    assert view["data"][0]["quantity"] == 5


def test_quantity_cap_on_new_line(carts, customer, make_product):
    product = make_product(stock=50)

    with pytest.raises(QuantityCapExceeded):
        carts.add_item(customer, product.id, 11)


def test_untracked_product_skips_stock_check(carts, customer, make_product):
    product = make_product(stock=0, track_inventory=False)

    view = carts.add_item(customer, product.id, 3)

    assert view["data"][0]["quantity"] == 3


def test_update_item_replaces_quantity(carts, customer, make_product):
    product = make_product(stock=10)
    carts.add_item(customer, product.id, 2)

    view = carts.update_item(customer, product.id, 7)

    assert view["data"][0]["quantity"] == 7


def test_update_item_to_zero_removes_line(carts, customer, make_product):
    product = make_product()
    carts.add_item(customer, product.id, 2)

    view = carts.update_item(customer, product.id, 0)

    assert view["total"] == 0


def test_update_item_rechecks_stock(carts, customer, make_product):
    product = make_product(stock=3)
    carts.add_item(customer, product.id, 1)

    with pytest.raises(InsufficientStock):
        carts.update_item(customer, product.id, 4)


def test_update_item_missing_line(carts, customer, make_product):
    product = make_product()

    with pytest.raises(ItemNotFound):
        carts.update_item(customer, product.id, 1)


def test_remove_item(carts, customer, make_product):
    a = make_product(name="A")
    b = make_product(name="B")
    carts.add_item(customer, a.id, 1)
    carts.add_item(customer, b.id, 1)

    view = carts.remove_item(customer, a.id)

    assert [line["product"]["id"] for line in view["data"]] == [b.id]
    with pytest.raises(ItemNotFound):
        carts.remove_item(customer, a.id)


def test_clear_is_idempotent(carts, customer, make_product):
    product = make_product()
    carts.add_item(customer, product.id, 2)

    assert carts.clear(customer)["removed"] == 1
    assert carts.clear(customer)["removed"] == 0
    assert carts.view(customer)["total"] == 0


def test_mutations_bump_cart_version(carts, customer, make_product, db):
    product = make_product()
    cart = carts.get_or_create(customer.id)
    start = cart.version

    carts.add_item(customer, product.id, 1)
    carts.update_item(customer, product.id, 2)

    db.refresh(cart)
    assert cart.version == start + 2


def test_view_hides_inactive_products(carts, customer, make_product, db):
    active = make_product(name="Active")
    gone = make_product(name="Gone")
    carts.add_item(customer, active.id, 1)
    carts.add_item(customer, gone.id, 1)
    gone.status = ProductStatus.DISCONTINUED
    db.commit()

    view = carts.view(customer)

    assert view["total"] == 1
    assert view["data"][0]["product"]["name"] == "Active"
    # the line is hidden, not deleted
    assert len(CartRepo(db).get_cart_items(view["cart_id"])) == 2


def test_view_totals_cover_only_the_returned_page(carts, customer, make_product):
    p1 = make_product(name="P1", price="10.00", weight=Decimal("1.5"), length=Decimal("10"))
    p2 = make_product(name="P2", price="20.00", weight=Decimal("2"), length=Decimal("5"))
    p3 = make_product(name="P3", price="30.00", weight=Decimal("3"))
    carts.add_item(customer, p1.id, 2)
    carts.add_item(customer, p2.id, 1)
    carts.add_item(customer, p3.id, 1)

    first = carts.view(customer, page=1, limit=2)
    second = carts.view(customer, page=2, limit=2)

    assert first["total"] == 3
    assert first["total_pages"] == 2
    assert first["subtotal"] == Decimal("40.00")
    assert first["total_weight"] == Decimal("5.0")
    assert first["total_length"] == Decimal("25")
    assert second["subtotal"] == Decimal("30.00")
    assert second["total_weight"] == Decimal("3")
    assert len(second["data"]) == 1


def test_view_is_stable_without_mutation(carts, customer, make_product):
    product = make_product(price="12.34")
    carts.add_item(customer, product.id, 3)

    assert carts.view(customer) == carts.view(customer)


def test_view_uses_current_product_price(carts, customer, make_product, db):
    product = make_product(price="100.00")
    carts.add_item(customer, product.id, 2)
    product.price = Decimal("150.00")
    db.commit()

    assert carts.view(customer)["subtotal"] == Decimal("300.00")


def test_customers_have_separate_carts(carts, customer, other_customer, make_product):
    product = make_product()
    carts.add_item(customer, product.id, 1)

    assert carts.view(other_customer)["total"] == 0
