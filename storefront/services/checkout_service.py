# storefront/services/checkout_service.py
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain import order_states, pricing
from storefront.domain.enums import DeliveryType, OrderStatus, PaymentStatus
from storefront.domain.errors import (
    CartModified,
    CheckoutConflict,
    CheckoutInProgress,
    EmptyCart,
    InsufficientStock,
    InvalidShippingAddress,
    OrderNumberConflict,
    ProductUnavailable,
    ShippingAddressRequired,
)
from storefront.domain.policy import Action, authorize
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services import notification_service as events
from storefront.services.address_client import AddressClient, AddressNotFound
from storefront.services.inventory_service import InventoryService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import serialize_order
from storefront.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, ORDER_NUMBER_PREFIX, TAX_RATE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Cart -> Order.

    1. load the cart (EmptyCart)
    2. delivery: fetch and freeze the shipping address
    3. lock product rows, re-check active + stock
    4. price with shipping 0
    5. allocate the order number, insert order + items with frozen unit
       prices (timestamp number if the sequence one is taken at insert)
    6. reserve stock
    7. drain the cart
    Steps 3-7 share one transaction, any failure rolls all of them back.
    Notification is sent after the commit and cannot fail the checkout.
    """

    def __init__(
        self,
        db: Session,
        address_client: AddressClient,
        lock_service: LockService,
        notifier: NotificationService | None = None,
        tax_rate=TAX_RATE,
    ):
        self.db = db
        self.carts = CartRepo(db)
        self.orders = OrderRepo(db)
        self.products = ProductRepo(db)
        self.inventory = InventoryService(db)
        self.address_client = address_client
        self.lock_service = lock_service
        self.notifier = notifier or NotificationService()
        self.tax_rate = tax_rate

    def checkout(
        self,
        actor,
        delivery_type: DeliveryType,
        shipping_address_id: int | None = None,
        notes: str | None = None,
        idempotency_key: str | None = None,
    ) -> Dict[str, Any]:
        authorize(actor, Action.CHECKOUT, owner_id=actor.id)
        delivery_type = DeliveryType(delivery_type)

        if idempotency_key:
            previous = self.lock_service.get_idempotent_order(actor.id, idempotency_key)
            if previous is not None:
                order = self.orders.get_order(previous)
                if order is not None:
                    logger.info(f"Idempotent replay of checkout {idempotency_key} -> order {order.id}")
                    return serialize_order(order)

        token = uuid.uuid4().hex
        if not self.lock_service.acquire_checkout_lock(actor.id, token, CHECKOUT_LOCK_TTL_SECONDS):
            raise CheckoutInProgress()

        try:
            order = self._checkout_locked(actor, delivery_type, shipping_address_id, notes)
        finally:
            self.lock_service.release_checkout_lock(actor.id, token)

        if idempotency_key:
            try:
                self.lock_service.remember_idempotent_order(actor.id, idempotency_key, order.id)
            except Exception:
                logger.exception(f"Could not store idempotency key for order {order.id}")

        self._notify_created(order)
        return serialize_order(order)

    def _checkout_locked(self, actor, delivery_type, shipping_address_id, notes) -> OrderModel:
        cart = self.carts.get_cart_by_user(actor.id)
        items = self.carts.get_cart_items(cart.id) if cart else []
        if not items:
            raise EmptyCart()

        #address book is remote, fetched before any product row is locked
        shipping_address_id, snapshot = self._shipping_snapshot(actor, delivery_type, shipping_address_id)

        try:
            order = self._build_order(actor, cart, items, delivery_type, shipping_address_id, snapshot, notes)
            self.orders.commit()
        except IntegrityError as e:
            self.orders.rollback()
            logger.error(f"Checkout for user {actor.id} hit a constraint: {e.orig}")
            if _is_order_number_clash(e):
                raise OrderNumberConflict() from e
            raise CheckoutConflict() from e
        except Exception:
            self.orders.rollback()
            raise

        logger.info(
            f"Order {order.order_number} created from cart {cart.id} "
            f"({len(order.items)} lines, total {order.total}, {order.status.value})"
        )
        return order

    def _shipping_snapshot(self, actor, delivery_type, shipping_address_id):
        if delivery_type != DeliveryType.DELIVERY:
            return None, None
        if shipping_address_id is None:
            raise ShippingAddressRequired()
        try:
            snapshot = self.address_client.find_owned_address(actor.id, shipping_address_id)
        except AddressNotFound as e:
            raise InvalidShippingAddress(shipping_address_id=shipping_address_id) from e
        return shipping_address_id, snapshot

    def _build_order(self, actor, cart, items, delivery_type, shipping_address_id, snapshot, notes) -> OrderModel:
        #row locks on every product of the cart, then re-check, add-time checks are stale by now
        products = {p.id: p for p in self.products.get_products_for_update(i.product_id for i in items)}
        for item in items:
            product = products.get(item.product_id)
            if product is None or not product.is_active:
                raise ProductUnavailable(item.product_id, product.name if product else None)
            if product.track_inventory and product.stock < item.quantity:
                raise InsufficientStock(product.id, product.name, item.quantity, product.stock)

        def new_order(order_number: str) -> OrderModel:
            order = OrderModel(
                order_number=order_number,
                user_id=actor.id,
                delivery_type=delivery_type,
                status=order_states.initial_status(delivery_type),
                payment_status=PaymentStatus.PENDING,
                shipping_cost=pricing.ZERO,
                shipping_address_id=shipping_address_id,
                shipping_snapshot=snapshot,
                notes=notes,
            )
            for item in items:
                product = products[item.product_id]
                order.items.append(
                    OrderItemModel(
                        product_id=product.id,
                        product_name=product.name,
                        product_brand=product.brand,
                        product_image=product.image,
                        quantity=item.quantity,
                        unit_price=pricing.money(product.price),
                        total_price=pricing.line_total(product.price, item.quantity),
                    )
                )
            # shipping stays 0 until an admin prices delivery
            pricing.recompute_total(order, self.tax_rate)
            return order

        order = self._insert_order(new_order)

        for item in items:
            self.inventory.reserve(item.product_id, item.quantity)

        self.carts.delete_all_items(cart.id)
        #drain only the cart version we priced, a parallel cart edit aborts the whole checkout
        rowcount = self.carts.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )
        if rowcount == 0:
            raise CartModified()

        return order

    def _insert_order(self, new_order) -> OrderModel:
        """
        INSERT under a savepoint. A parallel checkout that took the same
        sequence number between our count and our insert makes the unique
        index fire; the insert is retried once with the timestamp number.
        """
        taken = self._allocate_order_number()
        try:
            with self.db.begin_nested():
                return self.orders.create_order(new_order(taken))
        except IntegrityError as e:
            if not _is_order_number_clash(e):
                raise

        fallback = self._fallback_order_number(taken)
        logger.warning(f"Order number {taken} taken at insert, using {fallback}")
        with self.db.begin_nested():
            return self.orders.create_order(new_order(fallback))

    def _allocate_order_number(self) -> str:
        """
        PREFIX-YYMMDD-NNNN, NNNN = orders already numbered today + 1.
        On collision falls back to the millisecond timestamp.
        """
        prefix = _day_prefix()
        seq = self.orders.count_numbers_with_prefix(prefix) + 1
        number = f"{prefix}{seq:04d}"
        if not self.orders.order_number_exists(number):
            return number

        fallback = self._fallback_order_number(number)
        logger.warning(f"Order number {number} taken, using {fallback}")
        return fallback

    def _fallback_order_number(self, taken: str) -> str:
        fallback = f"{_day_prefix()}{int(time.time() * 1000) % 100_000_000:08d}"
        if fallback == taken or self.orders.order_number_exists(fallback):
            raise OrderNumberConflict()
        return fallback

    def _notify_created(self, order: OrderModel) -> None:
        payload = {
            "order_id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "delivery_type": order.delivery_type.value,
            "total": str(order.total),
        }
        try:
            self.notifier.notify(events.ORDER_CREATED, payload)
            if order.status == OrderStatus.AWAITING_SHIPPING_COST:
                self.notifier.notify(events.ORDER_AWAITING_SHIPPING_COST, payload)
        except Exception:
            logger.exception(f"Notification for order {order.order_number} failed")


def _day_prefix() -> str:
    return f"{ORDER_NUMBER_PREFIX}-{datetime.now(timezone.utc):%y%m%d}-"


def _is_order_number_clash(error: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: orders.order_number"
    # postgres: 'duplicate key ... unique constraint "ix_orders_order_number"'
    return "order_number" in str(error.orig)
