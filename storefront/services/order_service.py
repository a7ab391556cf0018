# storefront/services/order_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_history import OrderHistoryModel
from storefront.domain import order_states, pricing
from storefront.domain.enums import OrderStatus, PaymentStatus
from storefront.domain.errors import OrderNotFound, StorefrontError
from storefront.domain.policy import Action, authorize
from storefront.repos.order_repo import OrderRepo
from storefront.services import notification_service as events
from storefront.services.inventory_service import InventoryService
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, TAX_RATE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _now():
    return datetime.now(timezone.utc)


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


def serialize_order(order: OrderModel, history: List[OrderHistoryModel] | None = None) -> Dict[str, Any]:
    data = {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "delivery_type": _enum_value(order.delivery_type),
        "status": _enum_value(order.status),
        "payment_status": _enum_value(order.payment_status),
        "payment_method": order.payment_method,
        "subtotal": pricing.money(order.subtotal),
        "shipping_cost": pricing.money(order.shipping_cost),
        "tax": pricing.money(order.tax),
        "total": pricing.money(order.total),
        "shipping_address_id": order.shipping_address_id,
        "shipping_snapshot": order.shipping_snapshot,
        "notes": order.notes,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "shipping_cost_set_at": order.shipping_cost_set_at,
        "customer_confirmed_at": order.customer_confirmed_at,
        "cancelled_at": order.cancelled_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "product_name": i.product_name,
                "product_brand": i.product_brand,
                "product_image": i.product_image,
                "quantity": i.quantity,
                "unit_price": pricing.money(i.unit_price),
                "total_price": pricing.money(i.total_price),
            }
            for i in order.items
        ],
    }
    if history is not None:
        data["history"] = [
            {
                "old_status": _enum_value(h.old_status),
                "new_status": _enum_value(h.new_status),
                "old_payment_status": _enum_value(h.old_payment_status),
                "new_payment_status": _enum_value(h.new_payment_status),
                "changed_by_user_id": h.changed_by_user_id,
                "note": h.note,
                "changed_at": h.changed_at,
            }
            for h in history
        ]
    return data


def _page(orders: List[OrderModel], total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "data": [serialize_order(o) for o in orders],
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit,
    }


class OrderService:
    """
    Order lifecycle after checkout.

    Every explicit transition (shipping cost, confirm, admin update, cancel)
    is checked against domain.order_states, written with one OrderHistory
    row and committed as one unit. Notifications go out after the commit.
    """

    def __init__(self, db: Session, notifier: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.inventory = InventoryService(db)
        self.notifier = notifier or NotificationService()

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, actor, order_id: int) -> Dict[str, Any]:
        order = self._load(order_id)
        authorize(actor, Action.VIEW_ORDER, owner_id=order.user_id)
        return serialize_order(order, history=self.repo.get_history(order.id))

    def list_my_orders(self, actor, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
        page, limit = max(page, 1), max(limit, 1)
        orders, total = self.repo.list_orders(page, limit, user_id=actor.id)
        return _page(orders, total, page, limit)

    def list_all(
        self,
        actor,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        user_id: int | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Dict[str, Any]:
        authorize(actor, Action.LIST_ALL_ORDERS)
        page, limit = max(page, 1), max(limit, 1)
        orders, total = self.repo.list_orders(
            page,
            limit,
            user_id=user_id,
            status=status,
            payment_status=payment_status,
            start_date=start_date,
            end_date=end_date,
        )
        return _page(orders, total, page, limit)

    def list_awaiting_shipping_cost(self, actor) -> List[Dict[str, Any]]:
        authorize(actor, Action.LIST_ALL_ORDERS)
        return [serialize_order(o) for o in self.repo.list_by_status(OrderStatus.AWAITING_SHIPPING_COST)]

    def find_by_order_number(self, actor, order_number: str) -> Dict[str, Any]:
        authorize(actor, Action.LIST_ALL_ORDERS)
        order = self.repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound(order_number=order_number)
        return serialize_order(order, history=self.repo.get_history(order.id))

    def statistics(self, actor) -> Dict[str, Any]:
        authorize(actor, Action.VIEW_STATISTICS)
        by_status = self.repo.count_by_status()
        return {
            "total_orders": sum(by_status.values()),
            "by_status": by_status,
            "by_payment_status": self.repo.count_by_payment_status(),
            "awaiting_shipping_cost": by_status.get(OrderStatus.AWAITING_SHIPPING_COST.value, 0),
            "revenue": pricing.money(self.repo.approved_revenue()),
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def set_shipping_cost(self, actor, order_id: int, shipping_cost: Decimal) -> Dict[str, Any]:
        """
        Admin prices shipping: AWAITING_SHIPPING_COST -> SHIPPING_COST_SET.
        """
        authorize(actor, Action.SET_SHIPPING_COST)

        try:
            order = self._load(order_id, for_update=True)
            order_states.ensure_can_set_shipping_cost(order)

            old_status = OrderStatus(order.status)
            order.shipping_cost = pricing.money(shipping_cost)
            pricing.recompute_total(order, TAX_RATE)
            order.status = OrderStatus.SHIPPING_COST_SET
            order.shipping_cost_set_at = _now()
            self._append_history(order, actor, old_status, order.status)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number}: shipping cost {order.shipping_cost}, total {order.total}"
        )
        self._notify(events.ORDER_SHIPPING_COST_SET, order)
        return serialize_order(order)

    def confirm(self, actor, order_id: int, note: str | None = None) -> Dict[str, Any]:
        """
        Customer accepts the priced order: SHIPPING_COST_SET -> CONFIRMED.
        """
        try:
            order = self._load(order_id, for_update=True)
            authorize(actor, Action.CONFIRM_ORDER, owner_id=order.user_id)
            order_states.ensure_can_confirm(order)

            old_status = OrderStatus(order.status)
            order.status = OrderStatus.CONFIRMED
            order.customer_confirmed_at = _now()
            self._append_history(order, actor, old_status, order.status, note=note)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.order_number} confirmed by user {actor.id}")
        self._notify(events.ORDER_STATUS_CHANGED, order)
        return serialize_order(order)

    def update_status(
        self,
        actor,
        order_id: int,
        status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        note: str | None = None,
    ) -> Dict[str, Any]:
        """
        Admin status/payment update. Free transitions except cancelling an
        order with approved payment and reopening a cancelled one.
        Cancelling here gives the stock back like a customer cancel.
        """
        authorize(actor, Action.UPDATE_ORDER_STATUS)

        release_errors: List[Dict[str, Any]] = []
        try:
            order = self._load(order_id, for_update=True)
            old_status = OrderStatus(order.status)
            old_payment = PaymentStatus(order.payment_status)

            new_status, new_payment = order_states.resolve_admin_update(order, status, payment_status)

            if new_status == old_status and new_payment == old_payment:
                self.repo.rollback()
                return {**serialize_order(order), "stock_release_errors": []}

            order.status = new_status
            order.payment_status = new_payment
            if new_status == OrderStatus.CANCELLED and old_status != OrderStatus.CANCELLED:
                order.cancelled_at = _now()
                self.db.flush()
                release_errors = self._release_stock(order)

            self._append_history(
                order, actor, old_status, new_status,
                old_payment=old_payment, new_payment=new_payment, note=note,
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number}: {old_status.value}/{old_payment.value} -> "
            f"{new_status.value}/{new_payment.value} by admin {actor.id}"
        )
        self._notify(events.ORDER_STATUS_CHANGED, order)
        return {**serialize_order(order), "stock_release_errors": release_errors}

    def cancel(self, actor, order_id: int) -> Dict[str, Any]:
        """
        Customer self-cancellation, only from PENDING.

        The status flip and the history row always commit; stock release is
        best effort per line and failures come back in
        `stock_release_errors` instead of aborting the cancel.
        """
        try:
            order = self._load(order_id, for_update=True)
            authorize(actor, Action.CANCEL_ORDER, owner_id=order.user_id)
            order_states.ensure_customer_can_cancel(order)

            old_status = OrderStatus(order.status)
            order.status = OrderStatus.CANCELLED
            order.cancelled_at = _now()
            self.db.flush()

            release_errors = self._release_stock(order)
            self._append_history(order, actor, old_status, order.status)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.order_number} cancelled by user {actor.id}")
        self._notify(events.ORDER_STATUS_CHANGED, order)
        return {**serialize_order(order), "stock_release_errors": release_errors}

    # =====================================================
    # helpers
    # =====================================================
    def _load(self, order_id: int, for_update: bool = False) -> OrderModel:
        order = self.repo.get_order_for_update(order_id) if for_update else self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id=order_id)
        return order

    def _release_stock(self, order: OrderModel) -> List[Dict[str, Any]]:
        errors = []
        for item in order.items:
            try:
                with self.db.begin_nested():
                    self.inventory.release(item.product_id, item.quantity)
            except (StorefrontError, SQLAlchemyError) as e:
                logger.error(
                    f"Order {order.order_number}: could not release {item.quantity} "
                    f"units of product {item.product_id}: {e}"
                )
                errors.append({
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "error": str(e),
                })
        return errors

    def _append_history(
        self,
        order: OrderModel,
        actor,
        old_status: OrderStatus,
        new_status: OrderStatus,
        old_payment: PaymentStatus | None = None,
        new_payment: PaymentStatus | None = None,
        note: str | None = None,
    ) -> OrderHistoryModel:
        return self.repo.add_history(
            OrderHistoryModel(
                order_id=order.id,
                old_status=old_status,
                new_status=new_status,
                old_payment_status=old_payment,
                new_payment_status=new_payment,
                changed_by_user_id=actor.id,
                note=note,
            )
        )

    def _notify(self, event: str, order: OrderModel) -> None:
        try:
            self.notifier.notify(event, {
                "order_id": order.id,
                "order_number": order.order_number,
                "user_id": order.user_id,
                "status": _enum_value(order.status),
                "payment_status": _enum_value(order.payment_status),
                "total": str(pricing.money(order.total)),
            })
        except Exception:
            logger.exception(f"Notification {event} for order {order.order_number} failed")
