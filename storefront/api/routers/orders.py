# storefront/api/routers/orders.py
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor, get_address_client, get_lock_service, get_notifier
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.enums import OrderStatus, PaymentStatus
from storefront.domain.schemas import (
    CheckoutIn,
    ConfirmOrderIn,
    OrderChangeOut,
    OrderOut,
    OrderPageOut,
    OrderStatisticsOut,
    SetShippingCostIn,
    UpdateOrderStatusIn,
)
from storefront.services.address_client import AddressClient
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db), notifier: NotificationService = Depends(get_notifier)):
    return OrderService(db, notifier=notifier)


def get_checkout_service(
    db: Session = Depends(get_db),
    address_client: AddressClient = Depends(get_address_client),
    lock_service: LockService = Depends(get_lock_service),
    notifier: NotificationService = Depends(get_notifier),
):
    return CheckoutService(db, address_client=address_client, lock_service=lock_service, notifier=notifier)


@router.post("/from-cart", response_model=OrderOut, status_code=201)
def create_from_cart(
    payload: CheckoutIn,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key", max_length=100),
    actor: UserModel = Depends(get_actor),
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    Creates the order from the user's cart, reserves stock and empties the cart.
    """
    return svc.checkout(
        actor,
        delivery_type=payload.delivery_type,
        shipping_address_id=payload.shipping_address_id,
        notes=payload.notes,
        idempotency_key=idempotency_key,
    )


# admin routes go before /{order_id}

@router.get("/admin/awaiting-shipping-cost", response_model=List[OrderOut])
def awaiting_shipping_cost(
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.list_awaiting_shipping_cost(actor)


@router.get("/admin/all", response_model=OrderPageOut)
def list_all(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: OrderStatus | None = None,
    payment_status: PaymentStatus | None = None,
    customer_id: int | None = Query(None, gt=0),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.list_all(
        actor,
        page=page,
        limit=limit,
        status=status,
        payment_status=payment_status,
        user_id=customer_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/admin/statistics", response_model=OrderStatisticsOut)
def statistics(
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.statistics(actor)


@router.get("/admin/search/{order_number}", response_model=OrderOut)
def find_by_order_number(
    order_number: str,
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.find_by_order_number(actor, order_number)


@router.get("/my-orders", response_model=OrderPageOut)
def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.list_my_orders(actor, page, limit)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.get_order(actor, order_id)


@router.patch("/{order_id}/shipping-cost", response_model=OrderOut)
def set_shipping_cost(
    order_id: int,
    payload: SetShippingCostIn,
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.set_shipping_cost(actor, order_id, payload.shipping_cost)


@router.patch("/{order_id}/confirm", response_model=OrderOut)
def confirm_order(
    order_id: int,
    payload: ConfirmOrderIn | None = None,
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.confirm(actor, order_id, note=payload.note if payload else None)


@router.patch("/{order_id}/cancel", response_model=OrderChangeOut)
def cancel_order(
    order_id: int,
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.cancel(actor, order_id)


@router.patch("/{order_id}/status", response_model=OrderChangeOut)
def update_status(
    order_id: int,
    payload: UpdateOrderStatusIn,
    actor: UserModel = Depends(get_actor),
    svc: OrderService = Depends(get_service),
):
    return svc.update_status(
        actor,
        order_id,
        status=payload.status,
        payment_status=payload.payment_status,
        note=payload.note,
    )
