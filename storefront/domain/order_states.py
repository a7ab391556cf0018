# storefront/domain/order_states.py
"""
Transition rules of the order lifecycle.

    pickup:   PENDING ------------------------------------------+
    delivery: AWAITING_SHIPPING_COST -> SHIPPING_COST_SET -> CONFIRMED
              (admin prices shipping)   (customer confirms)     |
                                                                v
              PAID -> PROCESSING -> SHIPPED -> DELIVERED   (admin status update)

CANCELLED is reachable by the customer only from PENDING and by an admin
from anywhere as long as payment is not approved. It is terminal.

Only the checks live here; the service applies the change and writes the
audit row.
"""
from storefront.domain.enums import DeliveryType, OrderStatus, PaymentStatus
from storefront.domain.errors import (
    CannotCancelPaidOrder,
    InvalidStateForOperation,
    OnlyPendingOrdersCancellable,
)


def initial_status(delivery_type: DeliveryType) -> OrderStatus:
    if DeliveryType(delivery_type) == DeliveryType.DELIVERY:
        return OrderStatus.AWAITING_SHIPPING_COST
    return OrderStatus.PENDING


def ensure_can_set_shipping_cost(order) -> None:
    if order.status != OrderStatus.AWAITING_SHIPPING_COST:
        raise InvalidStateForOperation(
            "set_shipping_cost",
            OrderStatus(order.status).value,
            "Solo se puede establecer el costo de envío en órdenes que lo están esperando.",
        )


def ensure_can_confirm(order) -> None:
    if order.status != OrderStatus.SHIPPING_COST_SET:
        raise InvalidStateForOperation(
            "confirm",
            OrderStatus(order.status).value,
            "Solo puedes confirmar órdenes con costo de envío establecido.",
        )


def ensure_customer_can_cancel(order) -> None:
    if order.status != OrderStatus.PENDING:
        raise OnlyPendingOrdersCancellable()


def resolve_admin_update(
    order,
    status: OrderStatus | None,
    payment_status: PaymentStatus | None,
) -> tuple[OrderStatus, PaymentStatus]:
    """
    Validate an admin status/payment update and return the target pair.

    Approving payment without naming a status moves a PENDING or CONFIRMED
    order to PAID.
    """
    current_status = OrderStatus(order.status)
    current_payment = PaymentStatus(order.payment_status)

    new_status = OrderStatus(status) if status is not None else current_status
    new_payment = PaymentStatus(payment_status) if payment_status is not None else current_payment

    if current_status == OrderStatus.CANCELLED and new_status != OrderStatus.CANCELLED:
        raise InvalidStateForOperation(
            "update_status",
            current_status.value,
            "Una orden cancelada no puede reabrirse.",
        )

    if new_status == OrderStatus.CANCELLED and current_status != OrderStatus.CANCELLED:
        if PaymentStatus.APPROVED in (current_payment, new_payment):
            raise CannotCancelPaidOrder()

    if (
        status is None
        and new_payment == PaymentStatus.APPROVED
        and current_payment != PaymentStatus.APPROVED
        and current_status in (OrderStatus.PENDING, OrderStatus.CONFIRMED)
    ):
        new_status = OrderStatus.PAID

    return new_status, new_payment
