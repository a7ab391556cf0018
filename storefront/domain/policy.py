# storefront/domain/policy.py
from enum import Enum

from storefront.domain.enums import UserRole
from storefront.domain.errors import AuthorizationError


class Action(str, Enum):
    MANAGE_CART = "manage_cart"
    CHECKOUT = "checkout"
    VIEW_ORDER = "view_order"
    CONFIRM_ORDER = "confirm_order"
    CANCEL_ORDER = "cancel_order"
    SET_SHIPPING_COST = "set_shipping_cost"
    UPDATE_ORDER_STATUS = "update_order_status"
    LIST_ALL_ORDERS = "list_all_orders"
    VIEW_STATISTICS = "view_statistics"
    MANAGE_CATALOG = "manage_catalog"


ADMIN_ONLY = {
    Action.SET_SHIPPING_COST,
    Action.UPDATE_ORDER_STATUS,
    Action.LIST_ALL_ORDERS,
    Action.VIEW_STATISTICS,
    Action.MANAGE_CATALOG,
}

OWNER_ONLY = {
    Action.MANAGE_CART,
    Action.CHECKOUT,
    Action.CONFIRM_ORDER,
    Action.CANCEL_ORDER,
}

OWNER_OR_ADMIN = {
    Action.VIEW_ORDER,
}


def is_admin(actor) -> bool:
    return actor is not None and actor.role == UserRole.ADMIN


def authorize(actor, action: Action, owner_id: int | None = None) -> None:
    """
    Single authorization gate for every state-changing or owner-scoped call.

    `actor` is anything with `id` and `role`; `owner_id` is the user owning
    the cart/order being touched (None for resources without an owner).
    Raises AuthorizationError, returns None when allowed.
    """
    if actor is None:
        raise AuthorizationError("Usuario no autenticado.")

    if action in ADMIN_ONLY:
        if not is_admin(actor):
            raise AuthorizationError()
        return

    owns = owner_id is None or owner_id == actor.id

    if action in OWNER_ONLY:
        if not owns:
            raise AuthorizationError("No tienes acceso a este recurso.")
        return

    if action in OWNER_OR_ADMIN:
        if not (owns or is_admin(actor)):
            raise AuthorizationError("No tienes acceso a este recurso.")
        return

    raise AuthorizationError(f"Acción desconocida: {action}")
