# storefront/domain/errors.py
from typing import Any, Dict


class StorefrontError(Exception):
    """
    Base for every failure the core reports to its caller.

    `message` is the user-facing (Spanish) text, `code` a stable identifier
    the client can branch on, `details` extra fields such as the product
    that ran out of stock.
    """

    status_code = 400
    code = "STOREFRONT_ERROR"
    message = "Error en la operación."

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)

    def as_detail(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.details}


# ---- validation ----

class ValidationError(StorefrontError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Datos inválidos."


class InvalidQuantity(ValidationError):
    code = "INVALID_QUANTITY"
    message = "La cantidad debe ser al menos 1."


class QuantityCapExceeded(ValidationError):
    code = "QUANTITY_CAP_EXCEEDED"

    def __init__(self, product_id: int, limit: int):
        super().__init__(
            f"No puedes agregar más de {limit} unidades de este producto.",
            product_id=product_id,
            limit=limit,
        )


class EmptyCart(ValidationError):
    code = "EMPTY_CART"
    message = "El carrito está vacío."


class ShippingAddressRequired(ValidationError):
    code = "SHIPPING_ADDRESS_REQUIRED"
    message = "Debes indicar una dirección de envío para pedidos con entrega a domicilio."


class InvalidShippingAddress(ValidationError):
    code = "INVALID_SHIPPING_ADDRESS"
    message = "La dirección de envío no es válida."


# ---- not found ----

class NotFoundError(StorefrontError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Recurso no encontrado."


class ProductNotFound(NotFoundError):
    code = "PRODUCT_NOT_FOUND"
    message = "Producto no encontrado."


class ItemNotFound(NotFoundError):
    code = "ITEM_NOT_FOUND"
    message = "Producto no está en el carrito."


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"
    message = "Orden no encontrada."


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    message = "Usuario no encontrado."


# ---- conflicts ----

class ConflictError(StorefrontError):
    status_code = 409
    code = "CONFLICT"
    message = "Conflicto con el estado actual."


class InsufficientStock(ConflictError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, product_name: str | None, requested: int, available: int):
        name = product_name or f"#{product_id}"
        super().__init__(
            f"Stock insuficiente para {name} (solicitado: {requested}, disponible: {available}).",
            product_id=product_id,
            product_name=product_name,
            requested=requested,
            available=available,
        )


class ProductUnavailable(ConflictError):
    code = "PRODUCT_UNAVAILABLE"

    def __init__(self, product_id: int, product_name: str | None = None):
        super().__init__(
            "El producto no está disponible.",
            product_id=product_id,
            product_name=product_name,
        )


class OrderNumberConflict(ConflictError):
    code = "ORDER_NUMBER_CONFLICT"
    message = "No se pudo asignar un número de orden único, intenta nuevamente."


class CheckoutInProgress(ConflictError):
    code = "CHECKOUT_IN_PROGRESS"
    message = "Ya hay una compra en curso para este carrito."


class CartModified(ConflictError):
    code = "CART_MODIFIED"
    message = "El carrito fue modificado durante la compra, intenta nuevamente."


class CheckoutConflict(ConflictError):
    code = "CHECKOUT_CONFLICT"
    message = "La compra entró en conflicto con otra operación, intenta nuevamente."


class EmailAlreadyUsed(ConflictError):
    code = "EMAIL_ALREADY_USED"
    message = "El email ya está registrado por otro usuario."


# ---- state machine ----

class StateError(StorefrontError):
    status_code = 409
    code = "INVALID_STATE"
    message = "Operación no permitida en el estado actual de la orden."


class InvalidStateForOperation(StateError):
    code = "INVALID_STATE_FOR_OPERATION"

    def __init__(self, operation: str, current_status: str, message: str | None = None):
        super().__init__(
            message or f"No se puede realizar '{operation}' con la orden en estado '{current_status}'.",
            operation=operation,
            current_status=current_status,
        )


class CannotCancelPaidOrder(StateError):
    code = "CANNOT_CANCEL_PAID_ORDER"
    message = "No se puede cancelar una orden con pago aprobado, debe gestionarse un reembolso."


class OnlyPendingOrdersCancellable(StateError):
    code = "ONLY_PENDING_ORDERS_CANCELLABLE"
    message = "Solo puedes cancelar órdenes pendientes."


# ---- authorization ----

class AuthorizationError(StorefrontError):
    status_code = 403
    code = "FORBIDDEN"
    message = "No tienes permisos para realizar esta acción."
