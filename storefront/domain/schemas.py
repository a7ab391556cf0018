# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List
from decimal import Decimal
from datetime import datetime

from storefront.domain.enums import DeliveryType, OrderStatus, PaymentStatus, ProductStatus, UserRole


# ---- users ----

class UserCreate(BaseModel):
    """Schema for creating a user."""

    id: int = Field(..., gt=0, description="User id (> 0)")
    name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(None, max_length=255)
    role: UserRole = UserRole.CUSTOMER


class UserRead(BaseModel):
    id: int
    name: str
    email: str | None = None
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


# ---- catalog ----

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    brand: str | None = Field(None, max_length=100)
    image: str | None = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)
    track_inventory: bool = True
    status: ProductStatus = ProductStatus.ACTIVE
    weight: Decimal | None = Field(None, ge=0)
    length: Decimal | None = Field(None, ge=0)
    width: Decimal | None = Field(None, ge=0)
    height: Decimal | None = Field(None, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    brand: str | None = Field(None, max_length=100)
    image: str | None = None
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock: int | None = Field(None, ge=0)
    track_inventory: bool | None = None
    status: ProductStatus | None = None
    weight: Decimal | None = Field(None, ge=0)
    length: Decimal | None = Field(None, ge=0)
    width: Decimal | None = Field(None, ge=0)
    height: Decimal | None = Field(None, ge=0)


class ProductRead(BaseModel):
    id: int
    name: str
    description: str
    brand: str | None = None
    image: str | None = None
    price: Decimal
    stock: int
    track_inventory: bool
    status: ProductStatus
    weight: Decimal | None = None
    length: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


# ---- cart ----

class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1, description="Cantidad (mínimo 1)")


class ItemUpdateIn(BaseModel):
    """Replacing a line quantity, 0 removes the line."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=0, description="Cantidad (0 elimina el producto)")


class CartProductOut(BaseModel):
    id: int
    name: str
    brand: str | None = None
    image: str | None = None
    price: Decimal
    stock: int
    weight: Decimal | None = None
    length: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None


class CartItemOut(BaseModel):
    id: int
    product: CartProductOut
    quantity: int
    subtotal: Decimal


class CartOut(BaseModel):
    """Paginated cart, totals cover the returned page."""

    cart_id: int
    user_id: int
    data: List[CartItemOut]
    total: int
    page: int
    limit: int
    total_pages: int
    subtotal: Decimal
    total_weight: Decimal
    total_length: Decimal
    total_width: Decimal
    total_height: Decimal


class CartClearedOut(BaseModel):
    message: str
    removed: int


# ---- orders ----

class CheckoutIn(BaseModel):
    """Creating an order from the cart."""

    delivery_type: DeliveryType
    shipping_address_id: int | None = Field(None, gt=0)
    notes: str | None = Field(None, max_length=1000)


class SetShippingCostIn(BaseModel):
    shipping_cost: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ConfirmOrderIn(BaseModel):
    note: str | None = Field(None, max_length=255)


class UpdateOrderStatusIn(BaseModel):
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    note: str | None = Field(None, max_length=255)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_brand: str | None = None
    product_image: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderHistoryOut(BaseModel):
    old_status: OrderStatus
    new_status: OrderStatus
    old_payment_status: PaymentStatus | None = None
    new_payment_status: PaymentStatus | None = None
    changed_by_user_id: int
    note: str | None = None
    changed_at: datetime


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: int
    delivery_type: DeliveryType
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str | None = None
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal
    shipping_address_id: int | None = None
    shipping_snapshot: Dict[str, Any] | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    shipping_cost_set_at: datetime | None = None
    customer_confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    items: List[OrderItemOut]
    history: List[OrderHistoryOut] | None = None


class OrderChangeOut(OrderOut):
    """Order after a cancel/status change, with the stock lines that could not be released."""

    stock_release_errors: List[Dict[str, Any]] = []


class OrderPageOut(BaseModel):
    data: List[OrderOut]
    total: int
    page: int
    limit: int
    total_pages: int


class OrderStatisticsOut(BaseModel):
    total_orders: int
    by_status: Dict[str, int]
    by_payment_status: Dict[str, int]
    awaiting_shipping_cost: int
    revenue: Decimal
