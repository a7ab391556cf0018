from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base, enum_type
from storefront.domain.enums import DeliveryType, OrderStatus, PaymentStatus


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    delivery_type = Column(enum_type(DeliveryType, 16), nullable=False)

    subtotal = Column(Numeric(10, 2), nullable=False)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)

    status = Column(enum_type(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)
    payment_status = Column(enum_type(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    payment_method = Column(String(50), nullable=True)

    # frozen copy of the address at checkout time, no FK to the address book
    shipping_address_id = Column(Integer, nullable=True)
    shipping_snapshot = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    shipping_cost_set_at = Column(DateTime(timezone=True), nullable=True)
    customer_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
        lazy="selectin",
    )
    history = relationship(
        "OrderHistoryModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderHistoryModel.id",
    )
