from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, DateTime, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base, enum_type
from storefront.domain.enums import OrderStatus, PaymentStatus


class OrderHistoryModel(Base):
    __tablename__ = "order_histories"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    old_status = Column(enum_type(OrderStatus), nullable=False)
    new_status = Column(enum_type(OrderStatus), nullable=False)
    old_payment_status = Column(enum_type(PaymentStatus), nullable=True)
    new_payment_status = Column(enum_type(PaymentStatus), nullable=True)

    changed_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    note = Column(String(255), nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("OrderModel", back_populates="history")
