from sqlalchemy import Column, Integer, ForeignKey, String, Numeric, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    """
    Line of an order with the product data as it was at purchase time.
    Never updated after insert.
    """

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)

    product_name = Column(String(255), nullable=False)
    product_brand = Column(String(100), nullable=True)
    product_image = Column(Text, nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")
