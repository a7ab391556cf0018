#storefront/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Text

from storefront.data.database import Base, enum_type
from storefront.domain.enums import ProductStatus


def _now():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    brand = Column(String(100), nullable=True)
    image = Column(Text, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    #untracked products (services, gift cards) never block a purchase
    track_inventory = Column(Boolean, nullable=False, default=True)
    status = Column(enum_type(ProductStatus, 16), nullable=False, default=ProductStatus.ACTIVE)

    weight = Column(Numeric(10, 2), nullable=True)
    length = Column(Numeric(10, 2), nullable=True)
    width = Column(Numeric(10, 2), nullable=True)
    height = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE
