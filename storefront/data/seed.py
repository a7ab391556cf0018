# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import SessionLocal, init_db
from storefront.data.models import ProductModel, UserModel
from storefront.domain.enums import UserRole
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"name": "Shampoo reparador 500ml", "brand": "MAA", "price": Decimal("12500.00"), "stock": 40,
     "weight": Decimal("0.55"), "length": Decimal("7"), "width": Decimal("7"), "height": Decimal("21")},
    {"name": "Acondicionador nutritivo 500ml", "brand": "MAA", "price": Decimal("13900.00"), "stock": 35,
     "weight": Decimal("0.55"), "length": Decimal("7"), "width": Decimal("7"), "height": Decimal("21")},
    {"name": "Secador profesional 2200W", "brand": "Gama", "price": Decimal("98000.00"), "stock": 5,
     "weight": Decimal("0.9"), "length": Decimal("28"), "width": Decimal("10"), "height": Decimal("24")},
    {"name": "Gift card corte + peinado", "brand": "MAA", "price": Decimal("30000.00"), "stock": 0,
     "track_inventory": False},
]


def seed():
    init_db()
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(UserModel).first():
            return
        db.add(UserModel(id=1, name="Admin", email="admin@example.com", role=UserRole.ADMIN))
        db.add(UserModel(id=2, name="Cliente demo", email="cliente@example.com", role=UserRole.CUSTOMER))
        for data in PRODUCTS:
            db.add(ProductModel(**data))
        db.commit()
        logger.info(f"Seeded 2 users and {len(PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
