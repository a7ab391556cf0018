# storefront/repos/product_repo.py
from typing import Iterable, List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.enums import ProductStatus


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products_for_update(self, product_ids: Iterable[int]) -> List[ProductModel]:
        # ordered by id so concurrent checkouts take row locks in the same order
        ids = sorted(set(product_ids))
        if not ids:
            return []
        stmt = (
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .order_by(ProductModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """
        UPDATE ... SET stock = stock - qty WHERE stock >= qty.
        Check and decrement in one statement, returns rowcount (0 = not enough).
        """
        stmt = (
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock >= quantity,
                ProductModel.status == ProductStatus.ACTIVE,
            )
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def increment_stock(self, product_id: int, quantity: int) -> int:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + quantity)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def refresh(self, product: ProductModel) -> ProductModel:
        self.db.refresh(product)
        return product

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
