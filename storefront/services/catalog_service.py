# storefront/services/catalog_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ProductNotFound
from storefront.domain.policy import Action, authorize
from storefront.domain.schemas import ProductCreate, ProductRead, ProductUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    """
    Minimal product administration. The checkout core only reads products
    and moves stock through InventoryService.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def get_product(self, product_id: int) -> ProductRead:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        return ProductRead.model_validate(product)

    def create_product(self, actor, payload: ProductCreate) -> ProductRead:
        authorize(actor, Action.MANAGE_CATALOG)
        try:
            product = self.repo.create_product(ProductModel(**payload.model_dump()))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Product {product.id} '{product.name}' created by admin {actor.id}")
        return ProductRead.model_validate(product)

    def update_product(self, actor, product_id: int, payload: ProductUpdate) -> ProductRead:
        authorize(actor, Action.MANAGE_CATALOG)
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)

        changes: Dict[str, Any] = payload.model_dump(exclude_unset=True, exclude_none=True)
        try:
            for field, value in changes.items():
                setattr(product, field, value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Product {product_id} updated by admin {actor.id}: {sorted(changes)}")
        return ProductRead.model_validate(product)
