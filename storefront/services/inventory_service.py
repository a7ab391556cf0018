# storefront/services/inventory_service.py
from sqlalchemy.orm import Session

from storefront.domain.errors import InsufficientStock, ProductNotFound
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Inventory ledger: stock reservation and release.

    Works on the caller's Session and never commits; the stock change is
    persisted (or rolled back) together with the order/cart change that
    triggered it.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def reserve(self, product_id: int, quantity: int) -> None:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)

        #an inactive product has nothing to sell, reported as a shortfall with its stock
        if not product.is_active:
            raise InsufficientStock(product_id, product.name, quantity, product.stock)

        if not product.track_inventory:
            logger.info(f"Product {product_id} has no inventory tracking, reserve skipped")
            return

        if quantity < 1:
            raise ValueError("quantity must be positive")

        #check and decrement in one UPDATE, no read-then-write window
        rowcount = self.repo.decrement_stock(product_id, quantity)
        if rowcount == 0:
            self.repo.refresh(product)
            raise InsufficientStock(product_id, product.name, quantity, product.stock)

        logger.info(f"Reserved {quantity} units of product {product_id}")

    def release(self, product_id: int, quantity: int) -> None:
        """
        Give stock back (cancellation). No upper bound: a double release is
        tolerated drift.
        """
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)

        if not product.track_inventory:
            return

        self.repo.increment_stock(product_id, quantity)
        logger.info(f"Released {quantity} units of product {product_id}")
