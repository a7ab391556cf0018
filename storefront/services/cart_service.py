# storefront/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain import pricing
from storefront.domain.errors import (
    CartModified,
    InsufficientStock,
    InvalidQuantity,
    ItemNotFound,
    ProductNotFound,
    ProductUnavailable,
    QuantityCapExceeded,
)
from storefront.domain.policy import Action, authorize
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_QTY_PER_PRODUCT, TAX_RATE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _dim(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class CartService:
    """
    Cart aggregate, one cart per user.

    commands (add, update, remove, clear) bump the cart version and commit,
    query (view) only reads, apart from creating the cart on first access.
    """

    def __init__(self, db: Session, max_per_product: int = MAX_QTY_PER_PRODUCT):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.max_per_product = max_per_product

    def get_or_create(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        try:
            cart = self.repo.create_cart(CartModel(user_id=user_id, version=1))
            self.repo.commit()
        except IntegrityError:
            #another request created it in the meantime
            self.repo.rollback()
            cart = self.repo.get_cart_by_user(user_id)
            if cart is None:
                raise
            return cart

        logger.info(f"Created cart {cart.id} for user {user_id}")
        return cart

    #query
    def view(self, actor, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
        """
        Paginated cart. Lines whose product is no longer active are hidden.
        Subtotal and weight/dimension totals cover only the returned page.
        """
        cart = self.get_or_create(actor.id)
        authorize(actor, Action.MANAGE_CART, owner_id=cart.user_id)

        page = max(page, 1)
        limit = max(limit, 1)

        visible = [
            i for i in self.repo.get_cart_items(cart.id)
            if i.product is not None and i.product.is_active
        ]
        total = len(visible)
        start = (page - 1) * limit
        page_items = visible[start:start + limit]

        priced = pricing.price(
            (pricing.PricedLine(i.product.price, i.quantity) for i in page_items),
            shipping_cost=0,
            tax_rate=TAX_RATE,
        )

        totals = {"total_weight": Decimal("0"), "total_length": Decimal("0"),
                  "total_width": Decimal("0"), "total_height": Decimal("0")}
        for i in page_items:
            totals["total_weight"] += _dim(i.product.weight) * i.quantity
            totals["total_length"] += _dim(i.product.length) * i.quantity
            totals["total_width"] += _dim(i.product.width) * i.quantity
            totals["total_height"] += _dim(i.product.height) * i.quantity

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "data": [
                {
                    "id": i.id,
                    "product": {
                        "id": i.product.id,
                        "name": i.product.name,
                        "brand": i.product.brand,
                        "image": i.product.image,
                        "price": pricing.money(i.product.price),
                        "stock": i.product.stock,
                        "weight": i.product.weight,
                        "length": i.product.length,
                        "width": i.product.width,
                        "height": i.product.height,
                    },
                    "quantity": i.quantity,
                    "subtotal": pricing.line_total(i.product.price, i.quantity),
                }
                for i in page_items
            ],
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": (total + limit - 1) // limit,
            "subtotal": priced.subtotal,
            **totals,
        }

    #commands
    def add_item(self, actor, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise InvalidQuantity()

        cart = self.get_or_create(actor.id)
        authorize(actor, Action.MANAGE_CART, owner_id=cart.user_id)

        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        if not product.is_active:
            raise ProductUnavailable(product_id, product.name)

        existing_item = self.repo.get_cart_item(cart.id, product_id)
        current = existing_item.quantity if existing_item else 0
        wanted = current + quantity

        #cap first: a line over the limit is rejected even with enough stock
        if wanted > self.max_per_product:
            raise QuantityCapExceeded(product_id, self.max_per_product)

        if product.track_inventory and product.stock < wanted:
            raise InsufficientStock(product_id, product.name, wanted, product.stock)

        try:
            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, "
                    f"quantity {existing_item.quantity} -> {wanted}"
                )
                existing_item.quantity = wanted
            else:
                logger.info(f"Adding product {product_id} to cart {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
                )
            self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self.view(actor)

    def update_item(self, actor, product_id: int, quantity: int) -> Dict[str, Any]:
        """
        Replace the line quantity (not additive). 0 removes the line.
        """
        if quantity < 0:
            raise InvalidQuantity("La cantidad no puede ser negativa.")

        cart = self.get_or_create(actor.id)
        authorize(actor, Action.MANAGE_CART, owner_id=cart.user_id)

        item = self.repo.get_cart_item(cart.id, product_id)
        if not item:
            raise ItemNotFound(product_id=product_id)

        try:
            if quantity == 0:
                logger.info(f"Removing product {product_id} from cart {cart.id} (quantity 0)")
                self.repo.delete_cart_item(item)
            else:
                product = item.product
                if not product.is_active:
                    raise ProductUnavailable(product_id, product.name)
                if quantity > self.max_per_product:
                    raise QuantityCapExceeded(product_id, self.max_per_product)
                if product.track_inventory and product.stock < quantity:
                    raise InsufficientStock(product_id, product.name, quantity, product.stock)
                item.quantity = quantity

            self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self.view(actor)

    def remove_item(self, actor, product_id: int) -> Dict[str, Any]:
        cart = self.get_or_create(actor.id)
        authorize(actor, Action.MANAGE_CART, owner_id=cart.user_id)

        item = self.repo.get_cart_item(cart.id, product_id)
        if not item:
            raise ItemNotFound(product_id=product_id)

        logger.info(f"Removing product {product_id} from cart {cart.id}")

        try:
            self.repo.delete_cart_item(item)
            self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self.view(actor)

    def clear(self, actor) -> Dict[str, Any]:
        cart = self.get_or_create(actor.id)
        authorize(actor, Action.MANAGE_CART, owner_id=cart.user_id)

        try:
            removed = self.repo.delete_all_items(cart.id)
            if removed:
                self._bump_version(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart {cart.id} cleared ({removed} lines)")
        return {"message": "Carrito vaciado.", "removed": removed}

    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking, UPDATE ... WHERE version = :seen
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )
        if rowcount == 0:
            raise CartModified()
