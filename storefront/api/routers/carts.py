#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import CartClearedOut, CartOut, ItemIn, ItemUpdateIn
from storefront.services.cart_service import CartService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("/", response_model=CartOut)
def get_cart(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    actor: UserModel = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return get_service(db).view(actor, page, limit)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    actor: UserModel = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return get_service(db).add_item(actor, payload.product_id, payload.quantity)


@router.patch("/items", response_model=CartOut)
def update_item(
    payload: ItemUpdateIn,
    actor: UserModel = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return get_service(db).update_item(actor, payload.product_id, payload.quantity)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    actor: UserModel = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return get_service(db).remove_item(actor, product_id)


@router.delete("/", response_model=CartClearedOut)
def clear_cart(
    actor: UserModel = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return get_service(db).clear(actor)
