# storefront/api/routers/products.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import ProductCreate, ProductRead, ProductUpdate
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.post("/", response_model=ProductRead, status_code=201)
def create_product(
    payload: ProductCreate,
    actor: UserModel = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return CatalogService(db).create_product(actor, payload)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_product(product_id)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    actor: UserModel = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return CatalogService(db).update_product(actor, product_id, payload)
