# backend/routes/products.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from services import catalog
from utils.audit import client_ip, write_log
from utils.tokenJWT import role_required
from utils.transaction import atomic
import schemas.product as product_schemas

router = APIRouter(prefix="/api/products", tags=["Products"])
admin_only = role_required("admin")


@router.get("", response_model=product_schemas.ProductsEnvelope)
def list_products(
    category: Optional[int] = Query(None, description="Category id"),
    search: Optional[str] = Query(None, description="Match on name or description"),
    promo: bool = Query(False, description="Only promotional products"),
    db: Session = Depends(get_db),
):
    return {"products": catalog.list_products(db, category=category, search=search, promo=promo)}


@router.get("/{product_id}", response_model=product_schemas.ProductEnvelope)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = catalog.get_by_id(db, product_id)
    return {"product": product, "related_products": catalog.related_products(db, product)}


# Create a product; opening stock becomes an "initial" ledger entry
@router.post("", response_model=product_schemas.ProductEnvelope, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    with atomic(db):
        product = catalog.create_product(db, payload.model_dump(), actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products", resource_id=product.id,
              ip=client_ip(request), meta={"stock": payload.stock})
    return {"product": product}


@router.put("/{product_id}", response_model=product_schemas.ProductEnvelope)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    changes = payload.model_dump(exclude_unset=True)
    with atomic(db):
        product = catalog.update_product(db, product_id, changes, actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products", resource_id=product_id,
              ip=client_ip(request), meta={"fields": sorted(payload.model_dump(exclude_unset=True))})
    return {"product": product}


@router.delete("/{product_id}", response_model=product_schemas.MessageEnvelope)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    with atomic(db):
        catalog.delete_product(db, product_id)
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products", resource_id=product_id,
              ip=client_ip(request))
    return {"message": "Product deleted successfully"}
