# backend/routes/categories.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from services import catalog
from utils.audit import client_ip, write_log
from utils.tokenJWT import role_required
from utils.transaction import atomic
from schemas.category import CategoryCreate, CategoryUpdate, CategoryEnvelope, CategoriesEnvelope
from schemas.product import MessageEnvelope

router = APIRouter(prefix="/api/categories", tags=["Categories"])
admin_only = role_required("admin")


@router.get("", response_model=CategoriesEnvelope)
def list_categories(db: Session = Depends(get_db)):
    return {"categories": catalog.list_categories(db)}


@router.post("", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    with atomic(db):
        category = catalog.create_category(db, payload.name, payload.image)
    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories", resource_id=category.id,
              ip=client_ip(request))
    return {"category": category}


@router.put("/{category_id}", response_model=CategoryEnvelope)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    with atomic(db):
        category = catalog.update_category(db, category_id, payload.name, payload.image)
    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories", resource_id=category_id,
              ip=client_ip(request))
    return {"category": category}


# Products in a deleted category stay in the catalog without a category
@router.delete("/{category_id}", response_model=MessageEnvelope)
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    with atomic(db):
        detached = catalog.delete_category(db, category_id)
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories", resource_id=category_id,
              ip=client_ip(request), meta={"products_detached": detached})
    return {"message": "Category deleted successfully"}
