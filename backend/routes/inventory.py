# backend/routes/inventory.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from services import inventory
from schemas.inventory import (
    InventoryUpdatePayload, InventoryUpdateEnvelope, LowStockEnvelope, InventoryHistoryEnvelope
)
from utils.audit import client_ip, write_log
from utils.tokenJWT import role_required

# All inventory endpoints are restricted to administrators
router = APIRouter(prefix="/api/inventory", tags=["Inventory"])
admin_only = role_required("admin")


@router.get("/product/{product_id}", response_model=InventoryHistoryEnvelope)
def get_product_inventory_history(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    product, transactions = inventory.product_history(db, product_id)
    return {
        "product": product,
        "inventory_transactions": transactions,
        "ledger_balance": inventory.ledger_balance(db, product_id),
    }


@router.post("/update", response_model=InventoryUpdateEnvelope)
def update_inventory(
    payload: InventoryUpdatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    product, message = inventory.adjust_inventory(
        db, payload.product_id, payload.quantity, payload.type,
        notes=payload.notes, actor_id=current_user.id,
    )
    write_log(db, user_id=current_user.id, action="STOCK_UPDATE", resource="inventory", resource_id=payload.product_id,
              ip=client_ip(request), meta={"type": payload.type, "quantity": payload.quantity})
    return {"product": product, "message": message}


@router.get("/low-stock", response_model=LowStockEnvelope)
def get_low_stock_products(
    threshold: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return {"products": inventory.low_stock(db, threshold)}
