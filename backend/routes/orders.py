# backend/routes/orders.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from services import order_ledger
from schemas.order import OrderCreatePayload, OrderEnvelope, OrdersEnvelope, OrderStatusPatch
from utils.audit import client_ip, write_log
from utils.errors import StoreError
from utils.tokenJWT import get_current_user, get_optional_user, role_required

router = APIRouter(prefix="/api/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


# Place an order; guests may check out without a token
@router.post("", response_model=OrderEnvelope, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    actor_id = current_user.id if current_user else None
    try:
        order = order_ledger.create_order(
            db,
            payload.lines(),
            customer_name=payload.customer_name,
            address=payload.address,
            phone=payload.phone,
            payment_method=payload.payment_method,
            actor_id=actor_id,
        )
    except StoreError as e:
        logger.warning("Order rejected: %s", e.message)
        write_log(db, user_id=actor_id, action="ORDER_CREATE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"reason": e.message, "items": len(payload.items)})
        raise

    write_log(db, user_id=actor_id, action="ORDER_CREATE", resource="orders", resource_id=order.id,
              ip=client_ip(request), meta={"total_amount": order.total_amount, "items": len(order.items)})
    return {"order": order, "message": "Order placed successfully"}


# Admins see all orders, customers their own
@router.get("", response_model=OrdersEnvelope)
def list_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"orders": order_ledger.list_orders(db, current_user)}


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"order": order_ledger.get_order(db, order_id, current_user)}


# Change order status (Admin only); cancelling returns the goods to stock
@router.put("/{order_id}/status", response_model=OrderEnvelope)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    order = order_ledger.update_order_status(db, order_id, payload.status, actor_id=current_user.id)
    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", resource_id=order.id,
              ip=client_ip(request), meta={"status": order.status})
    return {"order": order}
