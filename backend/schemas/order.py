# backend/schemas/order.py
from typing import List, Optional
from datetime import datetime

from schemas.base import ORMBase, Envelope


# Reference to a catalog product inside a cart line
class ProductRef(ORMBase):
    id: int


# Input schema for a single cart line; any client-side price is ignored
class OrderLineIn(ORMBase):
    product: ProductRef
    quantity: int


# Input schema for placing an order; presence checks happen in the ledger
class OrderCreatePayload(ORMBase):
    items: List[OrderLineIn] = []
    customer_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    payment_method: Optional[str] = None

    def lines(self):
        return [(it.product.id, it.quantity) for it in self.items]


# Output schema for an individual order line item
class OrderItemOut(ORMBase):
    id: int
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    quantity: int
    price: int
    line_total: int


# Output schema representing the full order details
class OrderResponse(ORMBase):
    id: int
    user_id: Optional[int] = None
    status: str
    total_amount: int
    customer_name: str
    address: str
    phone: str
    payment_method: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []


class OrderEnvelope(Envelope):
    order: OrderResponse
    message: Optional[str] = None


class OrdersEnvelope(Envelope):
    orders: List[OrderResponse]


# Schema for updating order status
class OrderStatusPatch(ORMBase):
    status: Optional[str] = None
