# backend/schemas/inventory.py
from typing import List, Optional
from datetime import datetime

from schemas.base import ORMBase, Envelope
from schemas.product import ProductOut


# Manual stock correction request; type is one of add / remove / set
class InventoryUpdatePayload(ORMBase):
    product_id: int
    quantity: int
    type: str
    notes: Optional[str] = None


# Single ledger entry with the acting user's display name
class InventoryTransactionOut(ORMBase):
    id: int
    product_id: Optional[int] = None
    quantity: int
    transaction_type: str
    reference_id: Optional[int] = None
    reference_type: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None


class InventoryUpdateEnvelope(Envelope):
    product: ProductOut
    message: str


class LowStockEnvelope(Envelope):
    products: List[ProductOut]


class InventoryHistoryEnvelope(Envelope):
    product: ProductOut
    inventory_transactions: List[InventoryTransactionOut]
    ledger_balance: int
