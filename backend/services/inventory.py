# backend/services/inventory.py
"""Manual stock corrections and read-only inventory reports."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from config import settings
from models.inventory import InventoryTransaction, TransactionType
from models.product import Product
from services import catalog
from utils.errors import InsufficientStockError, ValidationError
from utils.transaction import atomic
from utils.validation import is_int

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPES = ("add", "remove", "set")
DEFAULT_NOTE = "Manual inventory update"

NEGATIVE_TYPES = [t.value for t in TransactionType if t.sign < 0]


def _adjustment_message(adjustment: str, quantity: int) -> str:
    if adjustment == "set":
        return f"Product stock set to {quantity} units"
    verb = "increased" if adjustment == "add" else "decreased"
    return f"Product stock {verb} by {quantity} units"


def adjust_inventory(
    db: Session,
    product_id: int,
    quantity: int,
    adjustment: str,
    notes: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> Tuple[Product, str]:
    """
    Correct a product's stock by hand.

    ``add`` and ``remove`` move stock by ``quantity``; ``set`` makes stock
    equal to ``quantity`` and books the difference as ``manual-add`` or
    ``manual-remove``. A ``set`` to the current value records nothing.
    """
    if adjustment not in ADJUSTMENT_TYPES:
        raise ValidationError("Invalid inventory update type")
    if not is_int(quantity) or quantity < 0:
        raise ValidationError("Quantity must be a non-negative integer")

    note = notes or DEFAULT_NOTE
    with atomic(db):
        product = catalog.get_by_id(db, product_id, lock=True)
        before = product.stock

        if adjustment == "add":
            catalog.move_stock(db, product, quantity, TransactionType.MANUAL_ADD, notes=note, actor_id=actor_id)
        elif adjustment == "remove":
            if quantity > product.stock:
                raise InsufficientStockError(
                    f"Cannot remove {quantity} items. Only {product.stock} in stock.",
                    product_id=product.id,
                    available=product.stock,
                )
            catalog.move_stock(db, product, quantity, TransactionType.MANUAL_REMOVE, notes=note, actor_id=actor_id)
        else:
            difference = quantity - product.stock
            tx_type = TransactionType.MANUAL_ADD if difference > 0 else TransactionType.MANUAL_REMOVE
            catalog.move_stock(db, product, abs(difference), tx_type, notes=note, actor_id=actor_id)

    db.refresh(product)
    logger.info("Stock of product %s changed %s -> %s (%s %s)", product_id, before, product.stock, adjustment, quantity)
    return product, _adjustment_message(adjustment, quantity)


def low_stock(db: Session, threshold: Optional[int] = None) -> List[Product]:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.stock <= threshold)
        .order_by(Product.stock.asc(), Product.id.asc())
        .all()
    )


def product_history(db: Session, product_id: int) -> Tuple[Product, List[InventoryTransaction]]:
    product = catalog.get_by_id(db, product_id)
    transactions = (
        db.query(InventoryTransaction)
        .options(joinedload(InventoryTransaction.user))
        .filter(InventoryTransaction.product_id == product_id)
        .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .all()
    )
    return product, transactions


# Signed sum of the ledger; equals the current stock when the books are in order
def ledger_balance(db: Session, product_id: int) -> int:
    signed = case(
        (InventoryTransaction.transaction_type.in_(NEGATIVE_TYPES), -InventoryTransaction.quantity),
        else_=InventoryTransaction.quantity,
    )
    total = (
        db.query(func.coalesce(func.sum(signed), 0))
        .filter(InventoryTransaction.product_id == product_id)
        .scalar()
    )
    return int(total)
