# backend/services/catalog.py
"""
Product catalog operations.

Every change to ``Product.stock`` goes through :func:`move_stock`, which
appends the matching InventoryTransaction row in the same session, so the
stock column and the ledger can always be reconciled. Functions here never
commit; callers wrap them in ``utils.transaction.atomic``.
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from models.category import Category
from models.inventory import InventoryTransaction, TransactionType
from models.order import OrderItem
from models.product import Product
from utils.errors import InsufficientStockError, NotFoundError, ValidationError
from utils.validation import sanitize_input

logger = logging.getLogger(__name__)

# Columns that a partial update may change but never clear
REQUIRED_PRODUCT_FIELDS = ("name", "price", "stock", "is_featured", "is_promo")


# ---- STOCK ----

def get_by_id(db: Session, product_id: int, lock: bool = False) -> Product:
    query = db.query(Product).filter(Product.id == product_id)
    if lock:
        query = query.with_for_update()
    product = query.first()
    if product is None:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def lock_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """Lock the given product rows (SELECT ... FOR UPDATE) in ascending id order.

    A fixed lock order keeps two transactions touching the same products from
    deadlocking. Ids that do not exist are simply absent from the result.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    rows = (
        db.query(Product)
        .filter(Product.id.in_(ids))
        .order_by(Product.id.asc())
        .with_for_update()
        .all()
    )
    return {p.id: p for p in rows}


def decrement_stock(db: Session, product: Product, qty: int) -> None:
    if qty > product.stock:
        raise InsufficientStockError(
            f"Not enough stock for {product.name}. Available: {product.stock}",
            product_id=product.id,
            available=product.stock,
        )
    product.stock = product.stock - qty


def increment_stock(db: Session, product: Product, qty: int) -> None:
    product.stock = product.stock + qty


def move_stock(
    db: Session,
    product: Product,
    quantity: int,
    transaction_type: TransactionType,
    *,
    reference_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    notes: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> Optional[InventoryTransaction]:
    """Apply a stock movement and append its ledger row.

    Zero-quantity movements change nothing and are not recorded.
    """
    if quantity < 0:
        raise ValidationError("Quantity must be a non-negative integer")
    if quantity == 0:
        return None

    transaction_type = TransactionType(transaction_type)
    if transaction_type.sign < 0:
        decrement_stock(db, product, quantity)
    else:
        increment_stock(db, product, quantity)

    entry = InventoryTransaction(
        product_id=product.id,
        quantity=quantity,
        transaction_type=transaction_type.value,
        reference_id=reference_id,
        reference_type=reference_type,
        notes=notes,
        created_by=actor_id,
    )
    db.add(entry)
    return entry


# ---- PRODUCTS ----

def list_products(
    db: Session,
    category: Optional[int] = None,
    search: Optional[str] = None,
    promo: bool = False,
) -> List[Product]:
    query = db.query(Product).options(joinedload(Product.category))
    if category is not None:
        query = query.filter(Product.category_id == category)
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))
    if promo:
        query = query.filter(Product.is_promo.is_(True))
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def related_products(db: Session, product: Product, limit: int = 4) -> List[Product]:
    if product.category_id is None:
        return []
    return (
        db.query(Product)
        .filter(Product.category_id == product.category_id, Product.id != product.id)
        .order_by(Product.id.asc())
        .limit(limit)
        .all()
    )


def _ensure_category(db: Session, category_id: Optional[int]) -> None:
    if category_id is not None and db.get(Category, category_id) is None:
        raise NotFoundError(f"Category with ID {category_id} not found")


def create_product(db: Session, data: dict, actor_id: Optional[int] = None) -> Product:
    """Insert a product; its opening stock is booked as an ``initial`` ledger entry."""
    _ensure_category(db, data.get("category_id"))
    opening_stock = data.pop("stock", 0) or 0

    product = Product(**data)
    product.name = sanitize_input(product.name)
    if product.description:
        product.description = sanitize_input(product.description)
    product.stock = 0
    db.add(product)
    db.flush()

    move_stock(db, product, opening_stock, TransactionType.INITIAL, notes="Initial stock", actor_id=actor_id)
    return product


def update_product(db: Session, product_id: int, data: dict, actor_id: Optional[int] = None) -> Product:
    """Apply a partial update. A changed stock value is booked as an adjustment."""
    product = get_by_id(db, product_id, lock=True)

    cleared = sorted(f for f in REQUIRED_PRODUCT_FIELDS if f in data and data[f] is None)
    if cleared:
        raise ValidationError(f"Fields cannot be empty: {', '.join(cleared)}")
    if "category_id" in data:
        _ensure_category(db, data["category_id"])

    new_stock = data.pop("stock", None)
    for field in ("name", "description"):
        if data.get(field) is not None:
            data[field] = sanitize_input(data[field])
    for field, value in data.items():
        setattr(product, field, value)

    if new_stock is not None and new_stock != product.stock:
        difference = new_stock - product.stock
        tx_type = TransactionType.ADJUSTMENT_ADD if difference > 0 else TransactionType.ADJUSTMENT_REMOVE
        move_stock(db, product, abs(difference), tx_type,
                   notes="Stock adjustment via admin update", actor_id=actor_id)
    return product


def delete_product(db: Session, product_id: int) -> None:
    product = get_by_id(db, product_id, lock=True)
    # Order lines keep their price snapshot and ledger rows stay in the books;
    # only the product reference is cleared
    db.query(OrderItem).filter(OrderItem.product_id == product.id).update(
        {OrderItem.product_id: None}, synchronize_session="fetch"
    )
    db.query(InventoryTransaction).filter(InventoryTransaction.product_id == product.id).update(
        {InventoryTransaction.product_id: None}, synchronize_session="fetch"
    )
    db.delete(product)


# ---- CATEGORIES ----

def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.name.asc()).all()


def get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def create_category(db: Session, name: Optional[str], image: Optional[str] = None) -> Category:
    if not name or not name.strip():
        raise ValidationError("Category name is required")
    category = Category(name=sanitize_input(name), image=image)
    db.add(category)
    return category


def update_category(db: Session, category_id: int, name: Optional[str] = None, image: Optional[str] = None) -> Category:
    category = get_category(db, category_id)
    if name is not None:
        if not name.strip():
            raise ValidationError("Category name cannot be empty")
        category.name = sanitize_input(name)
    if image is not None:
        category.image = image
    return category


def delete_category(db: Session, category_id: int) -> int:
    """Delete a category; products that referenced it are kept with no category."""
    category = get_category(db, category_id)
    detached = (
        db.query(Product)
        .filter(Product.category_id == category.id)
        .update({Product.category_id: None}, synchronize_session="fetch")
    )
    db.delete(category)
    logger.info("Category %s deleted, %s products detached", category_id, detached)
    return detached
