# backend/services/order_ledger.py
"""
Order placement and cancellation.

Both workflows run inside one database transaction: either the order, its
lines, the stock changes and the ledger rows are all committed, or none of
them are. Product rows are locked (SELECT ... FOR UPDATE) before stock is
checked, so concurrent checkouts against the same product serialize and the
later one sees the reduced stock.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload, selectinload

from models.inventory import TransactionType
from models.order import Order, OrderItem, OrderStatus, PaymentMethod, STATUS_FLOW
from models.users import User
from services import catalog
from utils.errors import InsufficientStockError, NotFoundError, ValidationError
from utils.transaction import atomic
from utils.validation import is_blank, is_int, sanitize_input

logger = logging.getLogger(__name__)

ORDER_REFERENCE = "order"
CANCELLATION_NOTE = "Order cancelled"


# ---- VALIDATION ----

def _validate_lines(lines: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    checked = []
    for product_id, quantity in lines or []:
        if not is_int(product_id):
            raise ValidationError("Each item must reference a product id")
        if not is_int(quantity) or quantity <= 0:
            raise ValidationError(f"Quantity for product {product_id} must be a positive integer")
        checked.append((product_id, quantity))
    if not checked:
        raise ValidationError("Missing required order information: items")
    return checked


def _validate_customer(customer_name, address, phone, payment_method) -> PaymentMethod:
    missing = [
        name for name, value in (
            ("customerName", customer_name),
            ("address", address),
            ("phone", phone),
            ("paymentMethod", payment_method),
        )
        if is_blank(value)
    ]
    if missing:
        raise ValidationError(f"Missing required order information: {', '.join(missing)}")
    try:
        return PaymentMethod(payment_method)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(f"Invalid payment method '{payment_method}'. Allowed: {allowed}")


def parse_status(value) -> OrderStatus:
    if is_blank(value):
        raise ValidationError("Status is required")
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError("Invalid status value")


def _check_transition(current: OrderStatus, target: OrderStatus) -> None:
    if current.is_terminal:
        raise ValidationError(f"Cannot change status of a {current.value} order")
    if target == OrderStatus.CANCELLED:
        return
    if STATUS_FLOW.index(target) < STATUS_FLOW.index(current):
        raise ValidationError(f"Cannot move order back from {current.value} to {target.value}")


# ---- WRITES ----

def create_order(
    db: Session,
    lines: Iterable[Tuple[int, int]],
    customer_name: str,
    address: str,
    phone: str,
    payment_method: str,
    actor_id: Optional[int] = None,
) -> Order:
    """
    Place an order for ``lines`` (``(product_id, quantity)`` pairs).

    Lines are checked in submission order against the stock read under lock.
    Repeated products are checked against the running stock, so their
    combined demand counts. Unit prices come from the catalog
    (discount price when set), never from the client.
    """
    lines = _validate_lines(lines)
    method = _validate_customer(customer_name, address, phone, payment_method)

    with atomic(db):
        products = catalog.lock_products(db, [product_id for product_id, _ in lines])
        remaining = {product_id: p.stock for product_id, p in products.items()}

        priced = []
        total_amount = 0
        for product_id, quantity in lines:
            product = products.get(product_id)
            if product is None:
                raise NotFoundError(f"Product with ID {product_id} not found")
            if quantity > remaining[product_id]:
                raise InsufficientStockError(
                    f"Not enough stock for {product.name}. Available: {remaining[product_id]}",
                    product_id=product_id,
                    available=remaining[product_id],
                )
            remaining[product_id] -= quantity

            price = product.effective_price
            total_amount += price * quantity
            priced.append((product, quantity, price))

        order = Order(
            user_id=actor_id,
            total_amount=total_amount,
            customer_name=sanitize_input(customer_name),
            address=sanitize_input(address),
            phone=sanitize_input(phone),
            payment_method=method.value,
            status=OrderStatus.PENDING.value,
        )
        db.add(order)
        db.flush()

        for product, quantity, price in priced:
            db.add(OrderItem(order_id=order.id, product_id=product.id, quantity=quantity, price=price))
            catalog.move_stock(
                db, product, quantity, TransactionType.SALE,
                reference_id=order.id, reference_type=ORDER_REFERENCE, actor_id=actor_id,
            )

    logger.info("Order %s created: %s lines, total %s", order.id, len(priced), total_amount)
    return get_order(db, order.id)


def update_order_status(db: Session, order_id: int, status, actor_id: Optional[int] = None) -> Order:
    """
    Set an order's status.

    Moving to ``cancelled`` restores stock for every line and books a
    ``return`` ledger row per line before the status changes. Setting the
    status an order already has is a no-op, so a second cancellation never
    restores stock twice.
    """
    target = parse_status(status)

    with atomic(db):
        # Lock the order row so two concurrent cancellations cannot both restore stock
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if order is None:
            raise NotFoundError("Order not found")

        current = OrderStatus(order.status)
        if current != target:
            _check_transition(current, target)
            if target == OrderStatus.CANCELLED:
                _restore_stock(db, order, actor_id)
            order.status = target.value

    if current != target:
        logger.info("Order %s status %s -> %s", order_id, current.value, target.value)
    return get_order(db, order_id)


def _restore_stock(db: Session, order: Order, actor_id: Optional[int]) -> None:
    items = db.query(OrderItem).filter(OrderItem.order_id == order.id).order_by(OrderItem.id).all()
    products = catalog.lock_products(db, [it.product_id for it in items if it.product_id is not None])

    for item in items:
        product = products.get(item.product_id)
        if product is None:
            # Product was removed from the catalog; there is no stock to restore
            logger.warning("Order %s line %s: product no longer exists, skipping return", order.id, item.id)
            continue
        catalog.move_stock(
            db, product, item.quantity, TransactionType.RETURN,
            reference_id=order.id, reference_type=ORDER_REFERENCE,
            notes=CANCELLATION_NOTE, actor_id=actor_id,
        )


# ---- READS ----

def _order_query(db: Session):
    return db.query(Order).options(
        selectinload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.user),
    )


def list_orders(db: Session, user: User) -> List[Order]:
    """Admins see every order, customers only their own; newest first."""
    query = _order_query(db)
    if not user.is_admin:
        query = query.filter(Order.user_id == user.id)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(db: Session, order_id: int, user: Optional[User] = None) -> Order:
    order = _order_query(db).filter(Order.id == order_id).first()
    if order is None or (user is not None and not user.is_admin and order.user_id != user.id):
        raise NotFoundError("Order not found")
    return order
