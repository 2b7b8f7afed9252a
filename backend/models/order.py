# backend/models/order.py
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Lifecycle of an order. "delivered" and "cancelled" are terminal.
class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

# Happy-path ordering used to reject backwards transitions
STATUS_FLOW = [OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED]

class PaymentMethod(str, enum.Enum):
    COD = "cod"
    BANK_TRANSFER = "bank-transfer"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True) # NULL for guest checkout
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value, index=True)
    total_amount = Column(Integer, nullable=False) # Fixed at creation from price snapshots

    # Delivery and payment details
    customer_name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    payment_method = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    user = relationship("User")

class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Reference kept for history only; the price below is what was charged
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, CheckConstraint("quantity > 0", name="ck_order_items_quantity"), nullable=False)
    price = Column(Integer, nullable=False) # Unit price snapshot

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    @property
    def product_name(self):
        return self.product.name if self.product else None
