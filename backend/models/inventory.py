# backend/models/inventory.py
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Classification of ledger entries. Quantity is always stored as a magnitude;
# the type decides whether it adds to or removes from stock.
class TransactionType(str, enum.Enum):
    INITIAL = "initial"
    SALE = "sale"
    RETURN = "return"
    MANUAL_ADD = "manual-add"
    MANUAL_REMOVE = "manual-remove"
    ADJUSTMENT_ADD = "adjustment-add"
    ADJUSTMENT_REMOVE = "adjustment-remove"

    @property
    def sign(self) -> int:
        if self in (TransactionType.SALE, TransactionType.MANUAL_REMOVE, TransactionType.ADJUSTMENT_REMOVE):
            return -1
        return 1


# Append-only stock ledger. Rows are never updated or deleted by the application.
class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)
    # Cleared when the product is deleted; the row itself stays
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    quantity = Column(Integer, CheckConstraint("quantity >= 0", name="ck_inventory_transactions_quantity"), nullable=False)
    transaction_type = Column(String(20), nullable=False, index=True)

    # Link back to the document that caused the movement (e.g. an order)
    reference_id = Column(Integer, nullable=True)
    reference_type = Column(String(20), nullable=True)

    notes = Column(String, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product")
    user = relationship("User")

    @property
    def signed_quantity(self) -> int:
        return TransactionType(self.transaction_type).sign * self.quantity

    @property
    def created_by_name(self):
        return self.user.name if self.user else None
