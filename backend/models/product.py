# backend/models/product.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Model Product
# Catalog entry sold in the store. Prices are integers in the smallest
# currency unit. The stock column is only changed together with a matching
# InventoryTransaction row (see services.catalog).
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)

    # Prices - controlled by constraints.
    price = Column(Integer, CheckConstraint("price >= 0", name="ck_products_price"), nullable=False)
    discount_price = Column(Integer, CheckConstraint("discount_price >= 0", name="ck_products_discount_price"), nullable=True)

    image = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(String, nullable=True)

    # Warehouse data - never negative.
    stock = Column(Integer, CheckConstraint("stock >= 0", name="ck_products_stock"), nullable=False, default=0)

    is_featured = Column(Boolean, nullable=False, default=False)
    is_promo = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")

    # Price charged at checkout
    @property
    def effective_price(self) -> int:
        return self.discount_price if self.discount_price is not None else self.price

    @property
    def category_name(self):
        return self.category.name if self.category else None
