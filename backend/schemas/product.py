# backend/schemas/product.py
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from schemas.base import ORMBase, Envelope


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str
    price: int = Field(ge=0)
    discount_price: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    description: Optional[str] = None
    image: Optional[str] = None
    is_featured: bool = False
    is_promo: bool = False


# Schema for creating a new product; opening stock is booked in the ledger
class ProductCreate(ProductBase):
    stock: int = Field(default=0, ge=0)


# Schema for partial product updates
class ProductUpdate(ORMBase):
    """All fields optional; only the fields sent are changed."""
    name: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    discount_price: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    description: Optional[str] = None
    image: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    is_featured: Optional[bool] = None
    is_promo: Optional[bool] = None


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    stock: int
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductEnvelope(Envelope):
    product: ProductOut
    related_products: Optional[List[ProductOut]] = None
    message: Optional[str] = None


class ProductsEnvelope(Envelope):
    products: List[ProductOut]


class MessageEnvelope(Envelope):
    message: str
