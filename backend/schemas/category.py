# backend/schemas/category.py
from typing import Optional, List
from datetime import datetime

from schemas.base import ORMBase, Envelope


class CategoryCreate(ORMBase):
    name: Optional[str] = None
    image: Optional[str] = None


class CategoryUpdate(ORMBase):
    name: Optional[str] = None
    image: Optional[str] = None


class CategoryOut(ORMBase):
    id: int
    name: str
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryEnvelope(Envelope):
    category: CategoryOut


class CategoriesEnvelope(Envelope):
    categories: List[CategoryOut]
