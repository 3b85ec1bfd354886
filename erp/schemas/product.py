# ===================================
# erp/schemas/product.py
# ===================================

from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    sku: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Decimal = Field(default=Decimal("0"), ge=0)
    quantity: int = 0  # Peut devenir négatif après une vente
    threshold: int = Field(default=0, ge=0, description="Seuil d'alerte de stock bas")


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    quantity: Optional[int] = None
    threshold: Optional[int] = Field(None, ge=0)


class Product(ProductBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity <= 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.quantity <= self.threshold
