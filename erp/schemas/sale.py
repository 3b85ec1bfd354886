# ===================================
# erp/schemas/sale.py
# ===================================
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class SaleLineItem(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0, description="Quantité vendue")

    class Config:
        from_attributes = True


class SaleCreate(BaseModel):
    items: List[SaleLineItem] = Field(min_length=1)


class Sale(BaseModel):
    """Vente : identifiant, date et lignes ordonnées. Immuable."""
    id: str
    date: datetime
    items: List[SaleLineItem]
    user_id: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True