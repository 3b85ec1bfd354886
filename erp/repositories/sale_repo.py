from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, func
from datetime import datetime, timezone

from erp.models.product import Product
from erp.models.sale import Sale, SaleItem
from erp.schemas.sale import SaleLineItem


class SaleRepository:
    """Repository pour le journal des ventes"""

    def __init__(self, db: Session):
        self.db = db

    def get_sale_by_id(self, sale_id: str) -> Optional[Sale]:
        return self.db.scalar(
            select(Sale).where(Sale.id == sale_id).options(selectinload(Sale.items))
        )

    def get_sales(self, skip: int = 0, limit: Optional[int] = None) -> Tuple[List[Sale], int]:
        """Récupérer les ventes, plus récentes en dernier (ordre d'ajout)"""
        total = self.db.scalar(select(func.count(Sale.id)))

        query = (
            select(Sale)
            .options(selectinload(Sale.items))
            .order_by(Sale.date, Sale.id)
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)

        return list(self.db.scalars(query).all()), total or 0

    def create_sale(self, items: List[SaleLineItem], products: Dict[str, Product],
                    user_id: Optional[str] = None) -> Sale:
        """
        Enregistrer une vente et décrémenter le stock dans la même transaction.
        Les quantités ne sont pas bornées à zéro.
        """
        now = datetime.now(timezone.utc)
        sale = Sale(user_id=user_id, date=now)

        for position, item in enumerate(items):
            product = products[item.product_id]
            product.quantity = product.quantity - item.quantity
            product.updated_at = now
            sale.items.append(
                SaleItem(position=position, product_id=item.product_id, quantity=item.quantity)
            )

        self.db.add(sale)
        self.db.commit()
        self.db.refresh(sale)
        return sale
