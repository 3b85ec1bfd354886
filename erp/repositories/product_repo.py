from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import select, func, and_, or_, desc, asc
from datetime import datetime, timezone

from erp.models.product import Product


class ProductRepository:
    """Repository pour la gestion des produits"""

    def __init__(self, db: Session):
        self.db = db

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        """Récupérer un produit par son ID"""
        return self.db.get(Product, product_id)

    def get_products_by_ids(self, product_ids: List[str]) -> dict:
        """Récupérer plusieurs produits, indexés par ID"""
        if not product_ids:
            return {}
        products = self.db.scalars(
            select(Product).where(Product.id.in_(set(product_ids)))
        ).all()
        return {p.id: p for p in products}

    def get_products(self, skip: int = 0, limit: Optional[int] = None,
                     search: Optional[str] = None,
                     category: Optional[str] = None,
                     low_stock: Optional[bool] = None,
                     sort_by: str = "created_at",
                     sort_order: str = "asc") -> Tuple[List[Product], int]:
        """Récupérer les produits avec filtres et pagination"""

        query = select(Product)

        # Filtres
        conditions = []

        if search:
            conditions.append(
                or_(
                    Product.name.ilike(f"%{search}%"),
                    Product.sku.ilike(f"%{search}%"),
                    Product.category.ilike(f"%{search}%")
                )
            )

        if category:
            conditions.append(Product.category == category)

        if low_stock:
            conditions.append(or_(Product.is_low_stock, Product.is_out_of_stock))

        if conditions:
            query = query.where(and_(*conditions))

        # Compter le total
        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.scalar(count_query)

        # Tri
        order_column = getattr(Product, sort_by, Product.created_at)
        if sort_order.lower() == "desc":
            query = query.order_by(desc(order_column), desc(Product.id))
        else:
            query = query.order_by(asc(order_column), asc(Product.id))

        query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)

        products = self.db.scalars(query).all()
        return list(products), total or 0

    def create_product(self, product_data: dict) -> Product:
        """Créer un nouveau produit"""
        product = Product(**product_data)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update_product(self, product_id: str, update_data: dict) -> Optional[Product]:
        """Mettre à jour un produit"""
        product = self.get_product_by_id(product_id)
        if not product:
            return None

        for field, value in update_data.items():
            if hasattr(product, field) and value is not None:
                setattr(product, field, value)

        product.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: str) -> bool:
        """Supprimer un produit (les ventes gardent leur référence)"""
        product = self.get_product_by_id(product_id)
        if product:
            self.db.delete(product)
            self.db.commit()
            return True
        return False
