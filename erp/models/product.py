# ===================================
# erp/models/product.py
# ===================================
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL
from sqlalchemy.sql import func as sql_func
from sqlalchemy.ext.hybrid import hybrid_property

from erp.core.database import Base
from erp.models.user import generate_uuid


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    sku = Column(String(64), nullable=True, index=True)
    category = Column(String(120), nullable=True, index=True)
    description = Column(Text, nullable=True)
    price = Column(DECIMAL(10, 2), nullable=False, default=0)

    # Stock : pas de contrainte >= 0, une vente peut rendre la quantité négative
    quantity = Column(Integer, nullable=False, default=0)
    threshold = Column(Integer, nullable=False, default=0)  # Seuil de réapprovisionnement

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=sql_func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=sql_func.now(), onupdate=sql_func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', quantity={self.quantity})>"

    @hybrid_property
    def is_out_of_stock(self):
        """Vérifier si en rupture de stock"""
        return self.quantity <= 0

    @hybrid_property
    def is_low_stock(self):
        """Stock positif mais sous le seuil"""
        return (self.quantity > 0) & (self.quantity <= self.threshold)
