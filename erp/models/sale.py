# ===================================
# erp/models/sale.py
# ===================================
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from erp.core.database import Base
from erp.models.user import generate_uuid


class Sale(Base):
    """Vente enregistrée. Immuable une fois créée (journal en ajout seul)."""
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    date = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Vendeur
    user_id = Column(String(36), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    # Relations
    user = relationship("User", back_populates="sales")
    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.position"
    )

    def __repr__(self):
        return f"<Sale(id={self.id}, items={len(self.items)})>"

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(String(36), ForeignKey('sales.id', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Référence faible : pas de clé étrangère, la suppression d'un produit
    # ne touche pas l'historique des ventes
    product_id = Column(String(36), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    sale = relationship("Sale", back_populates="items")

    def __repr__(self):
        return f"<SaleItem(product_id={self.product_id}, quantity={self.quantity})>"
