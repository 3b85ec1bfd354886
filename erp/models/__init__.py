"""
Models package initialization.
This file imports all models to make them available to Alembic for autogeneration.
"""

# IMPORTANT: Utiliser la MÊME Base que celle de database.py
from erp.core.database import Base

# Import all models here so they are registered with Base.metadata
from .user import User, UserRole  # noqa: F401
from .product import Product  # noqa: F401
from .sale import Sale, SaleItem  # noqa: F401

__all__ = ['Base', 'User', 'UserRole', 'Product', 'Sale', 'SaleItem']
