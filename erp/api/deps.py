# ===================================
# erp/api/deps.py
# ===================================
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from erp.core.database import get_db
from erp.core.security import get_current_active_user
from erp.models.product import Product
from erp.models.user import User
from erp.schemas.user import UserRole
from erp.repositories.product_repo import ProductRepository


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    """
    Vérifier que l'utilisateur est admin
    """
    if not current_user.has_role(UserRole.ADMIN.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Accès administrateur requis"
        )
    return current_user


def get_product_or_404(product_id: str, db: Session = Depends(get_db)) -> Product:
    """
    Récupérer un produit par son ID ou répondre 404
    """
    product = ProductRepository(db).get_product_by_id(product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Produit non trouvé"
        )
    return product
