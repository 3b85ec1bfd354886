# ===================================
# erp/api/v1/sales.py
# ===================================
import logging
from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from erp.core.database import get_db
from erp.core.security import get_current_active_user
from erp.repositories.product_repo import ProductRepository
from erp.repositories.sale_repo import SaleRepository
from erp.schemas.sale import Sale, SaleCreate
from erp.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[Sale])
def list_sales(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
) -> Any:
    """Récupérer le journal des ventes"""
    sales, _ = SaleRepository(db).get_sales()
    return [Sale.from_orm(sale) for sale in sales]


@router.post("", response_model=Sale, status_code=status.HTTP_201_CREATED)
def create_sale(
    sale_data: SaleCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Enregistrer une vente et décrémenter le stock des produits vendus
    """
    products = ProductRepository(db).get_products_by_ids(
        [item.product_id for item in sale_data.items]
    )
    missing = [item.product_id for item in sale_data.items if item.product_id not in products]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Produits introuvables: {', '.join(missing)}"
        )

    sale = SaleRepository(db).create_sale(sale_data.items, products, user_id=current_user.id)
    logger.info(f"Vente {sale.id} enregistrée par {current_user.email} ({len(sale.items)} lignes, {sale.total_quantity} unités)")
    return Sale.from_orm(sale)


@router.get("/{sale_id}", response_model=Sale)
def get_sale(
    sale_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
) -> Any:
    """Récupérer une vente par son ID"""
    sale = SaleRepository(db).get_sale_by_id(sale_id)
    if not sale:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vente non trouvée"
        )
    return Sale.from_orm(sale)
