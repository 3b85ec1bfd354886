# ===================================
# erp/api/v1/products.py
# ===================================
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, status, Query, Response
from sqlalchemy.orm import Session

from erp.core.database import get_db
from erp.core.security import get_current_active_user
from erp.api.deps import require_admin, get_product_or_404
from erp.repositories.product_repo import ProductRepository
from erp.schemas.product import Product, ProductCreate, ProductUpdate
from erp.models.product import Product as ProductModel
from erp.models.user import User

router = APIRouter()


@router.get("", response_model=List[Product])
def list_products(
    search: Optional[str] = Query(None, description="Terme de recherche (nom, SKU, catégorie)"),
    category: Optional[str] = Query(None, description="Filtrer par catégorie"),
    low_stock: Optional[bool] = Query(None, description="Produits sous le seuil uniquement"),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Récupérer la collection complète des produits
    """
    products, _ = ProductRepository(db).get_products(
        search=search,
        category=category,
        low_stock=low_stock
    )
    return [Product.from_orm(product) for product in products]


@router.get("/{product_id}", response_model=Product)
def get_product(
    current_user: User = Depends(get_current_active_user),
    product: ProductModel = Depends(get_product_or_404)
) -> Any:
    """
    Récupérer un produit par son ID
    """
    return Product.from_orm(product)


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Créer un nouveau produit
    """
    product = ProductRepository(db).create_product(product_data.dict())
    return Product.from_orm(product)


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_update: ProductUpdate,
    current_user: User = Depends(get_current_active_user),
    product: ProductModel = Depends(get_product_or_404),
    db: Session = Depends(get_db)
) -> Any:
    """
    Mettre à jour un produit
    """
    updated = ProductRepository(db).update_product(
        product.id, product_update.dict(exclude_unset=True)
    )
    return Product.from_orm(updated)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    current_user: User = Depends(require_admin),
    product: ProductModel = Depends(get_product_or_404),
    db: Session = Depends(get_db)
) -> Response:
    """
    Supprimer un produit (Admin)
    """
    ProductRepository(db).delete_product(product.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
