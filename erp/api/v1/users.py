# ===================================
# erp/api/v1/users.py
# ===================================
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from erp.core.database import get_db
from erp.core.security import get_current_active_user
from erp.models.user import User as UserModel
from erp.repositories.user_repo import get_user_by_email, update_profile
from erp.schemas.user import UserProfile, UserProfileUpdate

router = APIRouter()


@router.get("/profile", response_model=UserProfile)
def get_profile(
    current_user: UserModel = Depends(get_current_active_user)
) -> Any:
    """
    Récupérer le profil de l'utilisateur connecté
    """
    return UserProfile.from_orm(current_user)


@router.put("/profile", response_model=UserProfile)
def update_current_profile(
    profile: UserProfileUpdate,
    current_user: UserModel = Depends(get_current_active_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Mettre à jour le nom, l'email et l'avatar de l'utilisateur connecté
    """
    if profile.email and profile.email != current_user.email:
        if get_user_by_email(db, profile.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Un utilisateur avec cet email existe déjà"
            )

    updated_user = update_profile(db, user_id=current_user.id, profile=profile)

    if not updated_user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Utilisateur non trouvé"
        )

    return UserProfile.from_orm(updated_user)
