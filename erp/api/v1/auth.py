# ===================================
# erp/api/v1/auth.py
# ===================================
import logging
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from google.auth.exceptions import GoogleAuthError, TransportError

from erp.core.database import get_db
from erp.core.security import (
    verify_password,
    create_access_token,
    verify_google_token
)
from erp.models.user import User as UserModel
from erp.repositories.user_repo import (
    get_user_by_email,
    get_or_create_google_user,
    update_last_login
)
from erp.schemas.user import (
    LoginRequest,
    GoogleLoginRequest,
    AuthResponse,
    User
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_token(user: UserModel) -> str:
    return create_access_token(
        subject=user.id,
        extra_claims={"email": user.email, "role": user.role}
    )


@router.post("/login", response_model=AuthResponse)
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
) -> Any:
    """
    Connexion par email et mot de passe
    """
    user = get_user_by_email(db, email=login_data.email)

    if not user or not verify_password(login_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou mot de passe incorrect",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Compte désactivé"
        )

    update_last_login(db, user.id)

    return AuthResponse(token=_issue_token(user), user=User.from_orm(user))


@router.post("/google-login", response_model=AuthResponse)
def google_login(
    login_data: GoogleLoginRequest,
    db: Session = Depends(get_db)
) -> Any:
    """
    Connexion avec un ID token Google. Le compte est créé au premier passage.
    """
    try:
        claims = verify_google_token(login_data.token)
    except TransportError as exc:
        logger.warning(f"Certificats Google inaccessibles: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service d'authentification Google indisponible"
        )
    except (ValueError, GoogleAuthError) as exc:
        logger.warning(f"Échec de vérification du token Google: {exc}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentification Google échouée",
            headers={"WWW-Authenticate": "Bearer"},
        )

    email = claims.get("email")
    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token Google sans email"
        )

    user = get_or_create_google_user(
        db,
        email=email,
        name=claims.get("name") or email,
        picture=claims.get("picture")
    )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Compte désactivé"
        )

    update_last_login(db, user.id)

    return AuthResponse(token=_issue_token(user), user=User.from_orm(user))
