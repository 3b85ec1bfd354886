# ===================================
# erp/repositories/user_repo.py
# ===================================
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select
from datetime import datetime, timezone

from erp.models.user import User
from erp.schemas.user import UserProfileUpdate, UserRole
from erp.core.security import get_password_hash


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    """Récupérer un utilisateur par son ID"""
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Récupérer un utilisateur par son email"""
    return db.scalar(
        select(User).where(User.email == email.strip().lower())
    )


def create_user(
    db: Session,
    name: str,
    email: str,
    password: Optional[str] = None,
    role: UserRole = UserRole.EMPLOYEE,
    avatar: Optional[str] = None
) -> User:
    """Créer un nouvel utilisateur (sans mot de passe pour les comptes Google)"""
    db_user = User(
        name=name,
        email=email.strip().lower(),
        password_hash=get_password_hash(password) if password else None,
        role=UserRole(role).value,
        avatar=avatar,
        is_active=True
    )

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_or_create_google_user(db: Session, email: str, name: str,
                              picture: Optional[str] = None) -> User:
    """Retrouver un utilisateur Google par email, ou le créer avec le rôle employee"""
    user = get_user_by_email(db, email)
    if user is None:
        user = create_user(db, name=name or email, email=email, avatar=picture)
    elif picture and user.avatar != picture:
        user.avatar = picture
        db.commit()
        db.refresh(user)
    return user


def update_profile(db: Session, user_id: str, profile: UserProfileUpdate) -> Optional[User]:
    """Mettre à jour le profil (nom, email, avatar)"""
    user = get_user_by_id(db, user_id)
    if not user:
        return None

    update_data = profile.dict(exclude_unset=True)

    for field, value in update_data.items():
        if hasattr(user, field) and value is not None:
            setattr(user, field, value)

    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def update_last_login(db: Session, user_id: str) -> None:
    """Mettre à jour la date de dernière connexion"""
    user = get_user_by_id(db, user_id)
    if user:
        user.last_login = datetime.now(timezone.utc)
        db.commit()


def ensure_admin(db: Session, email: str, password: str, name: str = "Admin User") -> User:
    """Créer l'administrateur initial s'il n'existe pas encore"""
    user = get_user_by_email(db, email)
    if user is None:
        user = create_user(db, name=name, email=email, password=password, role=UserRole.ADMIN)
    return user
