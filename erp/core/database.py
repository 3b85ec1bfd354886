# ===================================
# erp/core/database.py
# ===================================
import logging
from sqlalchemy import create_engine, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from typing import Generator

from erp.core.config import settings

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    """Options spécifiques au dialecte"""
    if url.startswith("sqlite"):
        # SQLite partagé entre les threads du serveur
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# Configuration du moteur SQLAlchemy
engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # Log des requêtes SQL en mode debug
    future=True,  # SQLAlchemy 2.0 style
    **_engine_kwargs(settings.database_url)
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True
)

Base = declarative_base()


def get_db() -> Generator:
    """
    Générateur de session de base de données pour l'injection de dépendance FastAPI
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """
    Crée les tables (users, products, sales) si elles n'existent pas
    """
    # Enregistre les modèles sur Base.metadata
    import erp.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Tables créées")


def check_db_connection() -> bool:
    """
    Vérifie la connexion à la base de données
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Erreur de connexion DB: {e}")
        return False
