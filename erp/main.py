# ===================================
# erp/main.py
# ===================================
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from erp.core.config import settings
from erp.core.database import SessionLocal, init_db, check_db_connection
from erp.core.logging_config import setup_logging
from erp.repositories.user_repo import ensure_admin

# Import des routes
from erp.api.v1 import auth, users, products, sales

logger = logging.getLogger(__name__)


def seed_first_admin() -> None:
    """Créer l'administrateur initial si FIRST_ADMIN_EMAIL est défini"""
    if not (settings.first_admin_email and settings.first_admin_password):
        return
    db = SessionLocal()
    try:
        admin = ensure_admin(
            db,
            email=settings.first_admin_email,
            password=settings.first_admin_password,
            name=settings.first_admin_name
        )
        logger.info(f"Administrateur initial: {admin.email}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestionnaire de cycle de vie de l'application"""
    # Démarrage
    logger.info("Démarrage de l'ERP...")

    # Vérifier la connexion DB
    if not check_db_connection():
        logger.error("Impossible de se connecter à la base de données")
        raise RuntimeError("Database connection failed")

    # Initialiser la base de données
    init_db()
    seed_first_admin()

    logger.info("Application démarrée avec succès")

    yield

    # Arrêt
    logger.info("Arrêt de l'application...")


def create_app() -> FastAPI:
    """Factory pour créer l'application FastAPI"""
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes API
    app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["Auth"])
    app.include_router(users.router, prefix=f"{settings.api_prefix}/users", tags=["Users"])
    app.include_router(products.router, prefix=f"{settings.api_prefix}/products", tags=["Products"])
    app.include_router(sales.router, prefix=f"{settings.api_prefix}/sales", tags=["Sales"])

    # Route de santé
    @app.get("/health")
    async def health_check():
        """Vérification de la santé de l'API"""
        db_status = "ok" if check_db_connection() else "error"

        return {
            "status": "ok" if db_status == "ok" else "error",
            "version": settings.app_version,
            "environment": settings.environment,
            "database": db_status
        }

    # Gestion globale des erreurs
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {
                    "code": exc.status_code,
                    "message": exc.detail,
                    "type": "http_error"
                }
            },
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": {
                    "code": 422,
                    "message": "Données invalides",
                    "type": "validation_error",
                    "details": [
                        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                        for err in exc.errors()
                    ]
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Erreur non gérée: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {
                    "code": 500,
                    "message": "Erreur interne du serveur",
                    "type": "internal_error"
                }
            },
        )

    return app


# Créer l'instance de l'application
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "erp.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info"
    )
