"""
tests/conftest.py

Environnement isolé : base SQLite en mémoire partagée (StaticPool) injectée
à la place de get_db, bcrypt au coût minimal, aucune E/S externe.
"""
import os

# Avant tout import de erp : les settings sont lus à l'import
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("FIRST_ADMIN_EMAIL", None)
os.environ.pop("CLIENT_CACHE_PATH", None)
os.environ.pop("GOOGLE_CLIENT_ID", None)

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import erp.models  # noqa: F401
from erp.core.database import Base, get_db
from erp.main import app
from erp.client.api_client import ErpApiClient
from erp.repositories.product_repo import ProductRepository
from erp.repositories.user_repo import create_user
from erp.schemas.user import UserRole

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"
EMPLOYEE_EMAIL = "employee@example.com"
EMPLOYEE_PASSWORD = "employee-pass"

BASE_URL = "http://testserver/api"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def override_db(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def users(db):
    admin = create_user(db, name="Admin User", email=ADMIN_EMAIL,
                        password=ADMIN_PASSWORD, role=UserRole.ADMIN)
    employee = create_user(db, name="Jane Doe", email=EMPLOYEE_EMAIL,
                           password=EMPLOYEE_PASSWORD)
    return {"admin": admin.id, "employee": employee.id}


@pytest.fixture
def products(db):
    """Deux produits : p1 (10 en stock, seuil 5) et p2 (3 en stock, seuil 2)"""
    repo = ProductRepository(db)
    p1 = repo.create_product({"name": "Widget", "sku": "W-1", "quantity": 10, "threshold": 5})
    p2 = repo.create_product({"name": "Gadget", "sku": "G-1", "quantity": 3, "threshold": 2})
    return {"p1": p1.id, "p2": p2.id}


@pytest.fixture
def client(override_db):
    # Sans "with" : le lifespan (base du module, admin initial) n'est pas exécuté
    return TestClient(app)


def _login(client: TestClient, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client, users):
    return _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def employee_headers(client, users):
    return _login(client, EMPLOYEE_EMAIL, EMPLOYEE_PASSWORD)


@pytest_asyncio.fixture
async def asgi_api(override_db):
    """Client HTTP du poste de vente branché directement sur l'application"""
    api = ErpApiClient(base_url=BASE_URL, transport=httpx.ASGITransport(app=app))
    yield api
    await api.aclose()
