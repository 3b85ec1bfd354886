# ===================================
# erp/client/api_client.py
# ===================================
"""
Client HTTP asynchrone de l'API ERP (httpx).
Ajoute l'en-tête Authorization: Bearer quand un token est présent et
convertit toute erreur de transport ou réponse non 2xx en ApiError.
"""
import logging
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from erp.core.config import settings
from erp.client.results import ApiError
from erp.schemas.product import Product, ProductCreate, ProductUpdate
from erp.schemas.sale import Sale, SaleCreate
from erp.schemas.user import AuthResponse, User, UserProfileUpdate

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_EXTRA = {408, 425, 429}

_products_adapter = TypeAdapter(List[Product])
_sales_adapter = TypeAdapter(List[Sale])


def _is_retryable_status(status_code: int) -> bool:
    if status_code >= 500:
        return True
    return status_code in _RETRYABLE_STATUS_EXTRA


def _error_message(response: httpx.Response) -> str:
    """Extraire le message de l'enveloppe {"success": false, "error": {...}}"""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if payload.get("detail"):
            return str(payload["detail"])
        if payload.get("message"):
            return str(payload["message"])
    return response.reason_phrase


class ErpApiClient:
    """Accès distant aux routes /auth, /users, /products et /sales"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token: Optional[str] = None,
    ):
        timeout = timeout if timeout is not None else settings.client_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=httpx.Timeout(timeout, connect=min(3.0, timeout)),
            transport=transport,
        )
        self.token = token

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ErpApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    async def _request(self, method: str, path: str, json: Any = None,
                       authenticated: bool = True) -> Any:
        headers = {"Accept": "application/json"}
        if authenticated and self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning(f"{method} {path}: timeout")
            raise ApiError("Délai d'attente dépassé", recoverable=True) from exc
        except httpx.RequestError as exc:
            logger.warning(f"{method} {path}: erreur réseau {exc!r}")
            raise ApiError(f"Erreur réseau: {exc}", recoverable=True) from exc

        if response.is_error:
            message = _error_message(response)
            logger.debug(f"{method} {path} -> {response.status_code}: {message}")
            raise ApiError(
                message,
                status_code=response.status_code,
                recoverable=_is_retryable_status(response.status_code),
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            # Typiquement une page HTML servie à la place de l'API
            logger.warning(f"{method} {path}: réponse non JSON ({response.status_code})")
            raise ApiError("Réponse invalide du serveur", status_code=response.status_code) from exc

    @staticmethod
    def _parse(parser, data: Any):
        try:
            return parser(data)
        except ValidationError as exc:
            raise ApiError(f"Réponse invalide du serveur ({exc.error_count()} erreur(s))") from exc

    # Authentification
    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}, authenticated=False
        )
        return self._parse(AuthResponse.model_validate, data)

    async def google_login(self, id_token: str) -> AuthResponse:
        data = await self._request(
            "POST", "/auth/google-login", json={"token": id_token}, authenticated=False
        )
        return self._parse(AuthResponse.model_validate, data)

    # Profil
    async def get_profile(self) -> User:
        data = await self._request("GET", "/users/profile")
        return self._parse(User.model_validate, data)

    async def update_profile(self, profile: UserProfileUpdate) -> User:
        data = await self._request(
            "PUT", "/users/profile", json=profile.model_dump(mode="json", exclude_unset=True)
        )
        return self._parse(User.model_validate, data)

    # Produits
    async def list_products(self) -> List[Product]:
        data = await self._request("GET", "/products")
        return self._parse(_products_adapter.validate_python, data)

    async def create_product(self, product: ProductCreate) -> Product:
        data = await self._request("POST", "/products", json=product.model_dump(mode="json"))
        return self._parse(Product.model_validate, data)

    async def update_product(self, product_id: str, update: ProductUpdate) -> Product:
        data = await self._request(
            "PUT", f"/products/{product_id}", json=update.model_dump(mode="json", exclude_unset=True)
        )
        return self._parse(Product.model_validate, data)

    async def delete_product(self, product_id: str) -> None:
        await self._request("DELETE", f"/products/{product_id}")

    # Ventes
    async def list_sales(self) -> List[Sale]:
        data = await self._request("GET", "/sales")
        return self._parse(_sales_adapter.validate_python, data)

    async def create_sale(self, sale: SaleCreate) -> Sale:
        data = await self._request("POST", "/sales", json=sale.model_dump(mode="json"))
        return self._parse(Sale.model_validate, data)
