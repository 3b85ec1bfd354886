# ===================================
# erp/services/app_state.py
# ===================================
"""
Façade de l'état applicatif consommée par la présentation.

Elle détient une session explicite (SessionManager) et les instantanés
produits / ventes / notifications. Les écritures distantes sont
appliquées localement seulement après acquittement du serveur ; les
échecs sont journalisés et renvoyés sous forme d'OperationResult.
"""
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from erp.core.config import settings
from erp.client.api_client import ErpApiClient
from erp.client.results import ApiError, OperationResult
from erp.client.storage import KeyValueStore, SnapshotCache, create_store
from erp.schemas.notification import Notification
from erp.schemas.product import Product, ProductCreate, ProductUpdate
from erp.schemas.sale import Sale, SaleCreate
from erp.schemas.user import User, UserProfileUpdate
from erp.services.session_service import SessionManager
from erp.services.stock_service import StockMutationEngine

logger = logging.getLogger(__name__)

Listener = Callable[["AppState"], None]

NOT_AUTHENTICATED = "Non authentifié"


class AppState:
    """État client : instantanés, session et opérations de mutation"""

    def __init__(
        self,
        api: Optional[ErpApiClient] = None,
        store: Optional[KeyValueStore] = None,
        engine: Optional[StockMutationEngine] = None,
        seed_products: Optional[Sequence[Product]] = None,
    ):
        self.api = api or ErpApiClient()
        self.cache = SnapshotCache(store if store is not None else create_store(settings.client_cache_path))
        self.session = SessionManager(self.api, self.cache)
        self.engine = engine or StockMutationEngine()
        self._seed_products: Tuple[Product, ...] = tuple(seed_products or ())

        self._products: Tuple[Product, ...] = ()
        self._sales: Tuple[Sale, ...] = ()
        self._notifications: Tuple[Notification, ...] = ()
        self._listeners: List[Listener] = []

    # Cycle de vie
    async def start(self) -> Optional[User]:
        """Charger le cache local, reprendre la session puis rafraîchir"""
        products, sales, notifications = await self.cache.load_snapshots()
        self._products = tuple(products) if products is not None else self._seed_products
        self._sales = tuple(sales or ())
        self._notifications = tuple(notifications or ())

        user = await self.session.restore_session()
        if user is not None:
            await self.refresh()
        self._publish()
        return user

    async def close(self) -> None:
        await self.api.aclose()

    async def __aenter__(self) -> "AppState":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # Instantanés
    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    @property
    def sales(self) -> Tuple[Sale, ...]:
        return self._sales

    @property
    def notifications(self) -> Tuple[Notification, ...]:
        return self._notifications

    @property
    def current_user(self) -> Optional[User]:
        return self.session.current_user

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    # Lectures dérivées
    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._notifications if not n.read)

    def sorted_notifications(self) -> List[Notification]:
        """Non lues d'abord, puis des plus récentes aux plus anciennes"""
        by_date = sorted(self._notifications, key=lambda n: n.date, reverse=True)
        return sorted(by_date, key=lambda n: n.read)

    def low_stock_products(self) -> List[Product]:
        """Produits en stock bas ou en rupture"""
        return [p for p in self._products if p.is_low_stock or p.is_out_of_stock]

    # Abonnements
    def on_change(self, callback: Listener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                logger.exception("Erreur dans un abonné à l'état")

    # Utilitaires internes
    def _require_session(self) -> Optional[OperationResult]:
        if self.session.is_authenticated:
            return None
        logger.warning("Écriture distante refusée: aucune session active")
        return OperationResult.failure(NOT_AUTHENTICATED)

    async def _remote_failure(self, action: str, exc: ApiError) -> OperationResult:
        logger.warning(f"{action} a échoué ({exc.status_code or 'réseau'}): {exc.message}")
        if exc.is_unauthorized:
            await self.session.logout()
            self._publish()
        return OperationResult.from_error(exc)

    async def _persist(self, products: bool = False, sales: bool = False,
                       notifications: bool = False) -> None:
        try:
            if products:
                await self.cache.save_products(self._products)
            if sales:
                await self.cache.save_sales(self._sales)
            if notifications:
                await self.cache.save_notifications(self._notifications)
        except OSError as exc:
            logger.warning(f"Cache local non mis à jour: {exc}")

    # Synchronisation
    async def refresh(self) -> OperationResult[None]:
        """
        Recharger produits et ventes depuis le serveur et remplacer les
        instantanés en bloc. En cas d'échec le cache courant est conservé.
        """
        denied = self._require_session()
        if denied is not None:
            return denied
        try:
            products = await self.api.list_products()
            sales = await self.api.list_sales()
        except ApiError as exc:
            return await self._remote_failure("Rafraîchissement", exc)

        self._products = tuple(products)
        self._sales = tuple(sales)
        try:
            await self.cache.replace_all(self._products, self._sales)
        except OSError as exc:
            logger.warning(f"Cache local non mis à jour: {exc}")
        logger.info(f"Instantanés rafraîchis: {len(products)} produit(s), {len(sales)} vente(s)")
        self._publish()
        return OperationResult.success()

    # Session
    async def login(self, email: str, password: str) -> bool:
        ok = await self.session.login(email, password)
        if ok:
            await self.refresh()
        self._publish()
        return ok

    async def login_with_google(self, id_token: str) -> bool:
        ok = await self.session.login_with_google(id_token)
        if ok:
            await self.refresh()
        self._publish()
        return ok

    async def logout(self) -> None:
        await self.session.logout()
        self._publish()

    async def update_profile(self, name: Optional[str] = None, email: Optional[str] = None,
                             avatar: Optional[str] = None) -> OperationResult[User]:
        denied = self._require_session()
        if denied is not None:
            return denied
        changes = {k: v for k, v in {"name": name, "email": email, "avatar": avatar}.items()
                   if v is not None}
        try:
            profile = UserProfileUpdate(**changes)
        except ValidationError as exc:
            return OperationResult.failure(f"Profil invalide: {exc.error_count()} erreur(s)")
        try:
            user = await self.api.update_profile(profile)
        except ApiError as exc:
            return await self._remote_failure("Mise à jour du profil", exc)

        await self.session.update_current_user(user)
        self._publish()
        return OperationResult.success(user)

    # Produits
    async def add_product(self, product: Union[ProductCreate, dict]) -> OperationResult[Product]:
        denied = self._require_session()
        if denied is not None:
            return denied
        try:
            if isinstance(product, dict):
                product = ProductCreate(**product)
        except ValidationError as exc:
            return OperationResult.failure(f"Produit invalide: {exc.error_count()} erreur(s)")
        try:
            created = await self.api.create_product(product)
        except ApiError as exc:
            return await self._remote_failure("Création du produit", exc)

        self._products = self._products + (created,)
        await self._persist(products=True)
        self._publish()
        return OperationResult.success(created)

    async def update_product(self, product_id: str,
                             changes: Union[ProductUpdate, dict]) -> OperationResult[Product]:
        denied = self._require_session()
        if denied is not None:
            return denied
        try:
            if isinstance(changes, dict):
                changes = ProductUpdate(**changes)
        except ValidationError as exc:
            return OperationResult.failure(f"Modification invalide: {exc.error_count()} erreur(s)")
        try:
            updated = await self.api.update_product(product_id, changes)
        except ApiError as exc:
            return await self._remote_failure("Modification du produit", exc)

        if self.get_product(product_id) is None:
            self._products = self._products + (updated,)
        else:
            self._products = tuple(updated if p.id == product_id else p for p in self._products)
        await self._persist(products=True)
        self._publish()
        return OperationResult.success(updated)

    async def delete_product(self, product_id: str) -> OperationResult[None]:
        denied = self._require_session()
        if denied is not None:
            return denied
        try:
            await self.api.delete_product(product_id)
        except ApiError as exc:
            return await self._remote_failure("Suppression du produit", exc)

        # Les ventes gardent leurs références : pas de suppression en cascade
        self._products = tuple(p for p in self._products if p.id != product_id)
        await self._persist(products=True)
        self._publish()
        return OperationResult.success()

    # Ventes
    async def record_sale(self, items: Iterable[Any]) -> OperationResult[Sale]:
        """
        Enregistrer une vente : décrément du stock et alertes.
        Connecté, la vente est d'abord envoyée au serveur et rien n'est
        appliqué localement si l'envoi échoue. Hors connexion elle reste locale.
        """
        try:
            outcome = self.engine.record_sale(self._products, self._notifications, items)
        except ValueError as exc:
            logger.warning(f"Vente refusée: {exc}")
            return OperationResult.failure(str(exc))

        if self.session.is_authenticated:
            try:
                confirmed = await self.api.create_sale(SaleCreate(items=list(outcome.sale.items)))
            except ApiError as exc:
                return await self._remote_failure("Enregistrement de la vente", exc)
            outcome = outcome.with_sale(confirmed)

        self._products = outcome.products
        self._sales = self._sales + (outcome.sale,)
        self._notifications = outcome.notifications
        await self._persist(products=True, sales=True, notifications=True)
        self._publish()

        if outcome.is_partial:
            return OperationResult.partial(outcome.sale, outcome.skipped_product_ids)
        return OperationResult.success(outcome.sale)

    # Notifications
    async def mark_notification_read(self, notification_id: str) -> bool:
        """Marquer une notification comme lue. Idempotent ; id inconnu ignoré."""
        changed = False
        notifications = []
        for notification in self._notifications:
            if notification.id == notification_id and not notification.read:
                notification = notification.mark_read()
                changed = True
            notifications.append(notification)

        if changed:
            self._notifications = tuple(notifications)
            await self._persist(notifications=True)
            self._publish()
        return changed

    async def clear_notifications(self) -> None:
        self._notifications = ()
        await self._persist(notifications=True)
        self._publish()
