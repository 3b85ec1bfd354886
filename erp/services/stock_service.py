# ===================================
# erp/services/stock_service.py
# ===================================
"""
Moteur de mouvement de stock côté client.

Enregistrer une vente décrémente la quantité des produits vendus (sans
plancher à zéro) et produit les alertes de stock bas ou de rupture.
Le moteur ne fait aucune E/S : il reçoit les instantanés courants et
renvoie les nouveaux, la façade se charge de la persistance.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from erp.schemas.notification import Notification, NotificationType
from erp.schemas.product import Product
from erp.schemas.sale import Sale, SaleLineItem

logger = logging.getLogger(__name__)

LOW_STOCK_TITLE = "Low Stock Alert"
OUT_OF_STOCK_TITLE = "Out of Stock Alert"


class SaleRejected(ValueError):
    """Vente vide, ou dont aucune ligne ne correspond à un produit connu"""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def stock_notification(product: Product, now: datetime,
                       id_factory: Callable[[], str] = new_id) -> Optional[Notification]:
    """
    Alerte correspondant à la quantité courante du produit :
    stock bas si 0 < quantité <= seuil, rupture si quantité <= 0, rien sinon.
    """
    quantity = product.quantity
    if 0 < quantity <= product.threshold:
        return Notification(
            id=id_factory(),
            title=LOW_STOCK_TITLE,
            message=f"{product.name} is running low on stock ({quantity} remaining)",
            type=NotificationType.WARNING,
            date=now,
        )
    if quantity <= 0:
        return Notification(
            id=id_factory(),
            title=OUT_OF_STOCK_TITLE,
            message=f"{product.name} is now out of stock!",
            type=NotificationType.ERROR,
            date=now,
        )
    return None


@dataclass(frozen=True)
class SaleOutcome:
    """Nouveaux instantanés produits par une vente"""
    sale: Sale
    products: Tuple[Product, ...]
    notifications: Tuple[Notification, ...]
    new_notifications: Tuple[Notification, ...] = field(default_factory=tuple)
    skipped_product_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_partial(self) -> bool:
        return bool(self.skipped_product_ids)

    def with_sale(self, sale: Sale) -> "SaleOutcome":
        """Remplacer la vente locale par celle confirmée par le serveur"""
        return replace(self, sale=sale)


def _coerce_items(items: Iterable[Any]) -> List[SaleLineItem]:
    coerced = []
    for item in items:
        if isinstance(item, SaleLineItem):
            coerced.append(item)
        elif isinstance(item, dict):
            coerced.append(SaleLineItem(**item))
        else:
            try:
                product_id, quantity = item
            except (TypeError, ValueError) as exc:
                raise SaleRejected(f"Ligne de vente invalide: {item!r}") from exc
            coerced.append(SaleLineItem(product_id=product_id, quantity=quantity))
    return coerced


class StockMutationEngine:
    """Application d'une vente sur les instantanés produits / notifications"""

    def __init__(self, id_factory: Callable[[], str] = new_id,
                 clock: Callable[[], datetime] = utcnow):
        self.id_factory = id_factory
        self.clock = clock

    def record_sale(
        self,
        products: Sequence[Product],
        notifications: Sequence[Notification],
        items: Iterable[Any],
        now: Optional[datetime] = None,
    ) -> SaleOutcome:
        line_items = _coerce_items(items)
        if not line_items:
            raise SaleRejected("Une vente doit contenir au moins une ligne")

        now = now or self.clock()
        working: Dict[str, Product] = {product.id: product for product in products}
        applied: List[SaleLineItem] = []
        skipped: List[str] = []
        emitted: List[Notification] = []

        # Chaque ligne part de l'état du produit au moment de son traitement
        for item in line_items:
            product = working.get(item.product_id)
            if product is None:
                skipped.append(item.product_id)
                continue

            updated = product.model_copy(update={
                "quantity": product.quantity - item.quantity,
                "updated_at": now,
            })
            working[updated.id] = updated
            applied.append(item)

            notification = stock_notification(updated, now, self.id_factory)
            if notification is not None:
                emitted.append(notification)

        if skipped:
            logger.warning(f"Lignes de vente ignorées, produits introuvables: {', '.join(skipped)}")
        if not applied:
            raise SaleRejected(f"Aucun produit connu dans la vente: {', '.join(skipped)}")

        sale = Sale(id=self.id_factory(), date=now, items=applied)

        # La notification la plus récente en tête
        new_notifications = tuple(reversed(emitted))
        new_products = tuple(working.get(product.id, product) for product in products)

        logger.debug(
            f"Vente {sale.id}: {len(applied)} ligne(s), {len(new_notifications)} alerte(s)"
        )
        return SaleOutcome(
            sale=sale,
            products=new_products,
            notifications=new_notifications + tuple(notifications),
            new_notifications=new_notifications,
            skipped_product_ids=tuple(skipped),
        )
