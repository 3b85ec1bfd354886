# ===================================
# erp/client/storage.py
# ===================================
"""
Persistance locale du client : un stockage clé/valeur de chaînes
(équivalent du localStorage du navigateur) et un cache typé des
collections par-dessus.
"""
import asyncio
import json
import logging
import os
import threading
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from erp.schemas.notification import Notification
from erp.schemas.product import Product
from erp.schemas.sale import Sale
from erp.schemas.user import User

logger = logging.getLogger(__name__)

# Clés fixes du stockage local
TOKEN_KEY = "erp_token"
PRODUCTS_KEY = "erp_products"
SALES_KEY = "erp_sales"
NOTIFICATIONS_KEY = "erp_notifications"
CURRENT_USER_KEY = "erp_currentUser"


class KeyValueStore(Protocol):
    """Contrat minimal du stockage local"""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryStore:
    """Stockage en mémoire, pour les tests et les sessions éphémères"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileStore:
    """
    Stockage dans un fichier JSON unique {clé: valeur}.
    Écriture atomique via fichier temporaire puis os.replace.
    """

    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        self.file_path = file_path

    def _read_raw(self) -> Dict[str, str]:
        with self._file_lock:
            try:
                with open(self.file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except FileNotFoundError:
                return {}
            except json.JSONDecodeError:
                # Fichier corrompu : on repart d'un cache vide
                logger.warning(f"Cache local illisible, ignoré: {self.file_path}")
                return {}
            return data if isinstance(data, dict) else {}

    def _write_raw(self, data: Dict[str, str]) -> None:
        with self._file_lock:
            directory = os.path.dirname(os.path.abspath(self.file_path))
            os.makedirs(directory, exist_ok=True)
            temp_path = self.file_path + ".tmp"
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def _set_sync(self, key: str, value: str) -> None:
        with self._file_lock:
            data = self._read_raw()
            data[key] = value
            self._write_raw(data)

    def _remove_sync(self, key: str) -> None:
        with self._file_lock:
            data = self._read_raw()
            if key in data:
                del data[key]
                self._write_raw(data)

    async def get(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read_raw)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove_sync, key)


def create_store(file_path: Optional[str] = None) -> KeyValueStore:
    """Fichier JSON si un chemin est fourni, mémoire sinon"""
    if file_path:
        return JsonFileStore(file_path)
    return MemoryStore()


_products_adapter = TypeAdapter(List[Product])
_sales_adapter = TypeAdapter(List[Sale])
_notifications_adapter = TypeAdapter(List[Notification])


class SnapshotCache:
    """
    Cache typé des instantanés (produits, ventes, notifications, utilisateur).

    Règle d'invalidation : remplacement complet à la connexion et au
    rafraîchissement (replace_all), jamais de fusion partielle ; à la
    déconnexion seuls le token et l'utilisateur sont effacés.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def _load(self, key: str, adapter: TypeAdapter) -> Optional[list]:
        raw = await self.store.get(key)
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning(f"Entrée de cache invalide '{key}', ignorée: {exc.error_count()} erreur(s)")
            return None

    async def _save(self, key: str, adapter: TypeAdapter, items: Sequence) -> None:
        await self.store.set(key, adapter.dump_json(list(items)).decode("utf-8"))

    # Collections
    async def load_products(self) -> Optional[List[Product]]:
        return await self._load(PRODUCTS_KEY, _products_adapter)

    async def save_products(self, products: Sequence[Product]) -> None:
        await self._save(PRODUCTS_KEY, _products_adapter, products)

    async def load_sales(self) -> Optional[List[Sale]]:
        return await self._load(SALES_KEY, _sales_adapter)

    async def save_sales(self, sales: Sequence[Sale]) -> None:
        await self._save(SALES_KEY, _sales_adapter, sales)

    async def load_notifications(self) -> Optional[List[Notification]]:
        return await self._load(NOTIFICATIONS_KEY, _notifications_adapter)

    async def save_notifications(self, notifications: Sequence[Notification]) -> None:
        await self._save(NOTIFICATIONS_KEY, _notifications_adapter, notifications)

    async def replace_all(self, products: Sequence[Product], sales: Sequence[Sale]) -> None:
        """Remplacement complet des collections serveur (dernier écrivain gagnant)"""
        await self.save_products(products)
        await self.save_sales(sales)

    # Session
    async def load_token(self) -> Optional[str]:
        return await self.store.get(TOKEN_KEY)

    async def save_token(self, token: str) -> None:
        await self.store.set(TOKEN_KEY, token)

    async def load_user(self) -> Optional[User]:
        raw = await self.store.get(CURRENT_USER_KEY)
        if raw is None:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.warning("Utilisateur en cache invalide, ignoré")
            return None

    async def save_user(self, user: User) -> None:
        await self.store.set(CURRENT_USER_KEY, user.model_dump_json())

    async def invalidate_session(self) -> None:
        await self.store.remove(TOKEN_KEY)
        await self.store.remove(CURRENT_USER_KEY)

    async def load_snapshots(self) -> Tuple[Optional[List[Product]], Optional[List[Sale]],
                                            Optional[List[Notification]]]:
        return (
            await self.load_products(),
            await self.load_sales(),
            await self.load_notifications(),
        )
