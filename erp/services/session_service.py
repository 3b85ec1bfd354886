# ===================================
# erp/services/session_service.py
# ===================================
"""
Gestion de la session client : utilisateur courant, token et transitions
ANONYMOUS -> AUTHENTICATING -> AUTHENTICATED -> ANONYMOUS.
"""
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, Optional

from erp.client.api_client import ErpApiClient
from erp.client.results import ApiError
from erp.client.storage import SnapshotCache
from erp.schemas.user import AuthResponse, User

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


# AUTHENTICATING ne se résout qu'en AUTHENTICATED ou ANONYMOUS
SESSION_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.ANONYMOUS: frozenset({SessionState.AUTHENTICATING}),
    SessionState.AUTHENTICATING: frozenset({SessionState.AUTHENTICATED, SessionState.ANONYMOUS}),
    SessionState.AUTHENTICATED: frozenset({SessionState.ANONYMOUS}),
}


class InvalidSessionTransition(RuntimeError):
    def __init__(self, current: SessionState, target: SessionState):
        super().__init__(f"Transition de session interdite: {current.value} -> {target.value}")
        self.current = current
        self.target = target


class SessionManager:
    """Session d'un opérateur. Au plus un utilisateur courant."""

    def __init__(self, api: ErpApiClient, cache: SnapshotCache):
        self.api = api
        self.cache = cache
        self.state = SessionState.ANONYMOUS
        self.current_user: Optional[User] = None
        self.last_error: Optional[ApiError] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def token(self) -> Optional[str]:
        return self.api.token

    def _transition(self, target: SessionState) -> None:
        if target not in SESSION_TRANSITIONS[self.state]:
            raise InvalidSessionTransition(self.state, target)
        logger.debug(f"Session: {self.state.value} -> {target.value}")
        self.state = target

    async def _authenticate(self, call: Callable[[], Awaitable[AuthResponse]], method: str) -> bool:
        # Une nouvelle connexion remplace la session en cours
        if self.state is not SessionState.ANONYMOUS:
            await self.logout()

        self._transition(SessionState.AUTHENTICATING)
        self.last_error = None
        try:
            auth = await call()
        except ApiError as exc:
            logger.warning(f"Échec de connexion ({method}): {exc.message}")
            self.last_error = exc
            self._transition(SessionState.ANONYMOUS)
            return False

        self.api.set_token(auth.token)
        self.current_user = auth.user
        self._transition(SessionState.AUTHENTICATED)
        try:
            await self.cache.save_token(auth.token)
            await self.cache.save_user(auth.user)
        except OSError as exc:
            logger.warning(f"Session non persistée localement: {exc}")

        logger.info(f"Connecté ({method}): {auth.user.email}")
        return True

    async def login(self, email: str, password: str) -> bool:
        """Connexion par email / mot de passe"""
        return await self._authenticate(lambda: self.api.login(email, password), "password")

    async def login_with_google(self, id_token: str) -> bool:
        """Connexion avec un ID token Google"""
        return await self._authenticate(lambda: self.api.google_login(id_token), "google")

    async def restore_session(self) -> Optional[User]:
        """
        Reprendre la session à partir du token stocké.
        Tout échec (token invalide ou expiré, réseau) efface le token et
        renvoie None, sans lever.
        """
        if self.state is SessionState.AUTHENTICATED:
            return self.current_user

        token = await self.cache.load_token()
        if not token:
            return None

        self._transition(SessionState.AUTHENTICATING)
        self.api.set_token(token)
        try:
            user = await self.api.get_profile()
        except ApiError as exc:
            logger.warning(f"Restauration de session impossible: {exc.message}")
            self.last_error = exc
            await self._clear()
            self._transition(SessionState.ANONYMOUS)
            return None

        self.current_user = user
        self._transition(SessionState.AUTHENTICATED)
        await self._save_user(user)
        logger.info(f"Session restaurée: {user.email}")
        return user

    async def update_current_user(self, user: User) -> None:
        self.current_user = user
        await self._save_user(user)

    async def _save_user(self, user: User) -> None:
        try:
            await self.cache.save_user(user)
        except OSError as exc:
            logger.warning(f"Utilisateur non persisté localement: {exc}")

    async def _clear(self) -> None:
        self.api.set_token(None)
        self.current_user = None
        try:
            await self.cache.invalidate_session()
        except OSError as exc:
            logger.warning(f"Effacement de la session locale incomplet: {exc}")

    async def logout(self) -> None:
        """Efface token et utilisateur courant. Idempotent, ne lève jamais."""
        await self._clear()
        if self.state is not SessionState.ANONYMOUS:
            self._transition(SessionState.ANONYMOUS)
            logger.info("Déconnecté")
