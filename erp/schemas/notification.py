# ===================================
# erp/schemas/notification.py
# ===================================
"""
Notifications générées côté client par les mouvements de stock.
Elles ne sont jamais envoyées au serveur, seulement gardées en cache local.
"""
from datetime import datetime
from enum import Enum
from pydantic import BaseModel


class NotificationType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"

    @property
    def severity(self) -> int:
        """Ordre de gravité, pour le tri et le filtrage"""
        if self is NotificationType.ERROR:
            return 3
        if self is NotificationType.WARNING:
            return 2
        if self is NotificationType.INFO:
            return 1
        if self is NotificationType.SUCCESS:
            return 0
        raise ValueError(f"Type de notification inconnu: {self!r}")

    @property
    def icon(self) -> str:
        """Nom de l'icône affichée dans la liste déroulante"""
        if self is NotificationType.SUCCESS:
            return "check-circle"
        if self is NotificationType.WARNING:
            return "alert-triangle"
        if self is NotificationType.ERROR:
            return "alert-circle"
        if self is NotificationType.INFO:
            return "info"
        raise ValueError(f"Type de notification inconnu: {self!r}")


class Notification(BaseModel):
    id: str
    title: str
    message: str
    type: NotificationType
    read: bool = False
    date: datetime

    class Config:
        frozen = True

    def mark_read(self) -> "Notification":
        """Seule transition autorisée : non lue -> lue"""
        if self.read:
            return self
        return self.model_copy(update={"read": True})
