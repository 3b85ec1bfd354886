# ===================================
# erp/client/results.py
# ===================================
"""
Résultats des opérations de la couche d'état.

Les échecs distants ne sont pas levés vers la présentation : ils sont
journalisés et renvoyés sous forme d'OperationResult, pour que l'appelant
choisisse de réessayer ou d'afficher l'erreur.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class ResultStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"                          # Appliqué, avec des lignes ignorées
    RECOVERABLE_FAILURE = "recoverable_failure"  # Réseau, timeout, 5xx : on peut réessayer
    FATAL_FAILURE = "fatal_failure"              # 4xx, non authentifié : inutile de réessayer


class ApiError(Exception):
    """Erreur d'un appel à l'API distante"""

    def __init__(self, message: str, status_code: Optional[int] = None, recoverable: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.recoverable = recoverable

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    def __repr__(self):
        return f"ApiError(status_code={self.status_code}, message={self.message!r})"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    status: ResultStatus
    value: Optional[T] = None
    error: Optional[str] = None
    skipped: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        """Vrai si l'état a été modifié (succès complet ou partiel)"""
        return self.status in (ResultStatus.SUCCESS, ResultStatus.PARTIAL)

    @property
    def retryable(self) -> bool:
        return self.status == ResultStatus.RECOVERABLE_FAILURE

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T = None) -> "OperationResult[T]":
        return cls(ResultStatus.SUCCESS, value=value)

    @classmethod
    def partial(cls, value: T, skipped) -> "OperationResult[T]":
        return cls(ResultStatus.PARTIAL, value=value, skipped=tuple(skipped))

    @classmethod
    def failure(cls, error: str, recoverable: bool = False) -> "OperationResult[T]":
        status = ResultStatus.RECOVERABLE_FAILURE if recoverable else ResultStatus.FATAL_FAILURE
        return cls(status, error=error)

    @classmethod
    def from_error(cls, exc: ApiError) -> "OperationResult[T]":
        return cls.failure(exc.message, recoverable=exc.recoverable)
