"""
Résultats d'opérations métier.

Les échecs attendus (solde insuffisant, séminaire complet, doublon...) ne
sont pas des exceptions : les services renvoient un OperationResult que
l'appelant inspecte pour choisir le message à présenter.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """
    Taxonomie des échecs métier.

    Chaque code porte un message utilisateur distinct et un statut HTTP
    par défaut utilisé par la couche API.
    """
    NOT_FOUND = "NOT_FOUND"
    AT_CAPACITY = "AT_CAPACITY"
    DUPLICATE_APPLICATION = "DUPLICATE_APPLICATION"
    INSUFFICIENT_TICKETS = "INSUFFICIENT_TICKETS"
    PLAN_IN_USE = "PLAN_IN_USE"
    NOT_ACCEPTING_APPLICATIONS = "NOT_ACCEPTING_APPLICATIONS"
    ALREADY_PARTICIPANT = "ALREADY_PARTICIPANT"
    CONSULTATION_CLOSED = "CONSULTATION_CLOSED"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    NOTHING_TO_PAY = "NOTHING_TO_PAY"
    BELOW_MINIMUM_PAYOUT = "BELOW_MINIMUM_PAYOUT"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self, 400)


_DEFAULT_MESSAGES = {
    ErrorCode.NOT_FOUND: "対象が見つかりません。",
    ErrorCode.AT_CAPACITY: "定員に達しているため、お申し込みできません。",
    ErrorCode.DUPLICATE_APPLICATION: "すでに申し込み済みです。",
    ErrorCode.INSUFFICIENT_TICKETS: "チケット残数がありません。",
    ErrorCode.PLAN_IN_USE: "このプランを利用中のクライアントが存在するため、削除できません。",
    ErrorCode.NOT_ACCEPTING_APPLICATIONS: "現在募集していません。",
    ErrorCode.ALREADY_PARTICIPANT: "すでにチャットに参加しています。",
    ErrorCode.CONSULTATION_CLOSED: "完了した相談には参加者を追加できません。",
    ErrorCode.INVALID_STATUS_TRANSITION: "このステータスには変更できません。",
    ErrorCode.NOTHING_TO_PAY: "支払い対象の紹介がありません。",
    ErrorCode.BELOW_MINIMUM_PAYOUT: "支払い可能な最低額に達していません。",
    ErrorCode.ALREADY_PROCESSED: "すでに処理済みです。",
}

_HTTP_STATUS = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_TICKETS: 402,
    ErrorCode.AT_CAPACITY: 409,
    ErrorCode.DUPLICATE_APPLICATION: 409,
    ErrorCode.PLAN_IN_USE: 409,
    ErrorCode.ALREADY_PARTICIPANT: 409,
    ErrorCode.ALREADY_PROCESSED: 409,
}


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Résultat d'une opération métier : succès avec valeur, ou échec typé.

    Example:
        result = gateway.open_consultation(...)
        if not result:
            print(result.error, result.message)
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[ErrorCode] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = None, message: str = "") -> "OperationResult":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, error: ErrorCode, message: Optional[str] = None) -> "OperationResult":
        return cls(ok=False, error=error, message=message or error.default_message)
