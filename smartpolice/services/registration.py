"""
Inscriptions aux séminaires et aux événements.

Passerelle de consommation commune aux deux entités. Contrôles, dans l'ordre :
1. L'entité existe                    -> NOT_FOUND
2. Elle est ouverte aux inscriptions  -> NOT_ACCEPTING_APPLICATIONS
3. Il reste de la place               -> AT_CAPACITY
4. L'utilisateur n'est pas déjà inscrit -> DUPLICATE_APPLICATION
5. Lieu en ligne : débit d'un ticket  -> INSUFFICIENT_TICKETS

L'inscription n'est ajoutée que si tout réussit. La séquence complète
s'exécute sous le verrou de l'entité (pas de surréservation).
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Type

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.core.locks import LockScope, resource_locks
from smartpolice.core.results import ErrorCode, OperationResult
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.enums import ConsumptionType
from smartpolice.models.gatherings import Event, EventApplication, Seminar, SeminarApplication
from smartpolice.services.audit.recorder import AuditRecorder
from smartpolice.services.ledger.engine import TicketLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatheringKind:
    """Paramètres propres à un type d'entité (séminaire ou événement)."""
    entity: Type
    application: Type
    foreign_key: str
    scope: LockScope
    label: str
    reference_prefix: str
    apply_action: AuditAction
    cancel_action: AuditAction


SEMINAR = GatheringKind(
    entity=Seminar,
    application=SeminarApplication,
    foreign_key="seminar_id",
    scope=LockScope.SEMINAR,
    label="セミナー",
    reference_prefix="seminar",
    apply_action=AuditAction.APPLY_SEMINAR,
    cancel_action=AuditAction.CANCEL_SEMINAR_APPLICATION,
)

EVENT = GatheringKind(
    entity=Event,
    application=EventApplication,
    foreign_key="event_id",
    scope=LockScope.EVENT,
    label="イベント",
    reference_prefix="event",
    apply_action=AuditAction.APPLY_EVENT,
    cancel_action=AuditAction.CANCEL_EVENT_APPLICATION,
)


@dataclass(frozen=True)
class Applicant:
    """Personne qui s'inscrit, et client débité si l'entité est en ligne."""
    user_id: str
    user_name: str
    company_name: Optional[str] = None
    client_id: Optional[int] = None


class RegistrationGateway:
    """
    Inscription / désinscription pour un type d'entité.

    Usage:
        gateway = RegistrationGateway(db, SEMINAR)
        result = gateway.apply(seminar_id, Applicant("u-1", "山田", client_id=1))
    """

    def __init__(self, db: Session, kind: GatheringKind, audit: Optional[AuditRecorder] = None):
        self.db = db
        self.kind = kind
        self.audit = audit or AuditRecorder(db)
        self.ledger = TicketLedger(db, audit=self.audit)

    # =========================================================================
    # LECTURE
    # =========================================================================

    def get(self, entity_id: int):
        return self.db.get(self.kind.entity, entity_id, populate_existing=True)

    def _fk_column(self):
        return getattr(self.kind.application, self.kind.foreign_key)

    def count_applications(self, entity_id: int) -> int:
        return self.db.execute(
            select(func.count()).select_from(self.kind.application)
            .where(self._fk_column() == entity_id)
        ).scalar() or 0

    def find_application(self, entity_id: int, user_id: str):
        return self.db.execute(
            select(self.kind.application).where(
                self._fk_column() == entity_id,
                self.kind.application.user_id == user_id,
            )
        ).scalar_one_or_none()

    def list_applications(self, entity_id: int) -> List:
        return list(self.db.execute(
            select(self.kind.application)
            .where(self._fk_column() == entity_id)
            .order_by(self.kind.application.id)
        ).scalars().all())

    # =========================================================================
    # INSCRIPTION
    # =========================================================================

    def apply(
            self,
            entity_id: int,
            applicant: Applicant,
            actor: Actor = SYSTEM_ACTOR,
    ) -> OperationResult:
        """
        Inscrit un utilisateur.

        Returns:
            OperationResult portant l'inscription créée en cas de succès
        """
        label = self.kind.label
        debit_entry = None

        with resource_locks.hold(self.kind.scope, entity_id):
            entity = self.get(entity_id)
            if entity is None:
                return OperationResult.failure(ErrorCode.NOT_FOUND, f"{label}が見つかりません。")

            if not entity.is_open:
                return OperationResult.failure(
                    ErrorCode.NOT_ACCEPTING_APPLICATIONS,
                    f"この{label}は現在募集していません。",
                )

            if self.count_applications(entity_id) >= entity.capacity:
                return OperationResult.failure(ErrorCode.AT_CAPACITY, f"この{label}は満員です。")

            if self.find_application(entity_id, applicant.user_id) is not None:
                return OperationResult.failure(
                    ErrorCode.DUPLICATE_APPLICATION,
                    f"すでにこの{label}に申し込み済みです。",
                )

            online = entity.is_online
            if online:
                if applicant.client_id is None:
                    return OperationResult.failure(
                        ErrorCode.NOT_FOUND, "クライアントが見つかりません。"
                    )
                with self.ledger.hold(applicant.client_id):
                    debit = self.ledger.apply_debit(
                        applicant.client_id,
                        ConsumptionType.ONLINE_EVENT_PARTICIPATION,
                        f"{label}参加: {entity.title}",
                        related_id=f"{self.kind.reference_prefix}-{entity.id}",
                    )
                    if not debit:
                        if debit.error == ErrorCode.INSUFFICIENT_TICKETS:
                            return OperationResult.failure(
                                ErrorCode.INSUFFICIENT_TICKETS,
                                "チケットが不足しているため、お申し込みできません。",
                            )
                        return debit
                    debit_entry = debit.value
                    application = self._append(entity_id, applicant, ticket_consumed=True)
                    self.db.commit()
            else:
                application = self._append(entity_id, applicant, ticket_consumed=False)
                self.db.commit()

        if debit_entry is not None:
            self.ledger.record_debit(debit_entry, actor)

        logger.info(
            f"📝 {self.kind.reference_prefix} #{entity_id}: inscription de {applicant.user_id}"
            f"{' (1 ticket)' if online else ''}"
        )
        self.audit.record_for(
            actor,
            self.kind.apply_action,
            f"{applicant.user_name} applied to {self.kind.reference_prefix} "
            f"#{entity_id} ({entity.title})",
            client_id=applicant.client_id,
        )

        if online:
            message = f"{label}に申し込みました。（チケットを1枚消費しました）"
        else:
            message = f"{label}に申し込みました。"
        return OperationResult.success(application, message=message)

    def _append(self, entity_id: int, applicant: Applicant, ticket_consumed: bool):
        application = self.kind.application(
            user_id=applicant.user_id,
            user_name=applicant.user_name,
            company_name=applicant.company_name,
            client_id=applicant.client_id,
            ticket_consumed=ticket_consumed,
            **{self.kind.foreign_key: entity_id},
        )
        self.db.add(application)
        self.db.flush()
        return application

    def cancel(self, entity_id: int, user_id: str, actor: Actor = SYSTEM_ACTOR) -> OperationResult:
        """
        Annule une inscription.

        Le ticket éventuellement consommé n'est pas restitué.
        """
        with resource_locks.hold(self.kind.scope, entity_id):
            entity = self.get(entity_id)
            if entity is None:
                return OperationResult.failure(
                    ErrorCode.NOT_FOUND, f"{self.kind.label}が見つかりません。"
                )
            application = self.find_application(entity_id, user_id)
            if application is None:
                return OperationResult.failure(ErrorCode.NOT_FOUND, "申し込みが見つかりません。")
            client_id = application.client_id
            self.db.delete(application)
            self.db.commit()

        self.audit.record_for(
            actor,
            self.kind.cancel_action,
            f"Application of {user_id} to {self.kind.reference_prefix} #{entity_id} cancelled",
            client_id=client_id,
        )
        return OperationResult.success(message="申し込みをキャンセルしました。")
