"""
Services métier pour le module Consultations.

Contient :
- L'ouverture d'une consultation (passerelle de consommation : 1 ticket)
- L'invitation d'un participant (1 ticket pour un spécialiste)
- Le cycle de vie du fil (statut, affectation, messages)

Règle commune aux passerelles : le débit est tenté en premier, l'objet
dépendant n'est créé que s'il réussit, dans la même transaction.
"""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from smartpolice.api.v1.consultations.schemas import ConsultationCreate
from smartpolice.core import clock
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.core.config import settings
from smartpolice.core.results import ErrorCode, OperationResult
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.clients.client_user import ClientUser
from smartpolice.models.consultations.consultation import Consultation
from smartpolice.models.consultations.message import ConsultationMessage
from smartpolice.models.consultations.participant import ConsultationParticipant
from smartpolice.models.enums import (
    ConsultationStatus,
    ConsumptionType,
    MessageSenderKind,
    ParticipantRole,
)
from smartpolice.models.staff.staff import Staff
from smartpolice.services.audit.recorder import AuditRecorder
from smartpolice.services.ledger import TicketLedger

logger = logging.getLogger(__name__)

CONSULTATION_NOT_FOUND_MESSAGE = "相談が見つかりません。"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ConsultationNotFoundError(Exception):
    """Consultation non trouvée."""
    pass


class StaffNotFoundError(Exception):
    """Membre du staff non trouvé ou non validé."""
    pass


# =============================================================================
# SERVICE
# =============================================================================

class ConsultationService:
    """Service de gestion des consultations."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditRecorder(db)
        self.ledger = TicketLedger(db, audit=self.audit)

    # =========================================================================
    # LECTURE
    # =========================================================================

    def get_all(
            self,
            page: int = 1,
            size: int = 20,
            client_id: Optional[int] = None,
            status: Optional[ConsultationStatus] = None,
    ) -> Tuple[List[Consultation], int]:
        """Liste les consultations, plus récentes d'abord."""
        query = select(Consultation)

        if client_id is not None:
            query = query.where(Consultation.client_id == client_id)

        if status is not None:
            query = query.where(Consultation.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        query = query.order_by(Consultation.id.desc()).offset((page - 1) * size).limit(size)
        items = self.db.execute(query).scalars().all()
        return list(items), total

    def get_by_id(self, consultation_id: int) -> Consultation:
        consultation = self.db.execute(
            select(Consultation)
            .options(
                selectinload(Consultation.participants),
                selectinload(Consultation.messages),
            )
            .where(Consultation.id == consultation_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not consultation:
            raise ConsultationNotFoundError(f"Consultation {consultation_id} non trouvée")
        return consultation

    # =========================================================================
    # OUVERTURE (1 TICKET)
    # =========================================================================

    def open_consultation(
            self,
            data: ConsultationCreate,
            actor: Actor = SYSTEM_ACTOR,
    ) -> OperationResult[Consultation]:
        """
        Ouvre une consultation en débitant 1 ticket.

        Échecs : NOT_FOUND (client inconnu), INSUFFICIENT_TICKETS (aucune
        consultation créée).
        """
        with self.ledger.hold(data.client_id):
            debit = self.ledger.apply_debit(
                data.client_id,
                ConsumptionType.NEW_CONSULTATION,
                f"相談: {data.subject}",
            )
            if not debit:
                logger.info(f"⛔ Consultation refusée pour le client #{data.client_id}: {debit.error.value}")
                return debit

            consultation = Consultation(
                client_id=data.client_id,
                subject=data.subject,
                category=data.category,
                priority=data.priority,
                excerpt=data.body[:200],
                status=ConsultationStatus.RECEIVED,
                expiration_date=clock.today() + timedelta(days=settings.CONSULTATION_EXPIRATION_DAYS),
            )
            self.db.add(consultation)
            self.db.flush()

            consultation.reference = Consultation.format_reference(consultation.id)
            debit.value.related_id = consultation.reference

            self.db.add(ConsultationMessage(
                consultation_id=consultation.id,
                sender_kind=MessageSenderKind.CLIENT,
                sender_name=actor.name,
                body=data.body,
                posted_at=clock.utcnow(),
            ))
            self.db.commit()

        self.ledger.record_debit(debit.value, actor)
        logger.info(f"📨 Consultation {consultation.reference} ouverte pour le client #{data.client_id}")
        self.audit.record_for(
            actor,
            AuditAction.CREATE_TICKET,
            f"Consultation {consultation.reference} created: {consultation.subject}",
            client_id=consultation.client_id,
        )
        return OperationResult.success(consultation, message="相談を受け付けました。")

    # =========================================================================
    # INVITATION (1 TICKET POUR UN SPÉCIALISTE)
    # =========================================================================

    def _find_participant(self, consultation_id: int, participant_type: str, participant_id: int):
        column = (
            ConsultationParticipant.staff_id
            if participant_type == "staff"
            else ConsultationParticipant.client_user_id
        )
        return self.db.execute(
            select(ConsultationParticipant).where(
                ConsultationParticipant.consultation_id == consultation_id,
                column == participant_id,
            )
        ).scalar_one_or_none()

    def invite_participant(
            self,
            consultation_id: int,
            participant_type: str,
            participant_id: int,
            actor: Actor = SYSTEM_ACTOR,
    ) -> OperationResult[ConsultationParticipant]:
        """
        Ajoute un participant au fil.

        Un avocat ou un expert-comptable coûte 1 ticket au client ; si le
        débit échoue, personne n'est ajouté et aucun message n'est posté.
        """
        consultation = self.db.get(Consultation, consultation_id)
        if consultation is None:
            return OperationResult.failure(ErrorCode.NOT_FOUND, CONSULTATION_NOT_FOUND_MESSAGE)

        if consultation.is_closed:
            return OperationResult.failure(ErrorCode.CONSULTATION_CLOSED)

        if participant_type == "staff":
            staff = self.db.get(Staff, participant_id)
            if staff is None or not staff.is_approved:
                return OperationResult.failure(ErrorCode.NOT_FOUND, "スタッフが見つかりません。")
            name, role = staff.name, staff.participant_role
            identity = {"staff_id": staff.id}
        else:
            user = self.db.get(ClientUser, participant_id)
            if user is None or user.client_id != consultation.client_id:
                return OperationResult.failure(ErrorCode.NOT_FOUND, "ユーザーが見つかりません。")
            name, role = user.name, ParticipantRole.from_client_user_role(user.role)
            identity = {"client_user_id": user.id}

        debit_entry = None
        with self.ledger.hold(consultation.client_id):
            # Les invitations d'un même fil sont sérialisées par le verrou du client
            if self._find_participant(consultation_id, participant_type, participant_id):
                return OperationResult.failure(ErrorCode.ALREADY_PARTICIPANT)

            if role.is_billable:
                debit = self.ledger.apply_debit(
                    consultation.client_id,
                    ConsumptionType.SPECIALIST_INVITE,
                    f"専門家招待: {name} ({role.label})",
                    related_id=consultation.reference,
                )
                if not debit:
                    if debit.error == ErrorCode.INSUFFICIENT_TICKETS:
                        return OperationResult.failure(
                            ErrorCode.INSUFFICIENT_TICKETS,
                            "チケット残数が不足しているため、専門家を招待できません。",
                        )
                    return debit
                debit_entry = debit.value

            participant = ConsultationParticipant(
                consultation_id=consultation.id,
                display_name=name,
                role=role,
                joined_at=clock.utcnow(),
                **identity,
            )
            self.db.add(participant)

            notice = f"{name}（{role.label}）がチャットに参加しました。"
            if debit_entry is not None:
                notice += "（チケット1枚消費）"
            self.db.add(ConsultationMessage(
                consultation_id=consultation.id,
                sender_kind=MessageSenderKind.SYSTEM,
                sender_name="システム",
                body=notice,
                posted_at=clock.utcnow(),
            ))
            self.db.commit()

        if debit_entry is not None:
            self.ledger.record_debit(debit_entry, actor)
        self.audit.record_for(
            actor,
            AuditAction.INVITE_PARTICIPANT,
            f"{name} ({role.value}) invited to {consultation.reference}",
            client_id=consultation.client_id,
        )
        return OperationResult.success(participant, message=notice)

    # =========================================================================
    # CYCLE DE VIE
    # =========================================================================

    def update_status(
            self,
            consultation_id: int,
            new_status: ConsultationStatus,
            actor: Actor = SYSTEM_ACTOR,
    ) -> OperationResult[Consultation]:
        """Fait avancer le statut ; aucun retour arrière ni réouverture."""
        consultation = self.db.get(Consultation, consultation_id)
        if consultation is None:
            return OperationResult.failure(ErrorCode.NOT_FOUND, CONSULTATION_NOT_FOUND_MESSAGE)

        old_status = consultation.status
        if not old_status.can_transition_to(new_status):
            return OperationResult.failure(ErrorCode.INVALID_STATUS_TRANSITION)

        consultation.status = new_status
        self.db.commit()

        self.audit.record_for(
            actor,
            AuditAction.UPDATE_TICKET,
            f"Consultation {consultation.reference} status {old_status.value} -> {new_status.value}",
            client_id=consultation.client_id,
        )
        return OperationResult.success(consultation)

    def assign(self, consultation_id: int, staff_id: int, actor: Actor = SYSTEM_ACTOR) -> Consultation:
        """Affecte un membre du staff validé."""
        consultation = self.db.get(Consultation, consultation_id)
        if not consultation:
            raise ConsultationNotFoundError(f"Consultation {consultation_id} non trouvée")

        staff = self.db.get(Staff, staff_id)
        if not staff or not staff.is_approved:
            raise StaffNotFoundError(f"Staff {staff_id} non trouvé ou non validé")

        consultation.assignee_id = staff.id
        self.db.commit()

        self.audit.record_for(
            actor,
            AuditAction.UPDATE_TICKET,
            f"Consultation {consultation.reference} assigned to {staff.name}",
            client_id=consultation.client_id,
        )
        return consultation

    def post_message(
            self,
            consultation_id: int,
            body: str,
            actor: Actor = SYSTEM_ACTOR,
    ) -> ConsultationMessage:
        """Ajoute un message au fil."""
        consultation = self.db.get(Consultation, consultation_id)
        if not consultation:
            raise ConsultationNotFoundError(f"Consultation {consultation_id} non trouvée")

        message = ConsultationMessage(
            consultation_id=consultation.id,
            sender_kind=MessageSenderKind.CLIENT if actor.is_client_side else MessageSenderKind.STAFF,
            sender_name=actor.name,
            body=body,
            posted_at=clock.utcnow(),
        )
        self.db.add(message)
        self.db.commit()
        return message
