"""
Tests des passerelles de consommation du module Consultations.

- Ouverture : 1 ticket, rien n'est créé si le solde est insuffisant
- Invitation : 1 ticket pour un avocat ou un expert-comptable
"""

import pytest
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from smartpolice.api.v1.consultations.schemas import ConsultationCreate
from smartpolice.api.v1.consultations.services import (
    ConsultationService,
    StaffNotFoundError,
)
from smartpolice.core.results import ErrorCode
from smartpolice.models import (
    AuditLog,
    Client,
    Consultation,
    ConsultationMessage,
    ConsultationParticipant,
    TicketConsumptionLog,
)
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.enums import (
    ConsultationStatus,
    ConsumptionType,
    MessageSenderKind,
    ParticipantRole,
)
from smartpolice.services.ledger import TicketLedger


def _request(client: Client, subject: str = "情報漏洩の初動対応について") -> ConsultationCreate:
    return ConsultationCreate(
        client_id=client.id,
        subject=subject,
        category="情報セキュリティ",
        body="社内PCからの情報流出が疑われます。初動対応を相談させてください。",
    )


def _balance(db: Session, client: Client) -> int:
    return TicketLedger(db).get_client(client.id).remaining_tickets


@pytest.fixture
def consultation(db_session: Session, client_company: Client, client_actor) -> Consultation:
    """Consultation ouverte (1 ticket consommé, solde 4)."""
    return ConsultationService(db_session).open_consultation(_request(client_company), actor=client_actor).value


class TestOpenConsultation:
    """Tests de l'ouverture d'une consultation."""

    def test_open_consumes_one_ticket(self, db_session: Session, client_company: Client, client_actor):
        result = ConsultationService(db_session).open_consultation(_request(client_company), actor=client_actor)

        assert result
        assert result.message == "相談を受け付けました。"
        consultation = result.value
        assert consultation.reference == f"T-{consultation.id:04d}"
        assert consultation.status == ConsultationStatus.RECEIVED
        assert consultation.expiration_date is not None
        assert _balance(db_session, client_company) == 4

    def test_open_links_consumption_log(self, db_session: Session, consultation: Consultation):
        log = db_session.execute(select(TicketConsumptionLog)).scalar_one()

        assert log.consumption_type == ConsumptionType.NEW_CONSULTATION
        assert log.description == "相談: 情報漏洩の初動対応について"
        assert log.related_id == consultation.reference

    def test_open_posts_first_client_message(self, db_session: Session, consultation: Consultation):
        messages = db_session.execute(
            select(ConsultationMessage).where(ConsultationMessage.consultation_id == consultation.id)
        ).scalars().all()

        assert len(messages) == 1
        assert messages[0].sender_kind == MessageSenderKind.CLIENT
        assert messages[0].sender_name == "山田 太郎"

    def test_open_is_audited(self, db_session: Session, consultation: Consultation):
        actions = db_session.execute(select(AuditLog.action).order_by(AuditLog.id)).scalars().all()

        assert actions == [AuditAction.CONSUME_TICKET.value, AuditAction.CREATE_TICKET.value]

    def test_open_with_empty_balance_creates_nothing(self, db_session: Session, client_empty: Client, other_client_actor):
        """Solde à 0 : échec et aucune consultation créée."""
        result = ConsultationService(db_session).open_consultation(_request(client_empty), actor=other_client_actor)

        assert not result
        assert result.error == ErrorCode.INSUFFICIENT_TICKETS
        assert db_session.execute(select(func.count()).select_from(Consultation)).scalar() == 0
        assert db_session.execute(select(func.count()).select_from(TicketConsumptionLog)).scalar() == 0

    def test_open_unknown_client(self, db_session: Session, client_company: Client):
        data = _request(client_company)
        data.client_id = 999

        result = ConsultationService(db_session).open_consultation(data)

        assert result.error == ErrorCode.NOT_FOUND


class TestInviteParticipant:
    """Tests de l'invitation de participants."""

    def test_invite_lawyer_consumes_ticket(self, db_session: Session, consultation: Consultation, staff_lawyer):
        result = ConsultationService(db_session).invite_participant(consultation.id, "staff", staff_lawyer.id)

        assert result
        assert result.value.role == ParticipantRole.LAWYER
        assert result.message == "高橋 健（弁護士）がチャットに参加しました。（チケット1枚消費）"
        assert _balance(db_session, consultation.client) == 3

        log = db_session.execute(
            select(TicketConsumptionLog)
            .where(TicketConsumptionLog.consumption_type == ConsumptionType.SPECIALIST_INVITE)
        ).scalar_one()
        assert log.related_id == consultation.reference
        assert log.description == "専門家招待: 高橋 健 (弁護士)"

    def test_invite_accountant_consumes_ticket(self, db_session: Session, consultation: Consultation, staff_accountant):
        result = ConsultationService(db_session).invite_participant(consultation.id, "staff", staff_accountant.id)

        assert result.value.role == ParticipantRole.ACCOUNTANT
        assert _balance(db_session, consultation.client) == 3

    def test_invite_consultant_is_free(self, db_session: Session, consultation: Consultation, staff_consultant):
        result = ConsultationService(db_session).invite_participant(consultation.id, "staff", staff_consultant.id)

        assert result
        assert result.message == "伊藤 美咲（担当者）がチャットに参加しました。"
        assert _balance(db_session, consultation.client) == 4

    def test_invite_client_user_is_free(self, db_session: Session, consultation: Consultation, client_user):
        result = ConsultationService(db_session).invite_participant(consultation.id, "client_user", client_user.id)

        assert result
        assert result.value.role == ParticipantRole.CLIENT_ADMIN
        assert _balance(db_session, consultation.client) == 4

    def test_invite_posts_system_message(self, db_session: Session, consultation: Consultation, staff_lawyer):
        ConsultationService(db_session).invite_participant(consultation.id, "staff", staff_lawyer.id)

        system_messages = db_session.execute(
            select(ConsultationMessage).where(ConsultationMessage.sender_kind == MessageSenderKind.SYSTEM)
        ).scalars().all()

        assert len(system_messages) == 1
        assert "チケット1枚消費" in system_messages[0].body

    def test_invite_twice_is_rejected(self, db_session: Session, consultation: Consultation, staff_lawyer):
        service = ConsultationService(db_session)
        service.invite_participant(consultation.id, "staff", staff_lawyer.id)

        result = service.invite_participant(consultation.id, "staff", staff_lawyer.id)

        assert result.error == ErrorCode.ALREADY_PARTICIPANT
        assert _balance(db_session, consultation.client) == 3

    def test_invite_lawyer_without_tickets(self, db_session: Session, consultation: Consultation, staff_lawyer):
        """Solde épuisé : ni participant ni message ajoutés."""
        TicketLedger(db_session).debit(
            consultation.client_id, ConsumptionType.NEW_CONSULTATION, "相談: 残り全部", amount=4
        )

        result = ConsultationService(db_session).invite_participant(consultation.id, "staff", staff_lawyer.id)

        assert result.error == ErrorCode.INSUFFICIENT_TICKETS
        assert result.message == "チケット残数が不足しているため、専門家を招待できません。"
        assert db_session.execute(select(func.count()).select_from(ConsultationParticipant)).scalar() == 0
        assert db_session.execute(
            select(func.count()).select_from(ConsultationMessage)
            .where(ConsultationMessage.sender_kind == MessageSenderKind.SYSTEM)
        ).scalar() == 0

    def test_invite_pending_staff(self, db_session: Session, consultation: Consultation, staff_pending):
        result = ConsultationService(db_session).invite_participant(consultation.id, "staff", staff_pending.id)

        assert result.error == ErrorCode.NOT_FOUND

    def test_invite_into_completed_consultation(self, db_session: Session, consultation: Consultation, staff_lawyer):
        service = ConsultationService(db_session)
        service.update_status(consultation.id, ConsultationStatus.COMPLETED)

        result = service.invite_participant(consultation.id, "staff", staff_lawyer.id)

        assert result.error == ErrorCode.CONSULTATION_CLOSED
        assert _balance(db_session, consultation.client) == 4


class TestConsultationLifecycle:
    """Tests du cycle de vie (statut, affectation, messages)."""

    def test_status_moves_forward(self, db_session: Session, consultation: Consultation):
        service = ConsultationService(db_session)

        assert service.update_status(consultation.id, ConsultationStatus.IN_PROGRESS)
        assert service.update_status(consultation.id, ConsultationStatus.COMPLETED)

    def test_status_cannot_go_back(self, db_session: Session, consultation: Consultation):
        service = ConsultationService(db_session)
        service.update_status(consultation.id, ConsultationStatus.COMPLETED)

        result = service.update_status(consultation.id, ConsultationStatus.IN_PROGRESS)

        assert result.error == ErrorCode.INVALID_STATUS_TRANSITION

    def test_assign_requires_approved_staff(self, db_session: Session, consultation: Consultation, staff_pending):
        with pytest.raises(StaffNotFoundError):
            ConsultationService(db_session).assign(consultation.id, staff_pending.id)

    def test_assign(self, db_session: Session, consultation: Consultation, staff_consultant):
        updated = ConsultationService(db_session).assign(consultation.id, staff_consultant.id)

        assert updated.assignee_id == staff_consultant.id

    def test_staff_message(self, db_session: Session, consultation: Consultation, staff_actor):
        message = ConsultationService(db_session).post_message(consultation.id, "確認します。", actor=staff_actor)

        assert message.sender_kind == MessageSenderKind.STAFF
        assert message.sender_name == "伊藤 美咲"
