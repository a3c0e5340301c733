"""
Tests de la passerelle d'inscription (séminaires et événements).
"""

import threading

import pytest
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from smartpolice.core import clock
from smartpolice.core.results import ErrorCode
from smartpolice.models import (
    AuditLog,
    Client,
    Event,
    Plan,
    Seminar,
    SeminarApplication,
    TicketConsumptionLog,
)
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.enums import ConsumptionType, GatheringStatus
from smartpolice.services.ledger import TicketLedger
from smartpolice.services.registration import EVENT, SEMINAR, Applicant, RegistrationGateway


def _applicant(client: Client, user_id: str = "yamada@example.co.jp", name: str = "山田 太郎") -> Applicant:
    return Applicant(user_id=user_id, user_name=name, company_name=client.company_name, client_id=client.id)


def _balance(db: Session, client: Client) -> int:
    return TicketLedger(db).get_client(client.id).remaining_tickets


class TestSeminarRegistration:
    """Tests d'inscription aux séminaires."""

    def test_online_seminar_consumes_ticket(self, db_session: Session, seminar_online: Seminar, client_company: Client):
        result = RegistrationGateway(db_session, SEMINAR).apply(seminar_online.id, _applicant(client_company))

        assert result
        assert result.value.ticket_consumed is True
        assert result.message == "セミナーに申し込みました。（チケットを1枚消費しました）"
        assert _balance(db_session, client_company) == 4

        log = db_session.execute(select(TicketConsumptionLog)).scalar_one()
        assert log.consumption_type == ConsumptionType.ONLINE_EVENT_PARTICIPATION
        assert log.description == "セミナー参加: リスク管理基礎講座"
        assert log.related_id == f"seminar-{seminar_online.id}"

    def test_venue_seminar_is_free(self, db_session: Session, seminar_venue: Seminar, client_company: Client):
        result = RegistrationGateway(db_session, SEMINAR).apply(seminar_venue.id, _applicant(client_company))

        assert result
        assert result.value.ticket_consumed is False
        assert result.message == "セミナーに申し込みました。"
        assert _balance(db_session, client_company) == 5

    def test_duplicate_application(self, db_session: Session, seminar_venue: Seminar, client_company: Client):
        gateway = RegistrationGateway(db_session, SEMINAR)
        gateway.apply(seminar_venue.id, _applicant(client_company))

        result = gateway.apply(seminar_venue.id, _applicant(client_company))

        assert result.error == ErrorCode.DUPLICATE_APPLICATION
        assert gateway.count_applications(seminar_venue.id) == 1

    def test_full_seminar(self, db_session: Session, seminar_online: Seminar, client_company: Client):
        """Capacité 2 : le troisième inscrit est refusé sans débit."""
        gateway = RegistrationGateway(db_session, SEMINAR)
        gateway.apply(seminar_online.id, _applicant(client_company, "u-1", "一郎"))
        gateway.apply(seminar_online.id, _applicant(client_company, "u-2", "二郎"))

        result = gateway.apply(seminar_online.id, _applicant(client_company, "u-3", "三郎"))

        assert result.error == ErrorCode.AT_CAPACITY
        assert result.message == "このセミナーは満員です。"
        assert _balance(db_session, client_company) == 3

    def test_closed_seminar(self, db_session: Session, seminar_closed: Seminar, client_company: Client):
        result = RegistrationGateway(db_session, SEMINAR).apply(seminar_closed.id, _applicant(client_company))

        assert result.error == ErrorCode.NOT_ACCEPTING_APPLICATIONS

    def test_unknown_seminar(self, db_session: Session, client_company: Client):
        result = RegistrationGateway(db_session, SEMINAR).apply(999, _applicant(client_company))

        assert result.error == ErrorCode.NOT_FOUND
        assert result.message == "セミナーが見つかりません。"

    def test_online_seminar_without_tickets(self, db_session: Session, seminar_online: Seminar, client_empty: Client):
        """Solde à 0 : inscription refusée, aucune inscription ajoutée."""
        gateway = RegistrationGateway(db_session, SEMINAR)

        result = gateway.apply(seminar_online.id, _applicant(client_empty, "sato@example.co.jp", "佐藤 花子"))

        assert result.error == ErrorCode.INSUFFICIENT_TICKETS
        assert result.message == "チケットが不足しているため、お申し込みできません。"
        assert gateway.count_applications(seminar_online.id) == 0

    def test_online_seminar_without_client(self, db_session: Session, seminar_online: Seminar):
        applicant = Applicant(user_id="guest", user_name="ゲスト")

        result = RegistrationGateway(db_session, SEMINAR).apply(seminar_online.id, applicant)

        assert result.error == ErrorCode.NOT_FOUND

    def test_apply_is_audited(self, db_session: Session, seminar_online: Seminar, client_company: Client):
        RegistrationGateway(db_session, SEMINAR).apply(seminar_online.id, _applicant(client_company))

        actions = db_session.execute(select(AuditLog.action).order_by(AuditLog.id)).scalars().all()

        assert actions == [AuditAction.CONSUME_TICKET.value, AuditAction.APPLY_SEMINAR.value]


class TestEventRegistration:
    """Tests d'inscription aux événements (même passerelle)."""

    def test_online_event_consumes_ticket(self, db_session: Session, event_online: Event, client_company: Client):
        result = RegistrationGateway(db_session, EVENT).apply(event_online.id, _applicant(client_company))

        assert result
        assert result.message == "イベントに申し込みました。（チケットを1枚消費しました）"
        log = db_session.execute(select(TicketConsumptionLog)).scalar_one()
        assert log.description == "イベント参加: SNS炎上対策 基礎勉強会"
        assert log.related_id == f"event-{event_online.id}"

    def test_venue_event_is_free(self, db_session: Session, client_company: Client):
        event = Event(
            title="【会員限定】セキュリティ担当者交流会",
            location="スマートポリス本社ラウンジ",
            capacity=30,
            status=GatheringStatus.OPEN,
        )
        db_session.add(event)
        db_session.commit()

        result = RegistrationGateway(db_session, EVENT).apply(event.id, _applicant(client_company))

        assert result.value.ticket_consumed is False
        assert _balance(db_session, client_company) == 5

    def test_english_online_label(self, db_session: Session, client_company: Client):
        event = Event(title="Webinar", location="Online", capacity=10, status=GatheringStatus.OPEN)
        db_session.add(event)
        db_session.commit()

        result = RegistrationGateway(db_session, EVENT).apply(event.id, _applicant(client_company))

        assert result.value.ticket_consumed is True


class TestCancellation:
    """Tests d'annulation d'inscription."""

    def test_cancel_keeps_ticket_consumed(self, db_session: Session, seminar_online: Seminar, client_company: Client):
        """L'annulation libère la place mais ne rembourse pas le ticket."""
        gateway = RegistrationGateway(db_session, SEMINAR)
        gateway.apply(seminar_online.id, _applicant(client_company))

        result = gateway.cancel(seminar_online.id, "yamada@example.co.jp")

        assert result
        assert result.message == "申し込みをキャンセルしました。"
        assert gateway.count_applications(seminar_online.id) == 0
        assert _balance(db_session, client_company) == 4

    def test_cancel_unknown_application(self, db_session: Session, seminar_online: Seminar):
        result = RegistrationGateway(db_session, SEMINAR).cancel(seminar_online.id, "nobody")

        assert result.error == ErrorCode.NOT_FOUND
        assert result.message == "申し込みが見つかりません。"


class TestConcurrentRegistration:
    """Tests de concurrence sur la capacité."""

    def test_parallel_applications_respect_capacity(self, file_session_factory):
        """8 inscriptions simultanées sur 3 places : exactement 3 réussissent."""
        with file_session_factory() as setup:
            plan = Plan(code="plan_parallel", name="並行", initial_tickets=10, monthly_tickets=0, permissions=[])
            setup.add(plan)
            setup.flush()
            client = Client(
                company_name="並行株式会社",
                plan_id=plan.id,
                registration_date=clock.today(),
                remaining_tickets=10,
            )
            seminar = Seminar(title="並行セミナー", location="オンライン", capacity=3, status=GatheringStatus.OPEN)
            setup.add_all([client, seminar])
            setup.commit()
            client_id, seminar_id = client.id, seminar.id

        errors = []
        errors_lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker(index: int):
            with file_session_factory() as db:
                barrier.wait()
                result = RegistrationGateway(db, SEMINAR).apply(
                    seminar_id,
                    Applicant(user_id=f"user-{index}", user_name=f"利用者{index}", client_id=client_id),
                )
                with errors_lock:
                    errors.append(result.error)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors.count(None) == 3
        assert errors.count(ErrorCode.AT_CAPACITY) == 5

        with file_session_factory() as check:
            count = check.execute(
                select(func.count()).select_from(SeminarApplication)
                .where(SeminarApplication.seminar_id == seminar_id)
            ).scalar()
            assert count == 3
            assert check.get(Client, client_id).remaining_tickets == 7
