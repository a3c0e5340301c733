"""
Tests de l'enregistreur d'audit.
"""

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from smartpolice.core.auth import SYSTEM_ACTOR
from smartpolice.models import TicketConsumptionLog
from smartpolice.models.audit.audit_log import AuditAction, AuditLog
from smartpolice.models.enums import ConsumptionType
from smartpolice.services.audit.recorder import AuditRecorder
from smartpolice.services.ledger import TicketLedger

RECORDER_LOGGER = "smartpolice.services.audit.recorder"


class TestAuditRecorder:
    """Tests de l'écriture et de la recherche."""

    def test_record_persists_entry(self, db_session: Session, admin_actor):
        entry = AuditRecorder(db_session).record_for(
            admin_actor, AuditAction.SAVE_PLAN, "Plan plan_standard updated"
        )

        assert entry is not None
        assert entry.id is not None
        assert entry.actor_id == "admin@smartpolice.example"
        assert entry.actor_name == "管理者"
        assert entry.action == "SAVE_PLAN"
        assert entry.created_at is not None

    def test_record_accepts_free_form_action(self, db_session: Session):
        entry = AuditRecorder(db_session).record(
            "system", "システム", "LOGIN", "Login from 203.0.113.7"
        )

        assert entry.action == "LOGIN"

    def test_search_newest_first(self, db_session: Session, admin_actor):
        recorder = AuditRecorder(db_session)
        recorder.record_for(admin_actor, AuditAction.SAVE_PLAN, "premier")
        recorder.record_for(admin_actor, AuditAction.DELETE_PLAN, "second")

        items, total = recorder.search()

        assert total == 2
        assert [i.details for i in items] == ["second", "premier"]

    def test_search_filters(self, db_session: Session, admin_actor, client_company):
        recorder = AuditRecorder(db_session)
        recorder.record_for(admin_actor, AuditAction.REGISTER_CLIENT, "Client registered", client_id=client_company.id)
        recorder.record_for(SYSTEM_ACTOR, AuditAction.CONSUME_TICKET, "consumed 1 ticket(s)", client_id=client_company.id)
        recorder.record_for(admin_actor, AuditAction.SAVE_PLAN, "Plan created")

        _, by_client = recorder.search(client_id=client_company.id)
        _, by_action = recorder.search(action=AuditAction.SAVE_PLAN.value)
        _, by_text = recorder.search(search="システム")

        assert by_client == 2
        assert by_action == 1
        assert by_text == 1

    def test_search_by_date_range(self, db_session: Session, admin_actor):
        recorder = AuditRecorder(db_session)
        recorder.record_for(admin_actor, AuditAction.SAVE_PLAN, "maintenant")
        now = datetime.now(timezone.utc)

        _, future = recorder.search(date_from=now + timedelta(days=1))
        _, window = recorder.search(date_from=now - timedelta(days=1), date_to=now + timedelta(days=1))

        assert future == 0
        assert window == 1

    def test_search_pagination(self, db_session: Session, admin_actor):
        recorder = AuditRecorder(db_session)
        for i in range(5):
            recorder.record_for(admin_actor, AuditAction.SAVE_PLAN, f"entrée {i}")

        items, total = recorder.search(page=2, size=2)

        assert total == 5
        assert len(items) == 2


class TestAuditWriteFailure:
    """Tests du caractère "best effort" de l'écriture d'audit."""

    @pytest.fixture
    def failing_session(self) -> MagicMock:
        """Session dont la validation échoue systématiquement."""
        session = MagicMock(spec=Session)
        session.commit.side_effect = OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))
        return session

    def test_commit_failure_returns_none(self, failing_session, caplog):
        """Un échec de validation est consigné et renvoie None."""
        with caplog.at_level(logging.ERROR, logger=RECORDER_LOGGER):
            entry = AuditRecorder(failing_session).record_for(
                SYSTEM_ACTOR, AuditAction.SAVE_PLAN, "Plan plan_standard updated"
            )

        assert entry is None
        failing_session.rollback.assert_called_once()
        errors = [r for r in caplog.records if r.name == RECORDER_LOGGER]
        assert len(errors) == 1
        assert errors[0].exc_info is not None
        assert "action=SAVE_PLAN" in errors[0].getMessage()

    def test_entry_construction_failure_returns_none(self, db_session: Session, monkeypatch, caplog):
        """Une erreur hors SQLAlchemy (construction de l'entrée) est aussi absorbée."""
        def broken_create_log(*args, **kwargs):
            raise ValueError("details invalides")

        monkeypatch.setattr(AuditLog, "create_log", broken_create_log)

        with caplog.at_level(logging.ERROR, logger=RECORDER_LOGGER):
            entry = AuditRecorder(db_session).record(
                "system", "システム", AuditAction.DELETE_PLAN, "Plan plan_light deleted"
            )

        assert entry is None
        assert any(r.name == RECORDER_LOGGER and r.exc_info for r in caplog.records)

    def test_debit_survives_audit_failure(self, db_session: Session, client_company, failing_session, caplog):
        """Le débit reste réussi et persistant même si la trace d'audit échoue."""
        ledger = TicketLedger(db_session, audit=AuditRecorder(failing_session))

        with caplog.at_level(logging.ERROR, logger=RECORDER_LOGGER):
            result = ledger.debit(
                client_company.id, ConsumptionType.NEW_CONSULTATION, "相談: 監査書き込み失敗"
            )

        assert result
        assert ledger.get_client(client_company.id).remaining_tickets == 4
        consumed = db_session.execute(
            select(func.count()).select_from(TicketConsumptionLog)
            .where(TicketConsumptionLog.client_id == client_company.id)
        ).scalar()
        assert consumed == 1
        audited = db_session.execute(select(func.count()).select_from(AuditLog)).scalar()
        assert audited == 0
        errors = [r for r in caplog.records if r.name == RECORDER_LOGGER]
        assert len(errors) == 1
        assert errors[0].exc_info is not None
