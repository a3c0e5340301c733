"""
Tests du registre de tickets (TicketLedger).

Couvre :
- Le débit atomique (succès, solde insuffisant, montant invalide)
- L'intégration paresseuse des attributions mensuelles
- La concurrence : N débits simultanés sur un solde de k < N
- L'historique de consommation
"""

import threading
from datetime import date

import pytest
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from smartpolice.core import clock
from smartpolice.core.results import ErrorCode
from smartpolice.models import AuditLog, Client, Plan, TicketConsumptionLog
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.enums import ConsumptionType
from smartpolice.services.ledger import TicketLedger, validate_amount


def _count_logs(db: Session, client_id: int) -> int:
    return db.execute(
        select(func.count()).select_from(TicketConsumptionLog)
        .where(TicketConsumptionLog.client_id == client_id)
    ).scalar()


class TestDebit:
    """Tests du débit atomique."""

    def test_debit_decrements_balance_and_logs(self, db_session: Session, client_company: Client):
        """Un débit réussi décrémente le solde et ajoute une écriture."""
        ledger = TicketLedger(db_session)

        result = ledger.debit(
            client_company.id,
            ConsumptionType.NEW_CONSULTATION,
            "相談: 情報漏洩の初動対応",
            related_id="T-0001",
        )

        assert result
        entry = result.value
        assert entry.id is not None
        assert entry.ticket_cost == 1
        assert entry.consumption_type == ConsumptionType.NEW_CONSULTATION
        assert entry.related_id == "T-0001"
        assert ledger.get_client(client_company.id).remaining_tickets == 4
        assert _count_logs(db_session, client_company.id) == 1

    def test_debit_writes_audit_entry(self, db_session: Session, client_company: Client):
        """Le débit est tracé dans le journal d'audit."""
        TicketLedger(db_session).debit(
            client_company.id, ConsumptionType.SPECIALIST_INVITE, "専門家招待: 高橋 健 (弁護士)"
        )

        logs = db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.CONSUME_TICKET.value)
        ).scalars().all()

        assert len(logs) == 1
        assert logs[0].client_id == client_company.id
        assert "consumed 1 ticket(s) for 専門家招待" in logs[0].details

    def test_debit_multiple_tickets(self, db_session: Session, client_company: Client):
        """Un débit de plusieurs tickets est une seule écriture."""
        ledger = TicketLedger(db_session)

        result = ledger.debit(
            client_company.id, ConsumptionType.NEW_CONSULTATION, "相談: 大型案件", amount=3
        )

        assert result
        assert result.value.ticket_cost == 3
        assert ledger.get_client(client_company.id).remaining_tickets == 2

    def test_debit_insufficient_balance(self, db_session: Session, client_empty: Client):
        """Solde à 0 : échec INSUFFICIENT_TICKETS, aucune écriture."""
        ledger = TicketLedger(db_session)

        result = ledger.debit(client_empty.id, ConsumptionType.NEW_CONSULTATION, "相談: テスト")

        assert not result
        assert result.error == ErrorCode.INSUFFICIENT_TICKETS
        assert ledger.get_client(client_empty.id).remaining_tickets == 0
        assert _count_logs(db_session, client_empty.id) == 0

    def test_debit_more_than_balance_changes_nothing(self, db_session: Session, client_company: Client):
        """Un montant supérieur au solde est refusé en bloc."""
        ledger = TicketLedger(db_session)

        result = ledger.debit(
            client_company.id, ConsumptionType.NEW_CONSULTATION, "相談: テスト", amount=6
        )

        assert result.error == ErrorCode.INSUFFICIENT_TICKETS
        assert ledger.get_client(client_company.id).remaining_tickets == 5

    def test_debit_exhausts_balance(self, db_session: Session, client_company: Client):
        """Le solde peut atteindre 0 mais jamais passer en négatif."""
        ledger = TicketLedger(db_session)

        for _ in range(5):
            assert ledger.debit(client_company.id, ConsumptionType.NEW_CONSULTATION, "相談")

        result = ledger.debit(client_company.id, ConsumptionType.NEW_CONSULTATION, "相談")

        assert result.error == ErrorCode.INSUFFICIENT_TICKETS
        assert ledger.get_client(client_company.id).remaining_tickets == 0
        assert _count_logs(db_session, client_company.id) == 5

    def test_debit_unknown_client(self, db_session: Session):
        """Client inconnu : NOT_FOUND."""
        result = TicketLedger(db_session).debit(999, ConsumptionType.NEW_CONSULTATION, "相談")

        assert result.error == ErrorCode.NOT_FOUND
        assert result.message == "クライアントが見つかりません。"

    @pytest.mark.parametrize("amount", [0, -1, True, 1.5, "1"])
    def test_debit_invalid_amount(self, db_session: Session, client_company: Client, amount):
        """Un montant non entier ou non positif est une erreur de programmation."""
        with pytest.raises(ValueError):
            TicketLedger(db_session).debit(
                client_company.id, ConsumptionType.NEW_CONSULTATION, "相談", amount=amount
            )

    def test_validate_amount_accepts_positive_int(self):
        validate_amount(1)
        validate_amount(42)


class TestMonthlyGrants:
    """Tests de l'intégration des attributions mensuelles."""

    @pytest.fixture
    def old_client(self, db_session: Session, plan_standard: Plan) -> Client:
        client = Client(
            company_name="□□テクノロジーズ株式会社",
            plan_id=plan_standard.id,
            registration_date=date(2024, 1, 15),
            remaining_tickets=plan_standard.initial_tickets,
        )
        db_session.add(client)
        db_session.commit()
        return client

    def test_balance_accrues_due_grants(self, db_session: Session, old_client: Client):
        """Trois 1er du mois échus : +15 tickets."""
        result = TicketLedger(db_session).balance(old_client.id, as_of=date(2024, 4, 1))

        assert result
        assert result.value.remaining_tickets == 20
        assert result.value.grants_applied_through == date(2024, 4, 1)

    def test_accrual_is_idempotent(self, db_session: Session, old_client: Client):
        """Une attribution déjà intégrée ne l'est pas deux fois."""
        ledger = TicketLedger(db_session)

        ledger.balance(old_client.id, as_of=date(2024, 3, 10))
        ledger.balance(old_client.id, as_of=date(2024, 3, 31))
        result = ledger.balance(old_client.id, as_of=date(2024, 3, 31))

        assert result.value.remaining_tickets == 15

    def test_debit_uses_accrued_grants(self, db_session: Session, plan_standard: Plan):
        """Un solde à 0 est réalimenté par les attributions échues avant le débit."""
        client = Client(
            company_name="株式会社テスト",
            plan_id=plan_standard.id,
            registration_date=date(2024, 1, 15),
            remaining_tickets=0,
            grants_applied_through=None,
        )
        db_session.add(client)
        db_session.commit()

        result = TicketLedger(db_session).debit(client.id, ConsumptionType.NEW_CONSULTATION, "相談")

        assert result
        assert TicketLedger(db_session).get_client(client.id).remaining_tickets > 0

    def test_no_grant_before_first_of_next_month(self, db_session: Session, client_company: Client):
        """Inscrit aujourd'hui : aucune attribution mensuelle due."""
        result = TicketLedger(db_session).balance(client_company.id)

        assert result.value.remaining_tickets == 5
        assert result.value.grants_applied_through is None

    def test_balance_unknown_client(self, db_session: Session):
        assert TicketLedger(db_session).balance(12345).error == ErrorCode.NOT_FOUND


class TestConcurrentDebits:
    """Tests de concurrence sur le solde."""

    def test_parallel_debits_never_overdraw(self, file_session_factory):
        """10 débits simultanés sur un solde de 3 : exactement 3 réussissent."""
        with file_session_factory() as setup:
            plan = Plan(
                code="plan_concurrency",
                name="同時実行テスト",
                initial_tickets=3,
                monthly_tickets=0,
                permissions=[],
            )
            setup.add(plan)
            setup.flush()
            client = Client(
                company_name="同時実行株式会社",
                plan_id=plan.id,
                registration_date=clock.today(),
                remaining_tickets=3,
            )
            setup.add(client)
            setup.commit()
            client_id = client.id

        outcomes = []
        outcomes_lock = threading.Lock()
        barrier = threading.Barrier(10)

        def worker(index: int):
            with file_session_factory() as db:
                barrier.wait()
                result = TicketLedger(db).debit(
                    client_id, ConsumptionType.NEW_CONSULTATION, f"相談: 並行 {index}"
                )
                with outcomes_lock:
                    outcomes.append(result.error)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(None) == 3
        assert outcomes.count(ErrorCode.INSUFFICIENT_TICKETS) == 7

        with file_session_factory() as check:
            assert check.get(Client, client_id).remaining_tickets == 0
            assert _count_logs(check, client_id) == 3


class TestConsumptionHistory:
    """Tests de l'historique de consommation."""

    def test_history_newest_first(self, db_session: Session, client_company: Client):
        ledger = TicketLedger(db_session)
        ledger.debit(client_company.id, ConsumptionType.NEW_CONSULTATION, "相談: 一件目")
        ledger.debit(client_company.id, ConsumptionType.SPECIALIST_INVITE, "専門家招待: 二件目")

        items, total = ledger.consumption_history(client_id=client_company.id)

        assert total == 2
        assert items[0].description == "専門家招待: 二件目"
        assert items[1].description == "相談: 一件目"

    def test_history_search_by_type_label(self, db_session: Session, client_company: Client):
        """La recherche couvre le libellé japonais du motif."""
        ledger = TicketLedger(db_session)
        ledger.debit(client_company.id, ConsumptionType.NEW_CONSULTATION, "相談: A")
        ledger.debit(client_company.id, ConsumptionType.SPECIALIST_INVITE, "招待: B")

        items, total = ledger.consumption_history(search="専門家招待")

        assert total == 1
        assert items[0].consumption_type == ConsumptionType.SPECIALIST_INVITE

    def test_history_search_by_company(self, db_session: Session, client_company: Client, client_empty: Client):
        ledger = TicketLedger(db_session)
        ledger.debit(client_company.id, ConsumptionType.NEW_CONSULTATION, "相談: A")

        items, total = ledger.consumption_history(search="ホールディングス")

        assert total == 1
        assert items[0].client_id == client_company.id

    def test_history_filter_and_pagination(self, db_session: Session, client_company: Client):
        ledger = TicketLedger(db_session)
        for i in range(3):
            ledger.debit(client_company.id, ConsumptionType.NEW_CONSULTATION, f"相談: {i}")

        items, total = ledger.consumption_history(
            page=2, size=2, consumption_type=ConsumptionType.NEW_CONSULTATION
        )

        assert total == 3
        assert len(items) == 1
