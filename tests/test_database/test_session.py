"""
Tests de la configuration du store (build_engine).

Couvre :
- L'isolation des transactions entre sessions sur le store par défaut
- L'indépendance de deux engines `sqlite://`
"""

import pytest
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from smartpolice.core import clock
from smartpolice.database.base_class import Base
from smartpolice.database.session import build_engine
from smartpolice.models import Client, Plan, TicketConsumptionLog
from smartpolice.models.enums import ConsumptionType
from smartpolice.services.ledger import TicketLedger


@pytest.fixture
def default_store():
    """Engine construit comme en production à partir de `sqlite://`."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


def _seed_client(factory: sessionmaker, tickets: int) -> int:
    with factory() as db:
        plan = Plan(
            code="plan_store",
            name="ストアプラン",
            monthly_fee=0,
            initial_tickets=tickets,
            monthly_tickets=0,
            permissions=[],
        )
        db.add(plan)
        db.flush()
        client = Client(
            company_name="株式会社ストア",
            contact_name="木村 一郎",
            contact_email="kimura@example.co.jp",
            plan_id=plan.id,
            registration_date=clock.today(),
            remaining_tickets=tickets,
        )
        db.add(client)
        db.commit()
        return client.id


class TestStoreIsolation:
    """Tests de l'isolation des sessions sur le store par défaut."""

    def test_rollback_elsewhere_keeps_pending_debit(self, default_store):
        """Le rollback d'une autre session n'annule pas un débit en cours."""
        factory = sessionmaker(bind=default_store, autoflush=False, expire_on_commit=False)
        client_id = _seed_client(factory, tickets=3)

        gateway_db = factory()
        other_db = factory()
        try:
            ledger = TicketLedger(gateway_db)
            with ledger.hold(client_id):
                result = ledger.apply_debit(
                    client_id, ConsumptionType.NEW_CONSULTATION, "相談: 並行リクエスト"
                )
                assert result

                # Une autre requête lit puis échoue
                other_db.execute(select(Client)).all()
                other_db.rollback()

                gateway_db.commit()
        finally:
            gateway_db.close()
            other_db.close()

        with factory() as fresh:
            assert fresh.get(Client, client_id).remaining_tickets == 2
            logs = fresh.execute(
                select(TicketConsumptionLog).where(TicketConsumptionLog.client_id == client_id)
            ).scalars().all()
            assert len(logs) == 1

    def test_sessions_use_distinct_connections(self, default_store):
        """Chaque session du store par défaut a sa propre connexion."""
        factory = sessionmaker(bind=default_store)
        first, second = factory(), factory()
        try:
            first_dbapi = first.connection().connection.dbapi_connection
            second_dbapi = second.connection().connection.dbapi_connection
            assert first_dbapi is not second_dbapi
        finally:
            first.close()
            second.close()

    def test_default_stores_are_independent(self, default_store):
        """Deux engines `sqlite://` ne partagent pas leurs données."""
        factory = sessionmaker(bind=default_store, expire_on_commit=False)
        _seed_client(factory, tickets=1)

        other_engine = build_engine("sqlite://")
        try:
            Base.metadata.create_all(bind=other_engine)
            with sessionmaker(bind=other_engine)() as db:
                assert db.execute(select(Client)).all() == []
        finally:
            other_engine.dispose()

    def test_file_url_is_kept_as_is(self, tmp_path):
        """Une URL SQLite fichier explicite est utilisée telle quelle."""
        path = tmp_path / "explicit.db"
        engine = build_engine(f"sqlite:///{path}")
        try:
            assert engine.url.database == str(path)
        finally:
            engine.dispose()
