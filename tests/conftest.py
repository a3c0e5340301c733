"""
Fixtures pytest partagées pour les tests SmartPolice.

Ce module fournit :
- Une base de données SQLite en mémoire pour les tests (rapide, isolé)
- Des fixtures pour créer des objets de test (Plan, Client, Staff, Seminar...)
- Des acteurs (back-office et côté client) et un TestClient par acteur

IMPORTANT - Calendrier:
- Les clients de test sont inscrits aujourd'hui : aucune attribution
  mensuelle n'est due pendant le test, le solde initial est stable.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from smartpolice.core import clock
from smartpolice.core.auth import Actor, get_current_actor
from smartpolice.database.base_class import Base
from smartpolice.database.session import get_db
from smartpolice.main import app
from smartpolice.models import (
    Affiliate,
    Client,
    ClientUser,
    Event,
    Plan,
    Seminar,
    Service,
    Staff,
)
from smartpolice.models.enums import (
    AccessRole,
    ApprovalStatus,
    ClientPermission,
    ClientUserRole,
    GatheringStatus,
    ServiceCategory,
    ServicePriceType,
    ServiceStatus,
    StaffRole,
)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """
    Crée un engine SQLite en mémoire pour les tests.

    Chaque test a sa propre base : les commit() du code testé sont réels
    et disparaissent avec l'engine.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,  # Mettre True pour debug SQL
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Session liée à la base du test (mêmes options que SessionLocal)."""
    TestingSession = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def file_session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """
    Factory de sessions sur une base SQLite fichier.

    Utilisée par les tests de concurrence : chaque thread ouvre sa
    propre session (et sa propre connexion).
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'smartpolice_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)

    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    engine.dispose()


# =============================================================================
# MODEL FIXTURES - Plans
# =============================================================================

@pytest.fixture
def plan_free(db_session: Session) -> Plan:
    """Plan gratuit : 1 ticket à l'inscription, aucune attribution mensuelle."""
    plan = Plan(
        code="plan_free",
        name="フリープラン",
        monthly_fee=0,
        initial_tickets=1,
        monthly_tickets=0,
        permissions=[],
    )
    db_session.add(plan)
    db_session.flush()
    return plan


@pytest.fixture
def plan_standard(db_session: Session) -> Plan:
    """Plan standard : 5 tickets à l'inscription puis 5 par mois."""
    plan = Plan(
        code="plan_standard",
        name="スタンダードプラン",
        monthly_fee=55000,
        initial_tickets=5,
        monthly_tickets=5,
        permissions=[
            ClientPermission.VIEW_SERVICES.value,
            ClientPermission.VIEW_MATERIALS.value,
        ],
    )
    db_session.add(plan)
    db_session.flush()
    return plan


@pytest.fixture
def plan_premium(db_session: Session) -> Plan:
    """Plan premium : 10 tickets à l'inscription puis 10 par mois."""
    plan = Plan(
        code="plan_premium",
        name="プレミアムプラン",
        monthly_fee=110000,
        initial_tickets=10,
        monthly_tickets=10,
        permissions=[p.value for p in ClientPermission],
    )
    db_session.add(plan)
    db_session.flush()
    return plan


# =============================================================================
# MODEL FIXTURES - Clients
# =============================================================================

@pytest.fixture
def client_company(db_session: Session, plan_standard: Plan) -> Client:
    """Client sous plan standard, inscrit aujourd'hui (solde 5)."""
    client = Client(
        company_name="株式会社○○ホールディングス",
        contact_name="山田 太郎",
        contact_email="yamada@example.co.jp",
        plan_id=plan_standard.id,
        registration_date=clock.today(),
        remaining_tickets=plan_standard.initial_tickets,
    )
    db_session.add(client)
    db_session.commit()
    return client


@pytest.fixture
def client_empty(db_session: Session, plan_free: Plan) -> Client:
    """Client dont le solde est épuisé."""
    client = Client(
        company_name="△△商事株式会社",
        contact_name="佐藤 花子",
        contact_email="sato@example.co.jp",
        plan_id=plan_free.id,
        registration_date=clock.today(),
        remaining_tickets=0,
    )
    db_session.add(client)
    db_session.commit()
    return client


@pytest.fixture
def client_user(db_session: Session, client_company: Client) -> ClientUser:
    """Utilisateur administrateur du client de test."""
    user = ClientUser(
        client_id=client_company.id,
        name="山田 太郎",
        email="yamada@example.co.jp",
        role=ClientUserRole.CLIENT_ADMIN,
    )
    db_session.add(user)
    db_session.commit()
    return user


# =============================================================================
# MODEL FIXTURES - Staff
# =============================================================================

def _make_staff(db_session: Session, name: str, email: str, role: StaffRole,
                approval: ApprovalStatus = ApprovalStatus.APPROVED) -> Staff:
    staff = Staff(
        name=name,
        email=email,
        role=role,
        access_role=AccessRole.STAFF,
        approval_status=approval,
        approved_at=datetime.now(timezone.utc) if approval == ApprovalStatus.APPROVED else None,
    )
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture
def staff_lawyer(db_session: Session) -> Staff:
    """Avocat validé (invitation facturée)."""
    return _make_staff(db_session, "高橋 健", "takahashi@smartpolice.example", StaffRole.LEGAL)


@pytest.fixture
def staff_accountant(db_session: Session) -> Staff:
    """Expert-comptable validé (invitation facturée)."""
    return _make_staff(db_session, "渡辺 由美", "watanabe@smartpolice.example", StaffRole.ACCOUNTING)


@pytest.fixture
def staff_consultant(db_session: Session) -> Staff:
    """Consultant validé (invitation gratuite)."""
    return _make_staff(db_session, "伊藤 美咲", "ito@smartpolice.example", StaffRole.CONSULTANT)


@pytest.fixture
def staff_pending(db_session: Session) -> Staff:
    """Membre du staff en attente de validation."""
    return _make_staff(
        db_session, "小林 翔", "kobayashi@smartpolice.example",
        StaffRole.LEGAL, ApprovalStatus.PENDING,
    )


# =============================================================================
# MODEL FIXTURES - Séminaires / Événements
# =============================================================================

def _starts_at(days: int) -> datetime:
    return clock.start_of_day(clock.today() + timedelta(days=days))


@pytest.fixture
def seminar_online(db_session: Session) -> Seminar:
    """Séminaire en ligne (payant), 2 places."""
    seminar = Seminar(
        title="リスク管理基礎講座",
        category="マネジメント",
        starts_at=_starts_at(30),
        location="オンライン",
        capacity=2,
        status=GatheringStatus.OPEN,
    )
    db_session.add(seminar)
    db_session.commit()
    return seminar


@pytest.fixture
def seminar_venue(db_session: Session) -> Seminar:
    """Séminaire en présentiel (gratuit), 30 places."""
    seminar = Seminar(
        title="カスハラ対策実践",
        category="マネジメント",
        starts_at=_starts_at(37),
        location="東京会場",
        capacity=30,
        status=GatheringStatus.OPEN,
    )
    db_session.add(seminar)
    db_session.commit()
    return seminar


@pytest.fixture
def seminar_closed(db_session: Session) -> Seminar:
    """Séminaire dont les inscriptions sont fermées."""
    seminar = Seminar(
        title="情報セキュリティ研修",
        starts_at=_starts_at(-3),
        location="大阪会場",
        capacity=20,
        status=GatheringStatus.CLOSED,
    )
    db_session.add(seminar)
    db_session.commit()
    return seminar


@pytest.fixture
def event_online(db_session: Session) -> Event:
    """Événement en ligne (payant), 100 places."""
    event = Event(
        title="SNS炎上対策 基礎勉強会",
        category="勉強会",
        starts_at=_starts_at(45),
        location="オンライン",
        capacity=100,
        status=GatheringStatus.OPEN,
    )
    db_session.add(event)
    db_session.commit()
    return event


# =============================================================================
# MODEL FIXTURES - Affiliation
# =============================================================================

@pytest.fixture
def affiliate(db_session: Session) -> Affiliate:
    """Partenaire d'affiliation."""
    affiliate = Affiliate(
        name="中村 パートナーズ",
        email="nakamura@partner.example",
        referral_code="NAKAMURA2024",
    )
    db_session.add(affiliate)
    db_session.commit()
    return affiliate


# =============================================================================
# MODEL FIXTURES - Catalogue de services
# =============================================================================

@pytest.fixture
def service_emergency(db_session: Session) -> Service:
    """Service actif, demandable depuis le portail."""
    service = Service(
        name="緊急出動サービス",
        category=ServiceCategory.EMERGENCY,
        description="緊急事態に専門家が現場へ駆けつけます。",
        price=55000,
        price_type=ServicePriceType.PER_USE,
        status=ServiceStatus.ACTIVE,
    )
    db_session.add(service)
    db_session.commit()
    return service


@pytest.fixture
def service_inactive(db_session: Session) -> Service:
    """Service retiré du portail client."""
    service = Service(
        name="旧セキュリティ研修",
        category=ServiceCategory.TRAINING,
        description="提供終了",
        price=100000,
        price_type=ServicePriceType.ONE_TIME,
        status=ServiceStatus.INACTIVE,
    )
    db_session.add(service)
    db_session.commit()
    return service


# =============================================================================
# ACTEURS
# =============================================================================

@pytest.fixture
def admin_actor() -> Actor:
    return Actor(actor_id="admin@smartpolice.example", name="管理者", role=AccessRole.SUPERADMIN)


@pytest.fixture
def staff_actor() -> Actor:
    return Actor(actor_id="ito@smartpolice.example", name="伊藤 美咲", role=AccessRole.STAFF)


@pytest.fixture
def client_actor(client_company: Client) -> Actor:
    return Actor(
        actor_id="yamada@example.co.jp",
        name="山田 太郎",
        role=AccessRole.CLIENTADMIN,
        client_id=client_company.id,
    )


@pytest.fixture
def other_client_actor(client_empty: Client) -> Actor:
    return Actor(
        actor_id="sato@example.co.jp",
        name="佐藤 花子",
        role=AccessRole.CLIENT,
        client_id=client_empty.id,
    )


# =============================================================================
# API CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def as_actor(db_session: Session) -> Generator[Callable[[Actor], TestClient], None, None]:
    """
    Factory de TestClient authentifié comme l'acteur donné.

    Cette fixture :
    1. Remplace get_db pour utiliser la session de test
    2. Remplace get_current_actor pour retourner l'acteur (pas de JWT)
    3. Nettoie les overrides après le test

    Usage:
        def test_xxx(as_actor, client_actor):
            response = as_actor(client_actor).get("/api/v1/...")
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def factory(actor: Actor) -> TestClient:
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_current_actor] = lambda: actor
        return TestClient(app)

    yield factory

    app.dependency_overrides.clear()


@pytest.fixture
def api_admin(as_actor, admin_actor) -> TestClient:
    """TestClient authentifié comme super-administrateur."""
    return as_actor(admin_actor)


@pytest.fixture
def api_client_user(as_actor, client_actor) -> TestClient:
    """TestClient authentifié comme administrateur du client de test."""
    return as_actor(client_actor)
