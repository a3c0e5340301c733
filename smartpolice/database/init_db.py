"""
Initialisation de la base de données SmartPolice.
Crée les tables puis, si demandé, les données de démonstration :
plans, clients, staff, séminaires, événements, services, partenaire d'affiliation.

Les soldes de tickets des clients de démonstration passent par le registre
(attribution initiale à l'inscription, attributions mensuelles intégrées
au premier accès, débits journalisés) : le livret reconstruit concorde
toujours avec le solde courant.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smartpolice.core import clock
from smartpolice.core.auth.actor import SYSTEM_ACTOR
from smartpolice.database.base_class import Base
from smartpolice.database.session import engine, db_session
from smartpolice.models import (
    Affiliate,
    ApprovalStatus,
    Client,
    ClientPermission,
    ClientUser,
    ClientUserRole,
    ConsumptionType,
    Event,
    GatheringStatus,
    Plan,
    Seminar,
    Service,
    ServiceCategory,
    ServicePriceType,
    Staff,
    StaffRole,
    AccessRole,
)
from smartpolice.services.ledger import TicketLedger

logger = logging.getLogger(__name__)


# =============================================================================
# DONNÉES DE RÉFÉRENCE
# =============================================================================

INITIAL_PLANS = [
    {
        "code": "plan_free",
        "name": "フリープラン",
        "description": "お試し用の無料プラン",
        "monthly_fee": 0,
        "initial_tickets": 1,
        "monthly_tickets": 0,
        "permissions": [],
        "is_public": True,
    },
    {
        "code": "plan_standard",
        "name": "スタンダードプラン",
        "description": "中小企業向けの標準プラン",
        "monthly_fee": 55000,
        "initial_tickets": 5,
        "monthly_tickets": 5,
        "permissions": [
            ClientPermission.VIEW_SERVICES.value,
            ClientPermission.VIEW_MATERIALS.value,
            ClientPermission.VIEW_BILLING.value,
        ],
        "is_public": True,
    },
    {
        "code": "plan_premium",
        "name": "プレミアムプラン",
        "description": "専門家相談を含む上位プラン",
        "monthly_fee": 110000,
        "initial_tickets": 10,
        "monthly_tickets": 10,
        "permissions": [p.value for p in ClientPermission],
        "is_public": True,
    },
    {
        "code": "plan_enterprise",
        "name": "エンタープライズプラン",
        "description": "大企業向け個別契約プラン",
        "monthly_fee": 330000,
        "initial_tickets": 99,
        "monthly_tickets": 99,
        "permissions": [p.value for p in ClientPermission],
        "is_public": False,
    },
]


# =============================================================================
# 1. CRÉATION DES TABLES
# =============================================================================

def create_all_tables() -> bool:
    """
    Crée toutes les tables de la base de données.

    Returns:
        True si succès, False sinon
    """
    try:
        logger.info("📦 Création des tables...")
        Base.metadata.create_all(bind=engine)

        table_names = list(Base.metadata.tables.keys())
        logger.info(f"✅ {len(table_names)} tables créées : {', '.join(sorted(table_names))}")

        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Erreur lors de la création des tables : {e}")
        return False


# =============================================================================
# 2. PLANS
# =============================================================================

def init_plans(db: Session) -> dict[str, Plan]:
    """Crée les plans de référence (idempotent)."""
    logger.info("💳 Initialisation des plans...")

    plans = {}
    for plan_data in INITIAL_PLANS:
        existing = db.execute(
            select(Plan).where(Plan.code == plan_data["code"])
        ).scalar_one_or_none()

        if existing:
            plans[existing.code] = existing
            logger.debug(f"   ℹ️ {plan_data['code']} existe déjà")
        else:
            plan = Plan(**plan_data)
            db.add(plan)
            plans[plan.code] = plan
            logger.info(f"   ✅ {plan_data['name']} créé")

    db.flush()
    return plans


# =============================================================================
# 3. CLIENTS DE DÉMONSTRATION
# =============================================================================

def init_demo_clients(db: Session, plans: dict[str, Plan]) -> list[Client]:
    """Crée trois clients et leurs utilisateurs, inscrits il y a quelques mois."""
    if db.execute(select(Client).limit(1)).scalar_one_or_none():
        logger.info("   ℹ️ Clients déjà présents, seed ignoré")
        return []

    logger.info("🏢 Initialisation des clients de démonstration...")
    today = clock.today()

    demo = [
        ("株式会社○○ホールディングス", "山田 太郎", "yamada@example.co.jp", "plan_premium", 120, "製造業"),
        ("△△商事株式会社", "佐藤 花子", "sato@example.co.jp", "plan_standard", 70, "卸売業"),
        ("□□テクノロジーズ株式会社", "鈴木 一郎", "suzuki@example.co.jp", "plan_enterprise", 30, "情報通信業"),
    ]

    clients = []
    for company, contact, email, plan_code, days_ago, industry in demo:
        plan = plans[plan_code]
        client = Client(
            company_name=company,
            contact_name=contact,
            contact_email=email,
            industry=industry,
            plan_id=plan.id,
            registration_date=today - timedelta(days=days_ago),
            remaining_tickets=plan.initial_tickets,
        )
        db.add(client)
        db.flush()
        db.add(ClientUser(
            client_id=client.id,
            name=contact,
            email=email,
            role=ClientUserRole.CLIENT_ADMIN,
        ))
        clients.append(client)
        logger.info(f"   ✅ {company} ({plan_code})")

    db.commit()
    return clients


def init_demo_consumption(db: Session, clients: list[Client]) -> None:
    """Quelques débits passés par le registre pour alimenter le livret."""
    if not clients:
        return
    ledger = TicketLedger(db)
    ledger.debit(
        clients[0].id,
        ConsumptionType.NEW_CONSULTATION,
        "相談: 情報漏洩の初動対応について",
        actor=SYSTEM_ACTOR,
    )
    ledger.debit(
        clients[0].id,
        ConsumptionType.SPECIALIST_INVITE,
        "専門家招待: 高橋 弁護士 (弁護士)",
        actor=SYSTEM_ACTOR,
    )
    logger.info("   🎟️ Débits de démonstration enregistrés")


# =============================================================================
# 4. STAFF, SÉMINAIRES, ÉVÉNEMENTS, AFFILIATION, SERVICES
# =============================================================================

def init_demo_staff(db: Session) -> None:
    if db.execute(select(Staff).limit(1)).scalar_one_or_none():
        return

    logger.info("👥 Initialisation du staff...")
    now = datetime.now(timezone.utc)
    members = [
        ("田中 誠", "tanaka@smartpolice.example", StaffRole.CRISIS_MANAGER, AccessRole.ADMIN, ApprovalStatus.APPROVED),
        ("伊藤 美咲", "ito@smartpolice.example", StaffRole.CONSULTANT, AccessRole.STAFF, ApprovalStatus.APPROVED),
        ("高橋 健", "takahashi@smartpolice.example", StaffRole.LEGAL, AccessRole.STAFF, ApprovalStatus.APPROVED),
        ("渡辺 由美", "watanabe@smartpolice.example", StaffRole.ACCOUNTING, AccessRole.STAFF, ApprovalStatus.APPROVED),
        ("小林 翔", "kobayashi@smartpolice.example", StaffRole.CONSULTANT, AccessRole.STAFF, ApprovalStatus.PENDING),
    ]
    for name, email, role, access_role, approval in members:
        db.add(Staff(
            name=name,
            email=email,
            role=role,
            access_role=access_role,
            approval_status=approval,
            approved_at=now if approval == ApprovalStatus.APPROVED else None,
        ))
    db.commit()


def init_demo_gatherings(db: Session) -> None:
    if db.execute(select(Seminar).limit(1)).scalar_one_or_none():
        return

    logger.info("📅 Initialisation des séminaires et événements...")
    start = clock.start_of_day(clock.today() + timedelta(days=30))
    db.add_all([
        Seminar(
            title="リスク管理基礎講座",
            description="企業の基本的なリスク管理について学びます。",
            category="マネジメント",
            starts_at=start + timedelta(hours=14),
            location="オンライン",
            capacity=50,
            status=GatheringStatus.OPEN,
        ),
        Seminar(
            title="カスハラ対策実践",
            description="顧客からのハラスメントへの具体的な対応方法を実践形式で学びます。",
            category="マネジメント",
            starts_at=start + timedelta(days=7, hours=13),
            location="東京会場",
            capacity=30,
            status=GatheringStatus.OPEN,
        ),
        Event(
            title="【会員限定】セキュリティ担当者交流会",
            description="日頃の悩みを共有し、他社の事例から学びましょう。",
            category="交流会",
            starts_at=start + timedelta(days=20, hours=18),
            location="スマートポリス本社ラウンジ",
            capacity=30,
            status=GatheringStatus.OPEN,
        ),
        Event(
            title="SNS炎上対策 基礎勉強会",
            description="炎上のメカニズムと予防策、発生時の初期対応について解説します。",
            category="勉強会",
            starts_at=start + timedelta(days=33, hours=14),
            location="オンライン",
            capacity=100,
            status=GatheringStatus.OPEN,
        ),
    ])
    db.add(Affiliate(
        name="中村 パートナーズ",
        email="nakamura@partner.example",
        referral_code="NAKAMURA2024",
    ))
    db.commit()


def init_demo_services(db: Session) -> None:
    if db.execute(select(Service).limit(1)).scalar_one_or_none():
        return

    logger.info("🛡️ Initialisation du catalogue de services...")
    db.add_all([
        Service(
            name="緊急出動サービス",
            category=ServiceCategory.EMERGENCY,
            description="カスハラや不当要求など、緊急事態に専門家が現場へ駆けつけます。",
            long_description="自社だけでの対応が困難な場合に、危機管理の専門家が現場に急行し、"
                             "事態の鎮静化と解決をサポートします。24時間365日対応可能です。",
            price=55000,
            price_type=ServicePriceType.PER_USE,
            icon="fas fa-car-crash",
            color="red-500",
        ),
        Service(
            name="セキュリティ診断",
            category=ServiceCategory.SECURITY,
            description="Webサイトや社内ネットワークの脆弱性を診断し、レポートを提出します。",
            long_description="診断結果は詳細なレポートとして提供し、具体的な対策案も合わせてご提案します。",
            price=330000,
            price_type=ServicePriceType.ONE_TIME,
            icon="fas fa-shield-alt",
            color="blue-500",
        ),
    ])
    db.commit()


# =============================================================================
# POINT D'ENTRÉE
# =============================================================================

def init_db(seed: bool = True) -> bool:
    """
    Crée les tables et, si `seed`, les données de démonstration.

    Returns:
        True si succès, False sinon
    """
    if not create_all_tables():
        return False

    if not seed:
        return True

    try:
        with db_session() as db:
            plans = init_plans(db)
            db.commit()
            clients = init_demo_clients(db, plans)
            init_demo_consumption(db, clients)
            init_demo_staff(db)
            init_demo_gatherings(db)
            init_demo_services(db)
        logger.info("🎉 Données de démonstration prêtes")
        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Erreur lors de l'initialisation des données : {e}")
        return False
