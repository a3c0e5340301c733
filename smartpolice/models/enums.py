"""
Enums du domaine SmartPolice.

Les valeurs stockées sont des codes stables ; les libellés japonais
affichés dans le portail sont exposés par la propriété `label`.
"""

from enum import Enum
from typing import Optional


# =============================================================================
# ENUMS POUR LE MODULE TICKETS (REGISTRE)
# =============================================================================

class ConsumptionType(str, Enum):
    """Motif d'une consommation de tickets."""
    NEW_CONSULTATION = "NEW_CONSULTATION"                        # 新規相談
    SPECIALIST_INVITE = "SPECIALIST_INVITE"                      # 専門家招待
    ONLINE_EVENT_PARTICIPATION = "ONLINE_EVENT_PARTICIPATION"    # オンラインイベント参加

    @property
    def label(self) -> str:
        return _CONSUMPTION_LABELS[self]


_CONSUMPTION_LABELS = {
    ConsumptionType.NEW_CONSULTATION: "新規相談",
    ConsumptionType.SPECIALIST_INVITE: "専門家招待",
    ConsumptionType.ONLINE_EVENT_PARTICIPATION: "オンラインイベント参加",
}


# =============================================================================
# ENUMS POUR LE MODULE CONSULTATIONS
# =============================================================================

class ConsultationStatus(str, Enum):
    """Statuts d'une consultation (sens unique, pas de réouverture)."""
    RECEIVED = "RECEIVED"          # 受付中
    IN_PROGRESS = "IN_PROGRESS"    # 対応中
    COMPLETED = "COMPLETED"        # 完了

    @property
    def label(self) -> str:
        return {"RECEIVED": "受付中", "IN_PROGRESS": "対応中", "COMPLETED": "完了"}[self.value]

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_transition_to(self, target: "ConsultationStatus") -> bool:
        """Seuls les passages vers un statut ultérieur sont autorisés."""
        return target.rank > self.rank


_STATUS_ORDER = [
    ConsultationStatus.RECEIVED,
    ConsultationStatus.IN_PROGRESS,
    ConsultationStatus.COMPLETED,
]


class ConsultationPriority(str, Enum):
    """Priorité d'une consultation."""
    HIGH = "HIGH"        # 高
    MEDIUM = "MEDIUM"    # 中
    LOW = "LOW"          # 低


class MessageSenderKind(str, Enum):
    """Émetteur d'un message dans le fil de consultation."""
    SYSTEM = "SYSTEM"
    STAFF = "STAFF"
    CLIENT = "CLIENT"


# =============================================================================
# ENUMS POUR LE MODULE STAFF / RÔLES
# =============================================================================

class AccessRole(str, Enum):
    """Rôle d'accès d'un acteur (porté par le token)."""
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CLIENTADMIN = "CLIENTADMIN"
    CLIENT = "CLIENT"
    AFFILIATE = "AFFILIATE"

    @property
    def is_client_side(self) -> bool:
        return self in (AccessRole.CLIENTADMIN, AccessRole.CLIENT)


class StaffRole(str, Enum):
    """Fonction métier d'un membre du staff."""
    CRISIS_MANAGER = "CRISIS_MANAGER"  # Gestionnaire de crise
    CONSULTANT = "CONSULTANT"          # Consultant
    LEGAL = "LEGAL"                    # Avocat
    ACCOUNTING = "ACCOUNTING"          # Expert-comptable
    ADMIN = "ADMIN"                    # Administratif


class ApprovalStatus(str, Enum):
    """Statut de validation d'un compte staff."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ClientUserRole(str, Enum):
    """Rôle d'un utilisateur côté client."""
    CLIENT_ADMIN = "CLIENT_ADMIN"
    CLIENT_STAFF = "CLIENT_STAFF"


class ParticipantRole(str, Enum):
    """
    Rôle d'un participant dans un fil de consultation.

    Seuls les spécialistes (avocat, expert-comptable) sont facturés
    d'un ticket lorsqu'ils sont invités.
    """
    CRISIS_MANAGER = "CRISIS_MANAGER"  # 危機管理官
    CONSULTANT = "CONSULTANT"          # 担当者
    LAWYER = "LAWYER"                  # 弁護士
    ACCOUNTANT = "ACCOUNTANT"          # 公認会計士
    DEPUTY = "DEPUTY"                  # 副担当者
    CLIENT_ADMIN = "CLIENT_ADMIN"      # クライアント管理者
    CLIENT_STAFF = "CLIENT_STAFF"      # クライアント担当者

    @property
    def label(self) -> str:
        return _PARTICIPANT_LABELS[self]

    @property
    def is_billable(self) -> bool:
        return self in (ParticipantRole.LAWYER, ParticipantRole.ACCOUNTANT)

    @classmethod
    def from_staff_role(cls, role: StaffRole) -> "ParticipantRole":
        return _STAFF_TO_PARTICIPANT[role]

    @classmethod
    def from_client_user_role(cls, role: ClientUserRole) -> "ParticipantRole":
        if role == ClientUserRole.CLIENT_ADMIN:
            return cls.CLIENT_ADMIN
        return cls.CLIENT_STAFF


_PARTICIPANT_LABELS = {
    ParticipantRole.CRISIS_MANAGER: "危機管理官",
    ParticipantRole.CONSULTANT: "担当者",
    ParticipantRole.LAWYER: "弁護士",
    ParticipantRole.ACCOUNTANT: "公認会計士",
    ParticipantRole.DEPUTY: "副担当者",
    ParticipantRole.CLIENT_ADMIN: "クライアント管理者",
    ParticipantRole.CLIENT_STAFF: "クライアント担当者",
}

_STAFF_TO_PARTICIPANT = {
    StaffRole.CRISIS_MANAGER: ParticipantRole.CRISIS_MANAGER,
    StaffRole.CONSULTANT: ParticipantRole.CONSULTANT,
    StaffRole.LEGAL: ParticipantRole.LAWYER,
    StaffRole.ACCOUNTING: ParticipantRole.ACCOUNTANT,
    StaffRole.ADMIN: ParticipantRole.DEPUTY,
}


# =============================================================================
# ENUMS POUR LES PERMISSIONS
# =============================================================================

class Permission(str, Enum):
    """Permissions du back-office (staff / administrateurs)."""
    VIEW_DASHBOARD = "VIEW_DASHBOARD"
    VIEW_CLIENTS = "VIEW_CLIENTS"
    EDIT_CLIENTS = "EDIT_CLIENTS"
    DELETE_CLIENTS = "DELETE_CLIENTS"
    VIEW_STAFF = "VIEW_STAFF"
    EDIT_STAFF = "EDIT_STAFF"
    DELETE_STAFF = "DELETE_STAFF"
    VIEW_TICKETS = "VIEW_TICKETS"
    EDIT_TICKETS = "EDIT_TICKETS"
    VIEW_APPLICATIONS = "VIEW_APPLICATIONS"
    PROCESS_APPLICATIONS = "PROCESS_APPLICATIONS"
    VIEW_ANNOUNCEMENTS = "VIEW_ANNOUNCEMENTS"
    EDIT_ANNOUNCEMENTS = "EDIT_ANNOUNCEMENTS"
    DELETE_ANNOUNCEMENTS = "DELETE_ANNOUNCEMENTS"
    VIEW_SEMINARS = "VIEW_SEMINARS"
    EDIT_SEMINARS = "EDIT_SEMINARS"
    DELETE_SEMINARS = "DELETE_SEMINARS"
    VIEW_EVENTS = "VIEW_EVENTS"
    EDIT_EVENTS = "EDIT_EVENTS"
    DELETE_EVENTS = "DELETE_EVENTS"
    VIEW_MATERIALS = "VIEW_MATERIALS"
    EDIT_MATERIALS = "EDIT_MATERIALS"
    DELETE_MATERIALS = "DELETE_MATERIALS"
    VIEW_BILLING = "VIEW_BILLING"
    EDIT_BILLING = "EDIT_BILLING"
    DELETE_BILLING = "DELETE_BILLING"
    VIEW_SERVICES = "VIEW_SERVICES"
    EDIT_SERVICES = "EDIT_SERVICES"
    DELETE_SERVICES = "DELETE_SERVICES"
    VIEW_LOGS = "VIEW_LOGS"
    MANAGE_ROLES = "MANAGE_ROLES"
    MANAGE_PLANS = "MANAGE_PLANS"
    DELETE_PLANS = "DELETE_PLANS"
    MANAGE_AFFILIATES = "MANAGE_AFFILIATES"
    DELETE_AFFILIATES = "DELETE_AFFILIATES"


class ClientPermission(str, Enum):
    """Fonctionnalités du portail client ouvertes par le plan."""
    VIEW_SERVICES = "VIEW_SERVICES"
    VIEW_MATERIALS = "VIEW_MATERIALS"
    VIEW_BILLING = "VIEW_BILLING"
    VIEW_REPORTS = "VIEW_REPORTS"
    MANAGE_USERS = "MANAGE_USERS"
    EDIT_COMPANY_INFO = "EDIT_COMPANY_INFO"


# =============================================================================
# ENUMS POUR LES SÉMINAIRES / ÉVÉNEMENTS
# =============================================================================

class GatheringStatus(str, Enum):
    """Statut de publication d'un séminaire ou d'un événement."""
    OPEN = "OPEN"            # 募集中
    CLOSED = "CLOSED"        # 募集終了
    FINISHED = "FINISHED"    # 開催終了


# =============================================================================
# ENUMS POUR LE CATALOGUE DE SERVICES
# =============================================================================

class ServiceCategory(str, Enum):
    """Catégorie d'une offre de service."""
    EMERGENCY = "EMERGENCY"      # 緊急対応
    SECURITY = "SECURITY"        # セキュリティ
    TRAINING = "TRAINING"        # 研修
    CONSULTING = "CONSULTING"    # コンサルティング


class ServicePriceType(str, Enum):
    """Mode de tarification d'un service."""
    MONTHLY = "MONTHLY"      # 月額
    ONE_TIME = "ONE_TIME"    # 一括
    PER_USE = "PER_USE"      # 都度


class ServiceStatus(str, Enum):
    """Visibilité d'un service dans le portail client."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ServiceApplicationStatus(str, Enum):
    """Statut d'une demande de service (décision unique)."""
    PENDING = "PENDING"      # 審査中
    APPROVED = "APPROVED"    # 承認
    REJECTED = "REJECTED"    # 却下


# =============================================================================
# ENUMS POUR LE MODULE AFFILIATION
# =============================================================================

class ReferralStatus(str, Enum):
    """Statut d'un parrainage."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PayoutStatus(str, Enum):
    """Statut d'un versement de commission."""
    PENDING = "PENDING"
    PAID = "PAID"


def consumption_types_matching(term: Optional[str]) -> list[ConsumptionType]:
    """Types de consommation dont le code ou le libellé contient le terme."""
    if not term:
        return []
    needle = term.lower()
    return [
        t for t in ConsumptionType
        if needle in t.value.lower() or needle in t.label
    ]
