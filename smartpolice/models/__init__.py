# smartpolice/models/__init__.py
"""
Import centralisé des modèles SmartPolice.

Tous les modèles doivent être importés ici pour que SQLAlchemy
connaisse toutes les relations lors de create_all().
"""

# Enums
from smartpolice.models.enums import (
    AccessRole,
    ApprovalStatus,
    ClientPermission,
    ClientUserRole,
    ConsultationPriority,
    ConsultationStatus,
    ConsumptionType,
    GatheringStatus,
    MessageSenderKind,
    ParticipantRole,
    PayoutStatus,
    Permission,
    ReferralStatus,
    ServiceApplicationStatus,
    ServiceCategory,
    ServicePriceType,
    ServiceStatus,
    StaffRole,
)

# Mixins
from smartpolice.models.mixins import TimestampMixin

# Clients
from smartpolice.models.clients import Plan, Client, ClientUser, PlanChange

# Staff
from smartpolice.models.staff import Staff

# Tickets
from smartpolice.models.tickets import TicketConsumptionLog

# Consultations
from smartpolice.models.consultations import (
    Consultation,
    ConsultationParticipant,
    ConsultationMessage,
)

# Séminaires / événements
from smartpolice.models.gatherings import (
    Seminar,
    SeminarApplication,
    Event,
    EventApplication,
)

# Catalogue de services
from smartpolice.models.catalog import Service, ServiceApplication

# Affiliation
from smartpolice.models.affiliates import Affiliate, Referral, Payout

# Audit
from smartpolice.models.audit import AuditLog, AuditAction

__all__ = [
    # Enums
    "AccessRole", "ApprovalStatus", "ClientPermission", "ClientUserRole",
    "ConsultationPriority", "ConsultationStatus", "ConsumptionType",
    "GatheringStatus", "MessageSenderKind", "ParticipantRole", "PayoutStatus",
    "Permission", "ReferralStatus", "ServiceApplicationStatus", "ServiceCategory",
    "ServicePriceType", "ServiceStatus", "StaffRole",
    # Mixins
    "TimestampMixin",
    # Modèles
    "Plan", "Client", "ClientUser", "PlanChange",
    "Staff",
    "TicketConsumptionLog",
    "Consultation", "ConsultationParticipant", "ConsultationMessage",
    "Seminar", "SeminarApplication", "Event", "EventApplication",
    "Service", "ServiceApplication",
    "Affiliate", "Referral", "Payout",
    "AuditLog", "AuditAction",
]
