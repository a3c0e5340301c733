# smartpolice/models/clients/client.py
"""
Modèle Client - Entreprises clientes sous contrat.

Ce module définit la table `clients`. Le solde de tickets
(`remaining_tickets`) n'est modifié que par le registre de tickets :
attribution des tickets mensuels et débits.
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from smartpolice.models.clients.plan import Plan
    from smartpolice.models.clients.client_user import ClientUser
    from smartpolice.models.clients.plan_change import PlanChange
    from smartpolice.models.tickets.consumption_log import TicketConsumptionLog


# =============================================================================
# MODÈLE
# =============================================================================

class Client(Base, TimestampMixin):
    """
    Entreprise cliente.

    Attributes:
        id: Identifiant unique
        company_name: Raison sociale
        plan_id: Plan souscrit (un seul à la fois)
        remaining_tickets: Solde courant de tickets (>= 0)
        registration_date: Date d'inscription, point de départ des attributions
        grants_applied_through: Dernière attribution mensuelle intégrée au solde

    Example:
        client = Client(
            company_name="○○ホールディングス",
            plan_id=premium.id,
            remaining_tickets=premium.initial_tickets,
            registration_date=date(2023, 1, 15),
        )
    """

    __tablename__ = "clients"
    __table_args__ = (
        CheckConstraint("remaining_tickets >= 0", name="remaining_tickets_non_negative"),
        {"comment": "Entreprises clientes et solde de tickets"},
    )

    # ========================
    # Clé primaire
    # ========================
    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique du client"
    )

    # ========================
    # Identité de l'entreprise
    # ========================
    company_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
        doc="Raison sociale"
    )

    contact_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Nom du contact principal"
    )

    contact_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Email du contact principal"
    )

    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    industry: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Secteur d'activité"
    )

    # ========================
    # Contrat
    # ========================
    plan_id: Mapped[int] = mapped_column(
        ForeignKey("plans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        doc="Plan souscrit",
        info={"description": "Changement immédiat, historisé dans plan_changes"}
    )

    registration_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Date d'inscription",
        info={"description": "Ancre le calendrier d'attribution des tickets"}
    )

    # ========================
    # Tickets
    # ========================
    remaining_tickets: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Solde courant de tickets",
        info={"description": "Jamais négatif ; modifié uniquement par le registre"}
    )

    grants_applied_through: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Date de la dernière attribution mensuelle intégrée au solde",
        info={"description": "NULL = aucune attribution mensuelle encore intégrée"}
    )

    # === Relations ===

    plan: Mapped["Plan"] = relationship(
        "Plan",
        back_populates="clients",
        lazy="joined",
    )

    users: Mapped[List["ClientUser"]] = relationship(
        "ClientUser",
        back_populates="client",
        cascade="all, delete-orphan",
    )

    consumption_logs: Mapped[List["TicketConsumptionLog"]] = relationship(
        "TicketConsumptionLog",
        back_populates="client",
        order_by="TicketConsumptionLog.consumed_at",
    )

    plan_changes: Mapped[List["PlanChange"]] = relationship(
        "PlanChange",
        back_populates="client",
        order_by="PlanChange.changed_at.desc()",
    )

    # === Méthodes ===

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, company='{self.company_name}', tickets={self.remaining_tickets})>"
