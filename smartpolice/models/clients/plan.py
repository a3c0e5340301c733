# smartpolice/models/clients/plan.py
"""
Modèle Plan - Offres commerciales.

Ce module définit la table `plans` qui porte les paramètres d'attribution
de tickets et les fonctionnalités du portail ouvertes aux clients.

IMPORTANT :
- Un plan peut être modifié en place ; la reconstruction du livret
  utilise toujours les valeurs courantes du plan.
- Un plan référencé par au moins un client ne peut pas être supprimé.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ClientPermission
from smartpolice.models.mixins import TimestampMixin
from smartpolice.models.types import JSONBCompatible

if TYPE_CHECKING:
    from smartpolice.models.clients.client import Client


# =============================================================================
# MODÈLE
# =============================================================================

class Plan(Base, TimestampMixin):
    """
    Offre commerciale souscrite par un client.

    Attributes:
        id: Identifiant unique
        code: Code stable (ex: "plan_standard")
        name: Libellé commercial
        monthly_fee: Redevance mensuelle en yens
        initial_tickets: Tickets attribués une fois, à l'inscription
        monthly_tickets: Tickets attribués le 1er de chaque mois suivant l'inscription
        permissions: Fonctionnalités du portail ouvertes (ClientPermission)
        is_public: Visible dans le catalogue public

    Example:
        plan = Plan(
            code="plan_standard",
            name="スタンダードプラン",
            monthly_fee=55000,
            initial_tickets=5,
            monthly_tickets=5,
            permissions=["VIEW_SERVICES", "VIEW_MATERIALS", "VIEW_BILLING"],
        )
    """

    __tablename__ = "plans"
    __table_args__ = (
        CheckConstraint("initial_tickets >= 0", name="initial_tickets_non_negative"),
        CheckConstraint("monthly_tickets >= 0", name="monthly_tickets_non_negative"),
        {"comment": "Offres commerciales et règles d'attribution de tickets"},
    )

    # ========================
    # Clé primaire
    # ========================
    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique du plan"
    )

    # ========================
    # Identification
    # ========================
    code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        doc="Code stable du plan",
        info={"example": "plan_standard"}
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Libellé commercial"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Description affichée dans le catalogue"
    )

    # ========================
    # Tarification et tickets
    # ========================
    monthly_fee: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Redevance mensuelle (JPY)"
    )

    initial_tickets: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Tickets attribués à l'inscription",
        info={"description": "Attribution unique à la date d'inscription"}
    )

    monthly_tickets: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Tickets attribués chaque mois",
        info={"description": "Le 1er de chaque mois à partir du mois suivant l'inscription"}
    )

    # ========================
    # Fonctionnalités
    # ========================
    permissions: Mapped[List[str]] = mapped_column(
        JSONBCompatible,
        nullable=False,
        default=list,
        doc="Codes ClientPermission ouverts par le plan"
    )

    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Visible dans le catalogue"
    )

    # === Relations ===

    clients: Mapped[List["Client"]] = relationship(
        "Client",
        back_populates="plan",
    )

    # === Méthodes ===

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, code='{self.code}', initial={self.initial_tickets}, monthly={self.monthly_tickets})>"

    @property
    def permission_set(self) -> frozenset[ClientPermission]:
        """Permissions du plan sous forme d'enum (codes inconnus ignorés)."""
        known = {p.value for p in ClientPermission}
        return frozenset(ClientPermission(p) for p in (self.permissions or []) if p in known)
