# smartpolice/models/tickets/consumption_log.py
"""
Modèle TicketConsumptionLog - Écritures de débit du registre de tickets.

IMPORTANT :
- Créé uniquement par l'opération de débit du registre
- Écritures immuables (pas de UPDATE/DELETE)
- `ticket_cost` est exactement le nombre de tickets retirés du solde
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ConsumptionType

if TYPE_CHECKING:
    from smartpolice.models.clients.client import Client


class TicketConsumptionLog(Base):
    """
    Débit de tickets d'un client.

    Attributes:
        id: Identifiant unique
        client_id: Client débité
        consumed_at: Horodatage du débit (UTC)
        consumption_type: Motif (nouvelle consultation, invitation, événement en ligne)
        description: Libellé lisible
        ticket_cost: Nombre de tickets débités (> 0)
        related_id: Référence de l'objet déclencheur (consultation, séminaire...)
    """

    __tablename__ = "ticket_consumption_logs"
    __table_args__ = (
        CheckConstraint("ticket_cost > 0", name="ticket_cost_positive"),
        {"comment": "Journal des consommations de tickets (immuable)"},
    )

    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique de l'écriture"
    )

    # --- Qui ---

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Client débité"
    )

    # --- Quand ---

    consumed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        doc="Horodatage du débit"
    )

    # --- Quoi ---

    consumption_type: Mapped[ConsumptionType] = mapped_column(
        Enum(ConsumptionType, name="consumption_type_enum", create_constraint=True),
        nullable=False,
        index=True,
        doc="Motif de la consommation"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        doc="Libellé lisible du débit"
    )

    ticket_cost: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Nombre de tickets débités"
    )

    related_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
        doc="Référence de l'objet ayant déclenché le débit",
        info={"example": "T-0001"}
    )

    client: Mapped["Client"] = relationship("Client", back_populates="consumption_logs")

    def __repr__(self) -> str:
        return f"<TicketConsumptionLog(id={self.id}, client_id={self.client_id}, cost={self.ticket_cost})>"

    @property
    def reference(self) -> str:
        """Identifiant affiché (tcl-<id>)."""
        return f"tcl-{self.id}"
