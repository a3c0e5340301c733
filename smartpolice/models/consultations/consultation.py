# smartpolice/models/consultations/consultation.py
"""
Modèle Consultation - Fils de consultation (tickets de message).

Une consultation est créée lorsqu'un client débite un ticket pour une
nouvelle demande. Son statut évolue en sens unique :
RECEIVED -> IN_PROGRESS -> COMPLETED (pas de réouverture).
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ConsultationPriority, ConsultationStatus
from smartpolice.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from smartpolice.models.clients.client import Client
    from smartpolice.models.consultations.message import ConsultationMessage
    from smartpolice.models.consultations.participant import ConsultationParticipant
    from smartpolice.models.staff.staff import Staff


class Consultation(Base, TimestampMixin):
    """
    Fil de consultation d'un client.

    Attributes:
        id: Identifiant unique
        reference: Référence affichée (T-0001)
        client_id: Client demandeur
        subject: Objet de la demande
        status: RECEIVED, IN_PROGRESS ou COMPLETED
        assignee_id: Staff en charge (nullable)
        expiration_date: Date limite de réponse
    """

    __tablename__ = "consultations"
    __table_args__ = {
        "comment": "Fils de consultation (1 ticket consommé à la création)"
    }

    # ========================
    # Clé primaire
    # ========================
    id: Mapped[int] = mapped_column(primary_key=True)

    reference: Mapped[Optional[str]] = mapped_column(
        String(20),
        unique=True,
        nullable=True,
        doc="Référence affichée",
        info={"example": "T-0001"}
    )

    # ========================
    # Demande
    # ========================
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    subject: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Catégorie libre (ex: 情報漏洩, 労務問題)"
    )

    priority: Mapped[ConsultationPriority] = mapped_column(
        Enum(ConsultationPriority, name="consultation_priority_enum", create_constraint=True),
        nullable=False,
        default=ConsultationPriority.MEDIUM,
    )

    excerpt: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Extrait du premier message"
    )

    # ========================
    # Suivi
    # ========================
    status: Mapped[ConsultationStatus] = mapped_column(
        Enum(ConsultationStatus, name="consultation_status_enum", create_constraint=True),
        nullable=False,
        default=ConsultationStatus.RECEIVED,
        index=True,
    )

    assignee_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Staff en charge"
    )

    expiration_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Date limite de réponse"
    )

    # === Relations ===

    client: Mapped["Client"] = relationship("Client")

    assignee: Mapped[Optional["Staff"]] = relationship("Staff")

    participants: Mapped[List["ConsultationParticipant"]] = relationship(
        "ConsultationParticipant",
        back_populates="consultation",
        cascade="all, delete-orphan",
        order_by="ConsultationParticipant.id",
    )

    messages: Mapped[List["ConsultationMessage"]] = relationship(
        "ConsultationMessage",
        back_populates="consultation",
        cascade="all, delete-orphan",
        order_by="ConsultationMessage.id",
    )

    # === Méthodes ===

    def __repr__(self) -> str:
        return f"<Consultation(id={self.id}, ref='{self.reference}', status={self.status.value})>"

    @staticmethod
    def format_reference(consultation_id: int) -> str:
        return f"T-{consultation_id:04d}"

    @property
    def is_closed(self) -> bool:
        return self.status == ConsultationStatus.COMPLETED
