# smartpolice/models/consultations/participant.py
"""
Modèle ConsultationParticipant - Participants d'un fil de consultation.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ParticipantRole

if TYPE_CHECKING:
    from smartpolice.models.consultations.consultation import Consultation


class ConsultationParticipant(Base):
    """
    Participant d'une consultation : membre du staff OU utilisateur client.

    Le rôle est figé au moment de l'invitation.
    """

    __tablename__ = "consultation_participants"
    __table_args__ = (
        UniqueConstraint("consultation_id", "staff_id", name="uq_participant_staff"),
        UniqueConstraint("consultation_id", "client_user_id", name="uq_participant_client_user"),
        CheckConstraint(
            "(staff_id IS NULL) <> (client_user_id IS NULL)",
            name="exactly_one_identity",
        ),
        {"comment": "Participants des fils de consultation"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    consultation_id: Mapped[int] = mapped_column(
        ForeignKey("consultations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    staff_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff.id", ondelete="CASCADE"),
        nullable=True,
    )

    client_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("client_users.id", ondelete="CASCADE"),
        nullable=True,
    )

    display_name: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[ParticipantRole] = mapped_column(
        Enum(ParticipantRole, name="participant_role_enum", create_constraint=True),
        nullable=False,
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    consultation: Mapped["Consultation"] = relationship("Consultation", back_populates="participants")

    def __repr__(self) -> str:
        return f"<ConsultationParticipant(consultation_id={self.consultation_id}, role={self.role.value})>"
