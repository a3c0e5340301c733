# smartpolice/models/consultations/message.py
"""
Modèle ConsultationMessage - Messages d'un fil de consultation.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import MessageSenderKind

if TYPE_CHECKING:
    from smartpolice.models.consultations.consultation import Consultation


class ConsultationMessage(Base):
    """Message posté dans une consultation (client, staff ou système)."""

    __tablename__ = "consultation_messages"
    __table_args__ = {"comment": "Messages des fils de consultation"}

    id: Mapped[int] = mapped_column(primary_key=True)

    consultation_id: Mapped[int] = mapped_column(
        ForeignKey("consultations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sender_kind: Mapped[MessageSenderKind] = mapped_column(
        Enum(MessageSenderKind, name="message_sender_kind_enum", create_constraint=True),
        nullable=False,
    )

    sender_name: Mapped[str] = mapped_column(String(100), nullable=False)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    posted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    consultation: Mapped["Consultation"] = relationship("Consultation", back_populates="messages")

    def __repr__(self) -> str:
        return f"<ConsultationMessage(id={self.id}, sender={self.sender_kind.value})>"
