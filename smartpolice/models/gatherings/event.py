# smartpolice/models/gatherings/event.py
"""
Modèles Event et EventApplication.
"""

from typing import List

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.gatherings.base import ApplicationMixin, GatheringMixin
from smartpolice.models.mixins import TimestampMixin


class Event(Base, GatheringMixin, TimestampMixin):
    """Événement (salon, atelier, webinaire)."""

    __tablename__ = "events"
    __table_args__ = {"comment": "Événements (inscription payante si en ligne)"}

    id: Mapped[int] = mapped_column(primary_key=True)

    applications: Mapped[List["EventApplication"]] = relationship(
        "EventApplication",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventApplication.id",
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title}', capacity={self.capacity})>"


class EventApplication(Base, ApplicationMixin):
    """Inscription à un événement."""

    __tablename__ = "event_applications"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_application_user"),
        {"comment": "Inscriptions aux événements (une par utilisateur)"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    event: Mapped["Event"] = relationship("Event", back_populates="applications")

    def __repr__(self) -> str:
        return f"<EventApplication(event_id={self.event_id}, user_id='{self.user_id}')>"
