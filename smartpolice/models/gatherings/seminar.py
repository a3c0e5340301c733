# smartpolice/models/gatherings/seminar.py
"""
Modèles Seminar et SeminarApplication.
"""

from typing import List

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.gatherings.base import ApplicationMixin, GatheringMixin
from smartpolice.models.mixins import TimestampMixin


class Seminar(Base, GatheringMixin, TimestampMixin):
    """Séminaire proposé aux clients."""

    __tablename__ = "seminars"
    __table_args__ = {"comment": "Séminaires (inscription payante si en ligne)"}

    id: Mapped[int] = mapped_column(primary_key=True)

    applications: Mapped[List["SeminarApplication"]] = relationship(
        "SeminarApplication",
        back_populates="seminar",
        cascade="all, delete-orphan",
        order_by="SeminarApplication.id",
    )

    def __repr__(self) -> str:
        return f"<Seminar(id={self.id}, title='{self.title}', capacity={self.capacity})>"


class SeminarApplication(Base, ApplicationMixin):
    """Inscription à un séminaire."""

    __tablename__ = "seminar_applications"
    __table_args__ = (
        UniqueConstraint("seminar_id", "user_id", name="uq_seminar_application_user"),
        {"comment": "Inscriptions aux séminaires (une par utilisateur)"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    seminar_id: Mapped[int] = mapped_column(
        ForeignKey("seminars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    seminar: Mapped["Seminar"] = relationship("Seminar", back_populates="applications")

    def __repr__(self) -> str:
        return f"<SeminarApplication(seminar_id={self.seminar_id}, user_id='{self.user_id}')>"
