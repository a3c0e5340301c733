# smartpolice/models/gatherings/base.py
"""
Colonnes communes aux séminaires et aux événements.

Les deux entités partagent la même mécanique d'inscription : contrôle de
capacité, unicité par utilisateur, débit d'un ticket si le lieu est en ligne.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from smartpolice.core.config import settings
from smartpolice.models.enums import GatheringStatus


class GatheringMixin:
    """Séminaire ou événement avec capacité limitée."""

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    starts_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Date et heure de début"
    )

    location: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Lieu ; une valeur en ligne rend l'inscription payante (1 ticket)"
    )

    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Nombre maximal d'inscrits"
    )

    status: Mapped[GatheringStatus] = mapped_column(
        Enum(GatheringStatus, name="gathering_status_enum", create_constraint=True),
        nullable=False,
        default=GatheringStatus.OPEN,
    )

    @property
    def is_online(self) -> bool:
        return settings.is_online_location(self.location)

    @property
    def is_open(self) -> bool:
        return self.status == GatheringStatus.OPEN


class ApplicationMixin:
    """Inscription d'un utilisateur (unique par utilisateur et par entité)."""

    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Client débité si l'inscription est payante"
    )

    user_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Identité de l'inscrit"
    )

    user_name: Mapped[str] = mapped_column(String(100), nullable=False)

    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    ticket_consumed: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
        doc="True si un ticket a été débité pour cette inscription"
    )

    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
