# smartpolice/models/catalog/service_application.py
"""
Modèle ServiceApplication - Demandes de service des clients.

Une demande est créée en attente par un utilisateur client, puis
approuvée ou rejetée une seule fois par le back-office.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ServiceApplicationStatus

if TYPE_CHECKING:
    from smartpolice.models.catalog.service import Service


class ServiceApplication(Base):
    """
    Demande d'un service par un utilisateur client.

    `service_name` et `client_name` sont figés à la création : la demande
    reste lisible si le service est supprimé ou le client renommé.
    """

    __tablename__ = "service_applications"
    __table_args__ = {"comment": "Demandes de services (en attente, approuvées, rejetées)"}

    id: Mapped[int] = mapped_column(primary_key=True)

    service_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("services.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    service_name: Mapped[str] = mapped_column(String(200), nullable=False)

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    client_name: Mapped[str] = mapped_column(String(200), nullable=False)

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    user_name: Mapped[str] = mapped_column(String(100), nullable=False)

    user_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    status: Mapped[ServiceApplicationStatus] = mapped_column(
        Enum(ServiceApplicationStatus, name="service_application_status_enum", create_constraint=True),
        nullable=False,
        default=ServiceApplicationStatus.PENDING,
        index=True,
    )

    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    processed_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Nom de l'administrateur ayant statué"
    )

    service: Mapped[Optional["Service"]] = relationship("Service", back_populates="applications")

    @property
    def is_pending(self) -> bool:
        return self.status == ServiceApplicationStatus.PENDING

    def __repr__(self) -> str:
        return (
            f"<ServiceApplication(id={self.id}, service_id={self.service_id}, "
            f"client_id={self.client_id}, status={self.status.value})>"
        )
