# smartpolice/models/clients/plan_change.py
"""
Modèle PlanChange - Historique des changements de plan.

Les changements de plan sont immédiats ; chaque changement laisse une
trace immuable (ancien plan, nouveau plan, auteur, motif).
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base

if TYPE_CHECKING:
    from smartpolice.models.clients.client import Client
    from smartpolice.models.clients.plan import Plan


class PlanChange(Base):
    """Trace d'un changement de plan d'un client."""

    __tablename__ = "plan_changes"
    __table_args__ = {
        "comment": "Historique des changements de plan (immuable)"
    }

    id: Mapped[int] = mapped_column(primary_key=True)

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    old_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("plans.id", ondelete="SET NULL"),
        nullable=True,
        doc="Plan avant le changement"
    )

    new_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("plans.id", ondelete="SET NULL"),
        nullable=True,
        doc="Plan après le changement"
    )

    changed_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Identifiant de l'acteur"
    )

    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    client: Mapped["Client"] = relationship("Client", back_populates="plan_changes")
    old_plan: Mapped[Optional["Plan"]] = relationship("Plan", foreign_keys=[old_plan_id])
    new_plan: Mapped[Optional["Plan"]] = relationship("Plan", foreign_keys=[new_plan_id])

    def __repr__(self) -> str:
        return f"<PlanChange(client_id={self.client_id}, {self.old_plan_id} -> {self.new_plan_id})>"
