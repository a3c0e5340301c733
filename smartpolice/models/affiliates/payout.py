# smartpolice/models/affiliates/payout.py
"""
Modèle Payout - Versements de commissions.

Aucun flux financier réel : le versement est une demande suivie
jusqu'à son marquage "payé" par un administrateur.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import PayoutStatus

if TYPE_CHECKING:
    from smartpolice.models.affiliates.affiliate import Affiliate
    from smartpolice.models.affiliates.referral import Referral


class Payout(Base):
    """Demande de versement regroupant des parrainages approuvés."""

    __tablename__ = "payouts"
    __table_args__ = {"comment": "Versements de commissions d'affiliation"}

    id: Mapped[int] = mapped_column(primary_key=True)

    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Montant total (JPY)"
    )

    status: Mapped[PayoutStatus] = mapped_column(
        Enum(PayoutStatus, name="payout_status_enum", create_constraint=True),
        nullable=False,
        default=PayoutStatus.PENDING,
    )

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    affiliate: Mapped["Affiliate"] = relationship("Affiliate", back_populates="payouts")

    referrals: Mapped[List["Referral"]] = relationship("Referral", back_populates="payout")

    def __repr__(self) -> str:
        return f"<Payout(id={self.id}, affiliate_id={self.affiliate_id}, amount={self.amount})>"
