# smartpolice/models/affiliates/referral.py
"""
Modèle Referral - Clients apportés par un partenaire.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ReferralStatus

if TYPE_CHECKING:
    from smartpolice.models.affiliates.affiliate import Affiliate
    from smartpolice.models.affiliates.payout import Payout


class Referral(Base):
    """
    Parrainage d'une entreprise par un partenaire.

    Un parrainage approuvé et non encore rattaché à un versement
    (`payout_id` NULL) est éligible à la commission.
    """

    __tablename__ = "referrals"
    __table_args__ = {"comment": "Parrainages (commission par parrainage approuvé)"}

    id: Mapped[int] = mapped_column(primary_key=True)

    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    client_name: Mapped[str] = mapped_column(String(200), nullable=False)

    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )

    status: Mapped[ReferralStatus] = mapped_column(
        Enum(ReferralStatus, name="referral_status_enum", create_constraint=True),
        nullable=False,
        default=ReferralStatus.PENDING,
        index=True,
    )

    payout_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("payouts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Versement ayant réglé la commission"
    )

    referred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    affiliate: Mapped["Affiliate"] = relationship("Affiliate", back_populates="referrals")
    payout: Mapped[Optional["Payout"]] = relationship("Payout", back_populates="referrals")

    def __repr__(self) -> str:
        return f"<Referral(id={self.id}, affiliate_id={self.affiliate_id}, status={self.status.value})>"
