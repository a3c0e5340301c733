# smartpolice/models/affiliates/affiliate.py
"""
Modèle Affiliate - Partenaires apporteurs d'affaires.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from smartpolice.models.affiliates.referral import Referral
    from smartpolice.models.affiliates.payout import Payout


class Affiliate(Base, TimestampMixin):
    """Partenaire rémunéré à la commission par client apporté."""

    __tablename__ = "affiliates"
    __table_args__ = (
        UniqueConstraint("email", name="uq_affiliates_email"),
        UniqueConstraint("referral_code", name="uq_affiliates_referral_code"),
        {"comment": "Partenaires d'affiliation"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    referral_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Code de parrainage communiqué aux prospects"
    )

    bank_account: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Coordonnées de versement (texte libre)"
    )

    referrals: Mapped[List["Referral"]] = relationship(
        "Referral",
        back_populates="affiliate",
        cascade="all, delete-orphan",
        order_by="Referral.id",
    )

    payouts: Mapped[List["Payout"]] = relationship(
        "Payout",
        back_populates="affiliate",
        cascade="all, delete-orphan",
        order_by="Payout.id",
    )

    def __repr__(self) -> str:
        return f"<Affiliate(id={self.id}, code='{self.referral_code}')>"
