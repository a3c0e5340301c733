# smartpolice/models/staff/staff.py
"""
Modèle Staff - Membres de l'équipe SmartPolice.

Chaque membre a deux rôles distincts :
- `role` : fonction métier (gestionnaire de crise, avocat, expert-comptable...)
  qui détermine son rôle de participant dans une consultation
- `access_role` : rôle d'accès au back-office (SUPERADMIN, ADMIN, STAFF)
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from smartpolice.database.base_class import Base
from smartpolice.models.enums import AccessRole, ApprovalStatus, ParticipantRole, StaffRole
from smartpolice.models.mixins import TimestampMixin


class Staff(Base, TimestampMixin):
    """
    Membre du staff.

    Un membre doit être validé (APPROVED) pour être affecté à une
    consultation ou y être invité.
    """

    __tablename__ = "staff"
    __table_args__ = (
        UniqueConstraint("email", name="uq_staff_email"),
        {"comment": "Membres de l'équipe (consultants, spécialistes, administrateurs)"},
    )

    # ========================
    # Clé primaire
    # ========================
    id: Mapped[int] = mapped_column(primary_key=True)

    # ========================
    # Identité
    # ========================
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # ========================
    # Rôles
    # ========================
    role: Mapped[StaffRole] = mapped_column(
        Enum(StaffRole, name="staff_role_enum", create_constraint=True),
        nullable=False,
        doc="Fonction métier",
        info={"description": "LEGAL et ACCOUNTING sont des spécialistes facturés à l'invitation"}
    )

    access_role: Mapped[AccessRole] = mapped_column(
        Enum(AccessRole, name="access_role_enum", create_constraint=True),
        nullable=False,
        default=AccessRole.STAFF,
        doc="Rôle d'accès au back-office"
    )

    # ========================
    # Validation
    # ========================
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus, name="approval_status_enum", create_constraint=True),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )

    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # === Méthodes ===

    def __repr__(self) -> str:
        return f"<Staff(id={self.id}, name='{self.name}', role={self.role.value})>"

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    @property
    def participant_role(self) -> ParticipantRole:
        """Rôle tenu lorsqu'il rejoint un fil de consultation."""
        return ParticipantRole.from_staff_role(self.role)
