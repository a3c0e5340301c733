# smartpolice/models/clients/client_user.py
"""
Modèle ClientUser - Utilisateurs côté client.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ClientUserRole
from smartpolice.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from smartpolice.models.clients.client import Client


class ClientUser(Base, TimestampMixin):
    """
    Utilisateur rattaché à une entreprise cliente.

    Peut être ajouté à un fil de consultation (gratuitement) ou
    s'inscrire aux séminaires et événements.
    """

    __tablename__ = "client_users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_client_users_email"),
        {"comment": "Utilisateurs des entreprises clientes"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Entreprise de rattachement"
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[ClientUserRole] = mapped_column(
        Enum(ClientUserRole, name="client_user_role_enum", create_constraint=True),
        nullable=False,
        default=ClientUserRole.CLIENT_STAFF,
    )

    client: Mapped["Client"] = relationship("Client", back_populates="users")

    def __repr__(self) -> str:
        return f"<ClientUser(id={self.id}, client_id={self.client_id}, role={self.role.value})>"
