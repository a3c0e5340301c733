# smartpolice/models/audit/audit_log.py
"""
Modèle AuditLog - Journal d'audit des actions du portail.

Ce module définit la table `audit_logs` qui trace toutes les actions
modifiant l'état du système (clients, staff, tickets, plans, affiliation).

IMPORTANT :
- Traçabilité obligatoire
- Logs immuables (pas de UPDATE/DELETE)
- Écriture "best effort" : un échec d'écriture n'annule jamais l'action tracée
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from smartpolice.database.base_class import Base


class AuditAction(str, Enum):
    """
    Types d'actions auditées.

    Catégories :
    - CLIENT : Clients et plans
    - TICKET : Consultations et consommation de tickets
    - GATHERING : Séminaires et événements
    - STAFF : Équipe
    - SERVICE : Catalogue de services et demandes
    - AFFILIATE : Parrainage et versements
    """
    # Clients et plans
    REGISTER_CLIENT = "REGISTER_CLIENT"
    UPDATE_CLIENT = "UPDATE_CLIENT"
    CHANGE_PLAN = "CHANGE_PLAN"
    SAVE_PLAN = "SAVE_PLAN"
    DELETE_PLAN = "DELETE_PLAN"

    # Tickets et consultations
    CONSUME_TICKET = "CONSUME_TICKET"
    CREATE_TICKET = "CREATE_TICKET"
    UPDATE_TICKET = "UPDATE_TICKET"
    INVITE_PARTICIPANT = "INVITE_PARTICIPANT"

    # Séminaires et événements
    CREATE_SEMINAR = "CREATE_SEMINAR"
    APPLY_SEMINAR = "APPLY_SEMINAR"
    CANCEL_SEMINAR_APPLICATION = "CANCEL_SEMINAR_APPLICATION"
    CREATE_EVENT = "CREATE_EVENT"
    APPLY_EVENT = "APPLY_EVENT"
    CANCEL_EVENT_APPLICATION = "CANCEL_EVENT_APPLICATION"

    # Catalogue de services
    CREATE_SERVICE = "CREATE_SERVICE"
    UPDATE_SERVICE = "UPDATE_SERVICE"
    DELETE_SERVICE = "DELETE_SERVICE"
    APPLY_SERVICE = "APPLY_SERVICE"
    PROCESS_APPLICATION = "PROCESS_APPLICATION"

    # Staff
    CREATE_STAFF = "CREATE_STAFF"
    APPROVE_STAFF = "APPROVE_STAFF"

    # Affiliation
    CREATE_AFFILIATE = "CREATE_AFFILIATE"
    CREATE_REFERRAL = "CREATE_REFERRAL"
    APPROVE_REFERRAL = "APPROVE_REFERRAL"
    REJECT_REFERRAL = "REJECT_REFERRAL"
    REQUEST_PAYOUT = "REQUEST_PAYOUT"
    PROCESS_PAYOUT = "PROCESS_PAYOUT"


class AuditLog(Base):
    """
    Entrée du journal d'audit.

    Attributes:
        id: Identifiant unique
        created_at: Horodatage de l'action
        actor_id: Identifiant de l'acteur (email ou "system")
        actor_name: Nom affiché de l'acteur
        action: Type d'action (AuditAction)
        details: Résumé lisible de l'action
        client_id: Client concerné (si applicable)

    Example:
        log = AuditLog.create_log(
            actor_id="admin@smartpolice.jp",
            actor_name="管理者",
            action=AuditAction.CHANGE_PLAN,
            details="Client #1 plan changed to plan_premium",
            client_id=1,
        )
    """

    __tablename__ = "audit_logs"
    __table_args__ = {
        "comment": "Journal d'audit des actions (immuable)"
    }

    # === Colonnes ===

    id: Mapped[int] = mapped_column(
        primary_key=True,
        doc="Identifiant unique du log"
    )

    # --- Quand ---

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        doc="Horodatage de l'action"
    )

    # --- Qui ---

    actor_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        doc="Identifiant de l'acteur"
    )

    actor_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Nom affiché de l'acteur"
    )

    # --- Quoi ---

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        doc="Type d'action effectuée"
    )

    details: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        doc="Résumé lisible de l'action"
    )

    # --- Sur quoi ---

    # Référence simple, sans clé étrangère
    client_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        index=True,
        doc="Client concerné (si applicable)"
    )

    # === Méthodes ===

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action='{self.action}', actor='{self.actor_id}')>"

    def __str__(self) -> str:
        client_info = f" on client {self.client_id}" if self.client_id else ""
        return f"[{self.created_at}] {self.action}{client_info}"

    @classmethod
    def create_log(
            cls,
            actor_id: str,
            actor_name: str,
            action: AuditAction | str,
            details: str = "",
            client_id: int | None = None,
    ) -> "AuditLog":
        """
        Factory method pour créer un log d'audit.

        Returns:
            Instance de AuditLog (non ajoutée à la session)
        """
        return cls(
            actor_id=actor_id,
            actor_name=actor_name,
            action=action.value if isinstance(action, AuditAction) else action,
            details=details,
            client_id=client_id,
        )
