"""
Enregistreur d'audit.

Point de passage unique de toutes les actions modifiant l'état du système.
Appelé de manière synchrone APRÈS la validation (commit) de l'action tracée :
l'écriture est "best effort" et un échec est consigné dans les logs
applicatifs sans jamais remonter à l'appelant.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from smartpolice.core.auth.actor import Actor
from smartpolice.models.audit.audit_log import AuditAction, AuditLog

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Écriture et consultation du journal d'audit."""

    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # ÉCRITURE
    # =========================================================================

    def record(
            self,
            actor_id: str,
            actor_name: str,
            action: AuditAction | str,
            details: str,
            client_id: Optional[int] = None,
    ) -> Optional[AuditLog]:
        """
        Ajoute une entrée immuable au journal et la valide.

        Returns:
            L'entrée créée, ou None si l'écriture a échoué
        """
        action_name = action.value if isinstance(action, AuditAction) else action
        try:
            entry = AuditLog.create_log(
                actor_id=actor_id,
                actor_name=actor_name,
                action=action,
                details=details,
                client_id=client_id,
            )
            self.db.add(entry)
            self.db.commit()
        except Exception:
            # Best effort : l'action tracée est déjà validée
            self.db.rollback()
            logger.exception(
                f"❌ Échec d'écriture du journal d'audit "
                f"(action={action_name}, actor={actor_id}, client={client_id})"
            )
            return None
        return entry

    def record_for(
            self,
            actor: Actor,
            action: AuditAction | str,
            details: str,
            client_id: Optional[int] = None,
    ) -> Optional[AuditLog]:
        """Raccourci prenant un Actor."""
        return self.record(actor.actor_id, actor.name, action, details, client_id)

    # =========================================================================
    # CONSULTATION
    # =========================================================================

    def search(
            self,
            page: int = 1,
            size: int = 50,
            search: Optional[str] = None,
            action: Optional[str] = None,
            client_id: Optional[int] = None,
            date_from: Optional[datetime] = None,
            date_to: Optional[datetime] = None,
    ) -> Tuple[List[AuditLog], int]:
        """Liste les logs d'audit (plus récents d'abord) avec pagination et filtres."""
        query = select(AuditLog)

        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    AuditLog.actor_name.ilike(search_term),
                    AuditLog.actor_id.ilike(search_term),
                    AuditLog.action.ilike(search_term),
                    AuditLog.details.ilike(search_term),
                )
            )

        if action:
            query = query.where(AuditLog.action == action)

        if client_id is not None:
            query = query.where(AuditLog.client_id == client_id)

        if date_from:
            query = query.where(AuditLog.created_at >= date_from)

        if date_to:
            query = query.where(AuditLog.created_at <= date_to)

        # Count
        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        # Tri par date décroissante
        query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())

        # Pagination
        query = query.offset((page - 1) * size).limit(size)

        items = self.db.execute(query).scalars().all()
        return list(items), total
