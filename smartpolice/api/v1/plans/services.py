"""
Services métier pour le module Plans.

Contient la logique CRUD des offres commerciales.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from smartpolice.api.v1.plans.schemas import PlanCreate, PlanUpdate
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.core.results import ErrorCode, OperationResult
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.clients.client import Client
from smartpolice.models.clients.plan import Plan
from smartpolice.services.audit.recorder import AuditRecorder

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class PlanNotFoundError(Exception):
    """Plan non trouvé."""
    pass


class PlanCodeExistsError(Exception):
    """Code de plan déjà utilisé."""
    pass


# =============================================================================
# SERVICE
# =============================================================================

class PlanService:
    """Service de gestion des plans."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditRecorder(db)

    def get_all(self, public_only: bool = False) -> List[Plan]:
        query = select(Plan)
        if public_only:
            query = query.where(Plan.is_public.is_(True))
        query = query.order_by(Plan.monthly_fee, Plan.id)
        return list(self.db.execute(query).scalars().all())

    def get_by_id(self, plan_id: int) -> Plan:
        plan = self.db.get(Plan, plan_id)
        if not plan:
            raise PlanNotFoundError(f"Plan {plan_id} non trouvé")
        return plan

    def get_by_code(self, code: str) -> Optional[Plan]:
        return self.db.execute(
            select(Plan).where(Plan.code == code)
        ).scalar_one_or_none()

    def create(self, data: PlanCreate, actor: Actor = SYSTEM_ACTOR) -> Plan:
        """Crée un plan."""
        if self.get_by_code(data.code):
            raise PlanCodeExistsError(f"Le code '{data.code}' existe déjà")

        values = data.model_dump()
        values["permissions"] = [p.value for p in data.permissions]
        plan = Plan(**values)
        self.db.add(plan)
        self.db.commit()

        self.audit.record_for(actor, AuditAction.SAVE_PLAN, f"Plan {plan.code} created")
        return plan

    def update(self, plan_id: int, data: PlanUpdate, actor: Actor = SYSTEM_ACTOR) -> Plan:
        """Modifie un plan en place (pas de versionnement)."""
        plan = self.get_by_id(plan_id)

        values = data.model_dump()
        values["permissions"] = [p.value for p in data.permissions]
        for field, value in values.items():
            setattr(plan, field, value)
        self.db.commit()

        logger.info(
            f"📝 Plan {plan.code} modifié "
            f"(initial={plan.initial_tickets}, mensuel={plan.monthly_tickets})"
        )
        self.audit.record_for(actor, AuditAction.SAVE_PLAN, f"Plan {plan.code} updated")
        return plan

    def count_clients(self, plan_id: int) -> int:
        return self.db.execute(
            select(func.count()).select_from(Client).where(Client.plan_id == plan_id)
        ).scalar() or 0

    def delete(self, plan_id: int, actor: Actor = SYSTEM_ACTOR) -> OperationResult:
        """
        Supprime un plan.

        Échoue avec PLAN_IN_USE si au moins un client y est rattaché.
        """
        plan = self.db.get(Plan, plan_id)
        if plan is None:
            return OperationResult.failure(ErrorCode.NOT_FOUND, "プランが見つかりません。")

        in_use = self.count_clients(plan_id)
        if in_use:
            logger.info(f"⛔ Suppression du plan {plan.code} refusée: {in_use} client(s)")
            return OperationResult.failure(ErrorCode.PLAN_IN_USE)

        code = plan.code
        self.db.delete(plan)
        self.db.commit()

        self.audit.record_for(actor, AuditAction.DELETE_PLAN, f"Plan {code} deleted")
        return OperationResult.success(message="プランを削除しました。")
