"""
Services métier pour le module Clients.

Contient la logique pour :
- Inscription (attribution initiale des tickets du plan)
- Modification du profil
- Changement de plan immédiat, historisé
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from smartpolice.api.v1.clients.schemas import ClientCreate, ClientUpdate
from smartpolice.core import clock
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.clients.client import Client
from smartpolice.models.clients.plan import Plan
from smartpolice.models.clients.plan_change import PlanChange
from smartpolice.models.enums import ClientPermission
from smartpolice.services.audit.recorder import AuditRecorder
from smartpolice.services.ledger import TicketLedger
from smartpolice.services.permissions import has_client_permission

logger = logging.getLogger(__name__)

FREE_PLAN_CODE = "plan_free"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ClientNotFoundError(Exception):
    """Client non trouvé."""
    pass


class PlanNotFoundError(Exception):
    """Plan non trouvé."""
    pass


# =============================================================================
# SERVICE
# =============================================================================

class ClientService:
    """Service de gestion des clients."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditRecorder(db)
        self.ledger = TicketLedger(db, audit=self.audit)

    # =========================================================================
    # LECTURE
    # =========================================================================

    def get_all(
            self,
            page: int = 1,
            size: int = 20,
            search: Optional[str] = None,
            plan_id: Optional[int] = None,
    ) -> Tuple[List[Client], int]:
        """Liste les clients avec pagination et filtres."""
        query = select(Client)

        if search:
            search_term = f"%{search}%"
            query = query.where(
                Client.company_name.ilike(search_term)
                | Client.contact_name.ilike(search_term)
            )

        if plan_id is not None:
            query = query.where(Client.plan_id == plan_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        query = query.order_by(Client.id).offset((page - 1) * size).limit(size)
        items = self.db.execute(query).scalars().all()
        # Soldes à jour des attributions échues
        return [self.ledger.balance(client.id).value for client in items], total

    def get_by_id(self, client_id: int) -> Client:
        """Client avec son solde à jour (attributions échues intégrées)."""
        result = self.ledger.balance(client_id)
        if not result:
            raise ClientNotFoundError(f"Client {client_id} non trouvé")
        return result.value

    def _get_plan(self, plan_id: Optional[int]) -> Plan:
        if plan_id is None:
            plan = self.db.execute(
                select(Plan).where(Plan.code == FREE_PLAN_CODE)
            ).scalar_one_or_none()
            if not plan:
                raise PlanNotFoundError(f"Plan gratuit '{FREE_PLAN_CODE}' non configuré")
            return plan

        plan = self.db.get(Plan, plan_id)
        if not plan:
            raise PlanNotFoundError(f"Plan {plan_id} non trouvé")
        return plan

    # =========================================================================
    # ÉCRITURE
    # =========================================================================

    def register(
            self,
            data: ClientCreate,
            actor: Actor = SYSTEM_ACTOR,
            registration_date: Optional[date] = None,
    ) -> Client:
        """
        Inscrit un client.

        Le solde initial est l'attribution initiale du plan ; les
        attributions mensuelles échues sont intégrées au premier accès.
        """
        plan = self._get_plan(data.plan_id)

        client = Client(
            company_name=data.company_name,
            contact_name=data.contact_name,
            contact_email=data.contact_email,
            phone=data.phone,
            address=data.address,
            industry=data.industry,
            plan_id=plan.id,
            registration_date=registration_date or clock.today(),
            remaining_tickets=plan.initial_tickets,
        )
        self.db.add(client)
        self.db.commit()

        logger.info(f"✅ Client inscrit: {client.company_name} ({plan.code}, {plan.initial_tickets} tickets)")
        self.audit.record_for(
            actor,
            AuditAction.REGISTER_CLIENT,
            f"Client {client.company_name} registered on {plan.code}",
            client_id=client.id,
        )
        return client

    def update(self, client_id: int, data: ClientUpdate, actor: Actor = SYSTEM_ACTOR) -> Client:
        """Met à jour le profil d'un client."""
        client = self.get_by_id(client_id)

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(client, field, value)
        self.db.commit()

        self.audit.record_for(
            actor,
            AuditAction.UPDATE_CLIENT,
            f"Client #{client.id} updated: {', '.join(sorted(changes)) or '-'}",
            client_id=client.id,
        )
        return client

    def change_plan(
            self,
            client_id: int,
            plan_id: int,
            actor: Actor = SYSTEM_ACTOR,
            reason: Optional[str] = None,
    ) -> Client:
        """
        Change immédiatement le plan d'un client.

        Les attributions échues sous l'ancien plan sont intégrées avant le
        changement. Pas de prorata.
        """
        new_plan = self._get_plan(plan_id)

        with self.ledger.hold(client_id):
            client = self.ledger.get_client(client_id)
            if client is None:
                raise ClientNotFoundError(f"Client {client_id} non trouvé")

            self.ledger.accrue_grants(client)

            old_plan = client.plan
            client.plan_id = new_plan.id
            client.plan = new_plan
            self.db.add(PlanChange(
                client_id=client.id,
                old_plan_id=old_plan.id,
                new_plan_id=new_plan.id,
                changed_by=actor.actor_id,
                reason=reason,
                changed_at=clock.utcnow(),
            ))
            self.db.commit()

        logger.info(f"🔄 Client #{client.id}: plan {old_plan.code} -> {new_plan.code}")
        self.audit.record_for(
            actor,
            AuditAction.CHANGE_PLAN,
            f"Client #{client.id} plan changed from {old_plan.code} to {new_plan.code}",
            client_id=client.id,
        )
        return client

    def plan_history(self, client_id: int) -> List[PlanChange]:
        """Changements de plan, plus récents d'abord."""
        self.get_by_id(client_id)
        return list(self.db.execute(
            select(PlanChange)
            .where(PlanChange.client_id == client_id)
            .order_by(PlanChange.changed_at.desc(), PlanChange.id.desc())
        ).scalars().all())

    def portal_permissions(self, client_id: int) -> List[ClientPermission]:
        """Fonctionnalités du portail ouvertes par le plan courant."""
        client = self.get_by_id(client_id)
        return [p for p in ClientPermission if has_client_permission(client.plan, p)]
