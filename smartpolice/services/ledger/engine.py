"""
Registre de tickets (ledger).

Responsabilités :
- Débit atomique du solde d'un client (vérification + décrément en une étape)
- Intégration paresseuse des attributions mensuelles dans le solde courant
- Reconstruction du livret (passbook) à partir du plan et du journal
- Consultation de l'historique des consommations

Concurrence :
- Toute modification du solde se fait sous le verrou du client
  (resource_locks, portée CLIENT) ET par un UPDATE conditionnel
  `remaining_tickets >= amount` : deux débits concurrents sur un solde
  de 1 ne peuvent pas réussir tous les deux.
- L'écriture d'audit est faite après libération du verrou.
"""
import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import select, func, update, or_
from sqlalchemy.orm import Session

from smartpolice.core import clock
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.core.locks import LockScope, resource_locks
from smartpolice.core.results import ErrorCode, OperationResult
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.clients.client import Client
from smartpolice.models.enums import ConsumptionType, consumption_types_matching
from smartpolice.models.tickets.consumption_log import TicketConsumptionLog
from smartpolice.services.audit.recorder import AuditRecorder
from smartpolice.services.ledger.passbook import Passbook, build_passbook
from smartpolice.services.ledger.schedule import monthly_grant_dates

logger = logging.getLogger(__name__)

CLIENT_NOT_FOUND_MESSAGE = "クライアントが見つかりません。"


def validate_amount(amount: int) -> None:
    """Le montant d'un débit est un entier strictement positif."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"Le montant du débit doit être un entier positif (reçu: {amount!r})")


class TicketLedger:
    """
    Service du registre de tickets.

    Usage:
        ledger = TicketLedger(db)
        result = ledger.debit(client_id, ConsumptionType.NEW_CONSULTATION, "相談: ...")
        if not result:
            print(result.message)
    """

    def __init__(self, db: Session, audit: Optional[AuditRecorder] = None):
        self.db = db
        self.audit = audit or AuditRecorder(db)

    # =========================================================================
    # VERROU ET LECTURE
    # =========================================================================

    @contextmanager
    def hold(self, client_id: int) -> Iterator[None]:
        """Section critique sur le solde d'un client."""
        with resource_locks.hold(LockScope.CLIENT, client_id):
            yield

    def get_client(self, client_id: int) -> Optional[Client]:
        """Relit le client depuis la base (ignore le cache de session)."""
        return self.db.get(Client, client_id, populate_existing=True)

    # =========================================================================
    # ATTRIBUTIONS MENSUELLES
    # =========================================================================

    def accrue_grants(self, client: Client, as_of: Optional[date] = None) -> int:
        """
        Intègre au solde les attributions mensuelles échues.

        Doit être appelé sous le verrou du client. Valide immédiatement
        (commit) si le solde a changé.

        Returns:
            Nombre de tickets ajoutés
        """
        as_of = as_of or clock.today()
        due = monthly_grant_dates(
            client.registration_date,
            as_of,
            after=client.grants_applied_through,
        )
        if not due:
            return 0

        granted = len(due) * client.plan.monthly_tickets
        self.db.execute(
            update(Client)
            .where(Client.id == client.id)
            .values(
                remaining_tickets=Client.remaining_tickets + granted,
                grants_applied_through=due[-1],
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(client)

        logger.info(
            f"🎟️ Client #{client.id}: {len(due)} attribution(s) mensuelle(s) intégrée(s) "
            f"(+{granted}, solde {client.remaining_tickets})"
        )
        return granted

    def balance(self, client_id: int, as_of: Optional[date] = None) -> OperationResult[Client]:
        """Solde courant du client, attributions échues incluses."""
        with self.hold(client_id):
            client = self.get_client(client_id)
            if client is None:
                return OperationResult.failure(ErrorCode.NOT_FOUND, CLIENT_NOT_FOUND_MESSAGE)
            self.accrue_grants(client, as_of)
        return OperationResult.success(client)

    # =========================================================================
    # DÉBIT
    # =========================================================================

    def apply_debit(
            self,
            client_id: int,
            consumption_type: ConsumptionType,
            description: str,
            related_id: Optional[str] = None,
            amount: int = 1,
    ) -> OperationResult[TicketConsumptionLog]:
        """
        Débite le solde et ajoute l'écriture de consommation, SANS valider.

        Réservé aux passerelles de consommation qui tiennent déjà le
        verrou du client (`hold`) et valident la transaction après avoir
        créé l'objet dépendant. Aucune modification en cas d'échec.
        """
        validate_amount(amount)

        client = self.get_client(client_id)
        if client is None:
            return OperationResult.failure(ErrorCode.NOT_FOUND, CLIENT_NOT_FOUND_MESSAGE)

        self.accrue_grants(client)

        # Vérification et décrément en une seule instruction
        result = self.db.execute(
            update(Client)
            .where(Client.id == client_id, Client.remaining_tickets >= amount)
            .values(remaining_tickets=Client.remaining_tickets - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(
                f"⛔ Débit refusé pour le client #{client_id}: "
                f"solde {client.remaining_tickets} < {amount}"
            )
            return OperationResult.failure(ErrorCode.INSUFFICIENT_TICKETS)

        entry = TicketConsumptionLog(
            client_id=client_id,
            consumed_at=clock.utcnow(),
            consumption_type=consumption_type,
            description=description,
            ticket_cost=amount,
            related_id=related_id,
        )
        self.db.add(entry)
        self.db.flush()
        self.db.refresh(client)
        return OperationResult.success(entry)

    def debit(
            self,
            client_id: int,
            consumption_type: ConsumptionType,
            description: str,
            related_id: Optional[str] = None,
            amount: int = 1,
            actor: Actor = SYSTEM_ACTOR,
    ) -> OperationResult[TicketConsumptionLog]:
        """
        Débit atomique de `amount` tickets.

        Si le solde est suffisant : décrément, écriture de consommation,
        validation, puis trace d'audit. Sinon : aucune modification et
        échec INSUFFICIENT_TICKETS.

        Raises:
            ValueError: Si amount n'est pas un entier strictement positif
        """
        with self.hold(client_id):
            result = self.apply_debit(
                client_id, consumption_type, description, related_id, amount
            )
            if not result:
                return result
            self.db.commit()

        self.record_debit(result.value, actor)
        return result

    def record_debit(self, entry: TicketConsumptionLog, actor: Actor) -> None:
        """Trace d'audit d'un débit validé."""
        logger.info(
            f"🎟️ Client #{entry.client_id}: -{entry.ticket_cost} ticket(s) "
            f"({entry.consumption_type.value}, ref={entry.related_id})"
        )
        self.audit.record_for(
            actor,
            AuditAction.CONSUME_TICKET,
            f"Client #{entry.client_id} consumed {entry.ticket_cost} ticket(s) for "
            f"{entry.consumption_type.label}. Desc: {entry.description}",
            client_id=entry.client_id,
        )

    # =========================================================================
    # LIVRET ET HISTORIQUE
    # =========================================================================

    def reconstruct_passbook(
            self,
            client_id: int,
            as_of: Optional[date] = None,
    ) -> OperationResult[Passbook]:
        """
        Reconstruit le livret du client (lecture seule).

        La lecture du client et de son journal se fait sous le verrou
        du client pour une vue cohérente à un instant donné.
        """
        as_of = as_of or clock.today()
        with self.hold(client_id):
            client = self.get_client(client_id)
            if client is None:
                return OperationResult.failure(ErrorCode.NOT_FOUND, CLIENT_NOT_FOUND_MESSAGE)
            logs = self.db.execute(
                select(TicketConsumptionLog)
                .where(TicketConsumptionLog.client_id == client_id)
                .order_by(TicketConsumptionLog.consumed_at, TicketConsumptionLog.id)
            ).scalars().all()
            passbook = build_passbook(client, client.plan, logs, as_of)
        return OperationResult.success(passbook)

    def consumption_history(
            self,
            page: int = 1,
            size: int = 20,
            client_id: Optional[int] = None,
            consumption_type: Optional[ConsumptionType] = None,
            search: Optional[str] = None,
    ) -> Tuple[List[TicketConsumptionLog], int]:
        """Écritures de consommation, plus récentes d'abord, avec filtres."""
        query = select(TicketConsumptionLog)

        if client_id is not None:
            query = query.where(TicketConsumptionLog.client_id == client_id)

        if consumption_type is not None:
            query = query.where(TicketConsumptionLog.consumption_type == consumption_type)

        if search:
            conditions = [TicketConsumptionLog.description.ilike(f"%{search}%")]
            matching_types = consumption_types_matching(search)
            if matching_types:
                conditions.append(TicketConsumptionLog.consumption_type.in_(matching_types))
            conditions.append(
                TicketConsumptionLog.client_id.in_(
                    select(Client.id).where(Client.company_name.ilike(f"%{search}%"))
                )
            )
            query = query.where(or_(*conditions))

        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        query = query.order_by(
            TicketConsumptionLog.consumed_at.desc(),
            TicketConsumptionLog.id.desc(),
        ).offset((page - 1) * size).limit(size)

        items = self.db.execute(query).scalars().all()
        return list(items), total
