"""
Routes FastAPI pour le module Tickets.

Endpoints pour :
- /clients/{id}/tickets/debit : Débit atomique
- /clients/{id}/tickets : Solde courant
- /clients/{id}/tickets/passbook : Livret reconstruit
- /clients/{id}/tickets/history : Historique du client
- /tickets/history : Historique global (back-office)
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.dependencies import PaginationParams, paginated_response, raise_for_result
from smartpolice.api.v1.tickets.schemas import (
    BalanceResponse,
    ConsumptionLogList,
    ConsumptionLogResponse,
    DebitRequest,
    DebitResponse,
    PassbookEntryResponse,
    PassbookResponse,
)
from smartpolice.core import clock
from smartpolice.core.auth import Actor, ensure_client_access, get_current_actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import ConsumptionType, Permission
from smartpolice.services.ledger import TicketLedger, next_grant_date

router = APIRouter(tags=["Tickets"])


# =============================================================================
# DÉBIT
# =============================================================================

@router.post(
    "/clients/{client_id}/tickets/debit",
    response_model=DebitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Débiter des tickets",
    description="Débit atomique ; 402 si le solde est insuffisant (aucune modification).",
)
def debit_tickets(
        client_id: int,
        data: DebitRequest,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Débite le solde d'un client."""
    ensure_client_access(actor, client_id, Permission.EDIT_TICKETS)

    ledger = TicketLedger(db)
    entry = raise_for_result(
        ledger.debit(
            client_id,
            data.type,
            data.description,
            related_id=data.related_id,
            amount=data.amount,
            actor=actor,
        )
    )
    client = ledger.get_client(client_id)
    return DebitResponse(
        log=ConsumptionLogResponse.model_validate(entry),
        remaining_tickets=client.remaining_tickets,
    )


# =============================================================================
# SOLDE ET LIVRET
# =============================================================================

@router.get(
    "/clients/{client_id}/tickets",
    response_model=BalanceResponse,
    summary="Solde de tickets",
)
def get_balance(
        client_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Solde courant, attributions mensuelles échues incluses."""
    ensure_client_access(actor, client_id, Permission.VIEW_TICKETS)

    client = raise_for_result(TicketLedger(db).balance(client_id))
    return BalanceResponse(
        client_id=client.id,
        company_name=client.company_name,
        remaining_tickets=client.remaining_tickets,
        plan_code=client.plan.code,
        plan_name=client.plan.name,
        monthly_tickets=client.plan.monthly_tickets,
        next_grant_date=next_grant_date(client.registration_date, clock.today()),
    )


@router.get(
    "/clients/{client_id}/tickets/passbook",
    response_model=PassbookResponse,
    summary="Livret de tickets",
    description="Rejoue attributions et débits ; lignes du plus récent au plus ancien.",
)
def get_passbook(
        client_id: int,
        as_of: Optional[date] = Query(None, description="Date de référence (défaut: aujourd'hui)"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Reconstruit le livret d'un client."""
    ensure_client_access(actor, client_id, Permission.VIEW_TICKETS)

    ledger = TicketLedger(db)
    client = raise_for_result(ledger.balance(client_id))
    passbook = raise_for_result(ledger.reconstruct_passbook(client_id, as_of))

    return PassbookResponse(
        client_id=passbook.client_id,
        as_of=passbook.as_of,
        closing_balance=passbook.closing_balance,
        remaining_tickets=client.remaining_tickets,
        total_granted=passbook.total_granted,
        total_consumed=passbook.total_consumed,
        entries=[PassbookEntryResponse.model_validate(e) for e in passbook.entries],
    )


# =============================================================================
# HISTORIQUE
# =============================================================================

@router.get(
    "/clients/{client_id}/tickets/history",
    response_model=ConsumptionLogList,
    summary="Historique de consommation d'un client",
)
def get_client_history(
        client_id: int,
        pagination: PaginationParams = Depends(),
        search: Optional[str] = Query(None, description="Recherche (motif, description)"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Écritures de consommation d'un client, plus récentes d'abord."""
    ensure_client_access(actor, client_id, Permission.VIEW_TICKETS)

    items, total = TicketLedger(db).consumption_history(
        page=pagination.page,
        size=pagination.size,
        client_id=client_id,
        search=search,
    )
    return paginated_response(
        items=[ConsumptionLogResponse.model_validate(i) for i in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.get(
    "/tickets/history",
    response_model=ConsumptionLogList,
    summary="Historique de consommation (tous clients)",
)
def get_all_history(
        pagination: PaginationParams = Depends(),
        search: Optional[str] = Query(None, description="Recherche (client, motif, description)"),
        client_id: Optional[int] = Query(None, description="Filtrer par client"),
        type: Optional[ConsumptionType] = Query(None, description="Filtrer par motif"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.VIEW_TICKETS)),
):
    """Vue back-office de toutes les consommations."""
    items, total = TicketLedger(db).consumption_history(
        page=pagination.page,
        size=pagination.size,
        client_id=client_id,
        consumption_type=type,
        search=search,
    )
    return paginated_response(
        items=[ConsumptionLogResponse.model_validate(i) for i in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )
