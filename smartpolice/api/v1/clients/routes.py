"""
Routes FastAPI pour le module Clients.

Endpoints pour :
- /clients : Inscription et liste
- /clients/{id} : Détail et profil
- /clients/{id}/plan : Changement de plan
- /clients/{id}/plan-history : Historique des plans
- /clients/{id}/permissions : Fonctionnalités du portail
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.clients.schemas import (
    ClientCreate,
    ClientList,
    ClientPermissionsResponse,
    ClientResponse,
    ClientUpdate,
    PlanChangeRequest,
    PlanChangeResponse,
)
from smartpolice.api.v1.clients.services import (
    ClientNotFoundError,
    ClientService,
    PlanNotFoundError,
)
from smartpolice.api.v1.dependencies import PaginationParams, paginated_response
from smartpolice.core.auth import Actor, ensure_client_access, get_current_actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import Permission

router = APIRouter(prefix="/clients", tags=["Clients"])


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _build_client_response(client) -> ClientResponse:
    """Construit la réponse pour un client."""
    return ClientResponse(
        id=client.id,
        company_name=client.company_name,
        contact_name=client.contact_name,
        contact_email=client.contact_email,
        phone=client.phone,
        address=client.address,
        industry=client.industry,
        plan_id=client.plan_id,
        plan_code=client.plan.code,
        plan_name=client.plan.name,
        registration_date=client.registration_date,
        remaining_tickets=client.remaining_tickets,
        created_at=client.created_at,
    )


# =============================================================================
# CLIENT ENDPOINTS
# =============================================================================

@router.get("", response_model=ClientList, summary="Liste des clients")
def list_clients(
        pagination: PaginationParams = Depends(),
        search: Optional[str] = Query(None, description="Recherche textuelle"),
        plan_id: Optional[int] = Query(None, description="Filtrer par plan"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.VIEW_CLIENTS)),
):
    """Liste les clients avec pagination et filtres."""
    items, total = ClientService(db).get_all(
        page=pagination.page,
        size=pagination.size,
        search=search,
        plan_id=plan_id,
    )
    return paginated_response(
        items=[_build_client_response(c) for c in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Inscrire un client",
)
def register_client(
        data: ClientCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_CLIENTS)),
):
    """Inscrit un client avec l'attribution initiale de son plan."""
    try:
        return _build_client_response(ClientService(db).register(data, actor=actor))
    except PlanNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{client_id}", response_model=ClientResponse, summary="Détails d'un client")
def get_client(
        client_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Récupère un client."""
    ensure_client_access(actor, client_id, Permission.VIEW_CLIENTS)
    try:
        return _build_client_response(ClientService(db).get_by_id(client_id))
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{client_id}", response_model=ClientResponse, summary="Modifier un client")
def update_client(
        client_id: int,
        data: ClientUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_CLIENTS)),
):
    """Met à jour le profil d'un client."""
    try:
        return _build_client_response(ClientService(db).update(client_id, data, actor=actor))
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# PLAN ENDPOINTS
# =============================================================================

@router.post(
    "/{client_id}/plan",
    response_model=ClientResponse,
    summary="Changer de plan",
    description="Changement immédiat, sans prorata, historisé.",
)
def change_client_plan(
        client_id: int,
        data: PlanChangeRequest,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_PLANS)),
):
    """Change le plan d'un client."""
    try:
        client = ClientService(db).change_plan(
            client_id, data.plan_id, actor=actor, reason=data.reason
        )
        return _build_client_response(client)
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PlanNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/{client_id}/plan-history",
    response_model=list[PlanChangeResponse],
    summary="Historique des plans",
)
def get_plan_history(
        client_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Changements de plan d'un client, plus récents d'abord."""
    ensure_client_access(actor, client_id, Permission.VIEW_CLIENTS)
    try:
        changes = ClientService(db).plan_history(client_id)
        return [PlanChangeResponse.model_validate(c) for c in changes]
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/{client_id}/permissions",
    response_model=ClientPermissionsResponse,
    summary="Fonctionnalités du portail",
)
def get_client_permissions(
        client_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Fonctionnalités du portail client ouvertes par le plan."""
    ensure_client_access(actor, client_id, Permission.VIEW_CLIENTS)
    service = ClientService(db)
    try:
        client = service.get_by_id(client_id)
        return ClientPermissionsResponse(
            client_id=client.id,
            plan_code=client.plan.code,
            permissions=service.portal_permissions(client_id),
        )
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
