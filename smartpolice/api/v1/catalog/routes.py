"""
Routes FastAPI pour le catalogue de services.

Endpoints pour :
- /services : Catalogue (lecture : plan VIEW_SERVICES ou back-office)
- /services/{id}/applications : Demande d'un service (utilisateurs client)
- /service-applications : Suivi et décision (back-office)
- /clients/{id}/service-applications : Demandes d'un client
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.catalog.schemas import (
    ServiceApplicationCreate,
    ServiceApplicationDecision,
    ServiceApplicationList,
    ServiceApplicationResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from smartpolice.api.v1.catalog.services import CatalogService, ServiceNotFoundError
from smartpolice.api.v1.dependencies import PaginationParams, paginated_response, raise_for_result
from smartpolice.core.auth import Actor, ensure_client_access, get_current_actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.clients.client import Client
from smartpolice.models.enums import (
    ClientPermission,
    Permission,
    ServiceApplicationStatus,
    ServiceCategory,
    ServiceStatus,
)
from smartpolice.services.permissions import has_client_permission, has_permission

router = APIRouter(tags=["Services"])


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _ensure_catalog_access(db: Session, actor: Actor) -> None:
    """
    Ouvre le catalogue aux clients dont le plan inclut VIEW_SERVICES,
    et au back-office ayant la permission VIEW_SERVICES.
    """
    if actor.is_client_side:
        client = db.get(Client, actor.client_id) if actor.client_id is not None else None
        if client is not None and has_client_permission(client.plan, ClientPermission.VIEW_SERVICES):
            return
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Fonctionnalité 'VIEW_SERVICES' non incluse dans le plan",
        )
    if not has_permission(actor.role, Permission.VIEW_SERVICES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Permission 'VIEW_SERVICES' requise",
        )


# =============================================================================
# CATALOGUE
# =============================================================================

@router.get("/services", response_model=list[ServiceResponse], summary="Catalogue des services")
def list_services(
        category: Optional[ServiceCategory] = Query(None, description="Filtrer par catégorie"),
        service_status: Optional[ServiceStatus] = Query(None, alias="status", description="Filtrer par statut"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Liste les services ; le portail client ne voit que les services actifs."""
    _ensure_catalog_access(db, actor)
    if actor.is_client_side:
        service_status = ServiceStatus.ACTIVE
    services = CatalogService(db).get_all(category=category, status=service_status)
    return [ServiceResponse.model_validate(s) for s in services]


@router.get("/services/{service_id}", response_model=ServiceResponse, summary="Détails d'un service")
def get_service(
        service_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Récupère un service."""
    _ensure_catalog_access(db, actor)
    try:
        service = CatalogService(db).get_by_id(service_id)
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if actor.is_client_side and not service.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Service {service_id} non trouvé")
    return ServiceResponse.model_validate(service)


@router.post(
    "/services",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un service",
)
def create_service(
        data: ServiceCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_SERVICES)),
):
    """Ajoute un service au catalogue."""
    return ServiceResponse.model_validate(CatalogService(db).create(data, actor=actor))


@router.put("/services/{service_id}", response_model=ServiceResponse, summary="Modifier un service")
def update_service(
        service_id: int,
        data: ServiceUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_SERVICES)),
):
    """Remplace les informations d'un service."""
    try:
        return ServiceResponse.model_validate(CatalogService(db).update(service_id, data, actor=actor))
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete(
    "/services/{service_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer un service",
)
def delete_service(
        service_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.DELETE_SERVICES)),
):
    """Supprime un service ; les demandes existantes sont conservées."""
    try:
        CatalogService(db).delete(service_id, actor=actor)
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# DEMANDES
# =============================================================================

@router.post(
    "/services/{service_id}/applications",
    response_model=ServiceApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Demander un service",
    description="Réservé aux utilisateurs client ; 409 si une demande est déjà en attente.",
)
def apply_for_service(
        service_id: int,
        data: ServiceApplicationCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Crée une demande en attente au nom de l'utilisateur connecté."""
    if not actor.is_client_side:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Réservé aux utilisateurs client",
        )
    _ensure_catalog_access(db, actor)

    application = raise_for_result(CatalogService(db).apply(
        service_id,
        actor.client_id,
        user_id=actor.actor_id,
        user_name=actor.name,
        user_email=data.user_email,
        notes=data.notes,
        actor=actor,
    ))
    return ServiceApplicationResponse.model_validate(application)


@router.get(
    "/service-applications",
    response_model=ServiceApplicationList,
    summary="Liste des demandes de services",
)
def list_service_applications(
        pagination: PaginationParams = Depends(),
        application_status: Optional[ServiceApplicationStatus] = Query(None, alias="status"),
        client_id: Optional[int] = Query(None, description="Filtrer par client"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
):
    """Liste les demandes, plus récentes d'abord."""
    items, total = CatalogService(db).list_applications(
        page=pagination.page,
        size=pagination.size,
        status=application_status,
        client_id=client_id,
    )
    return paginated_response(
        items=[ServiceApplicationResponse.model_validate(a) for a in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.get(
    "/clients/{client_id}/service-applications",
    response_model=ServiceApplicationList,
    summary="Demandes de services d'un client",
)
def list_client_service_applications(
        client_id: int,
        pagination: PaginationParams = Depends(),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Suivi des demandes depuis le portail client."""
    ensure_client_access(actor, client_id, Permission.VIEW_APPLICATIONS)
    items, total = CatalogService(db).list_applications(
        page=pagination.page,
        size=pagination.size,
        client_id=client_id,
    )
    return paginated_response(
        items=[ServiceApplicationResponse.model_validate(a) for a in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.post(
    "/service-applications/{application_id}/process",
    response_model=ServiceApplicationResponse,
    summary="Approuver ou rejeter une demande",
    description="Décision unique ; 409 ALREADY_PROCESSED si la demande a déjà été traitée.",
)
def process_service_application(
        application_id: int,
        data: ServiceApplicationDecision,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.PROCESS_APPLICATIONS)),
):
    """Statue sur une demande en attente."""
    application = raise_for_result(
        CatalogService(db).process_application(application_id, data.status, actor=actor)
    )
    return ServiceApplicationResponse.model_validate(application)
