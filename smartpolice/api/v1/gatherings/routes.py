"""
Routes FastAPI pour les séminaires et les événements.

Les deux modules exposent les mêmes endpoints :
- /{seminars|events} : Catalogue et création
- /{seminars|events}/{id} : Détail
- /{seminars|events}/{id}/applications : Inscription (1 ticket si en ligne) et liste
- /{seminars|events}/{id}/applications/{user_id} : Annulation (sans remboursement)
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.dependencies import raise_for_result
from smartpolice.api.v1.gatherings.schemas import (
    ApplicationCreate,
    ApplicationList,
    ApplicationResponse,
    ApplyResponse,
    GatheringCreate,
    GatheringResponse,
)
from smartpolice.api.v1.gatherings.services import GatheringNotFoundError, GatheringService
from smartpolice.core.auth import Actor, get_current_actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import GatheringStatus, Permission
from smartpolice.services.permissions import has_permission
from smartpolice.services.registration import EVENT, SEMINAR, Applicant, GatheringKind


def _build_response(entity, applicant_count: int) -> GatheringResponse:
    """Construit la réponse pour un séminaire ou un événement."""
    return GatheringResponse(
        id=entity.id,
        title=entity.title,
        description=entity.description,
        category=entity.category,
        starts_at=entity.starts_at,
        location=entity.location,
        capacity=entity.capacity,
        status=entity.status,
        is_online=entity.is_online,
        applicant_count=applicant_count,
    )


def _forbidden(permission: Permission) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Permission '{permission.value}' requise",
    )


def build_router(
        kind: GatheringKind,
        prefix: str,
        tag: str,
        view_permission: Permission,
        edit_permission: Permission,
) -> APIRouter:
    """Construit le router d'un type d'entité."""
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", response_model=list[GatheringResponse], summary=f"Liste ({tag})")
    def list_gatherings(
            status_filter: Optional[GatheringStatus] = Query(None, alias="status"),
            db: Session = Depends(get_db),
            actor: Actor = Depends(get_current_actor),
    ):
        service = GatheringService(db, kind)
        counts = service.applicant_counts()
        return [_build_response(e, counts.get(e.id, 0)) for e in service.get_all(status_filter)]

    @router.get("/{entity_id}", response_model=GatheringResponse, summary=f"Détails ({tag})")
    def get_gathering(
            entity_id: int,
            db: Session = Depends(get_db),
            actor: Actor = Depends(get_current_actor),
    ):
        service = GatheringService(db, kind)
        try:
            entity = service.get_by_id(entity_id)
        except GatheringNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        return _build_response(entity, service.registrations.count_applications(entity_id))

    @router.post(
        "",
        response_model=GatheringResponse,
        status_code=status.HTTP_201_CREATED,
        summary=f"Créer ({tag})",
    )
    def create_gathering(
            data: GatheringCreate,
            db: Session = Depends(get_db),
            actor: Actor = Depends(require_permission(edit_permission)),
    ):
        entity = GatheringService(db, kind).create(data, actor=actor)
        return _build_response(entity, 0)

    @router.post(
        "/{entity_id}/applications",
        response_model=ApplyResponse,
        status_code=status.HTTP_201_CREATED,
        summary=f"S'inscrire ({tag})",
        description="Débite 1 ticket si le lieu est en ligne ; 409 si complet ou doublon.",
    )
    def apply(
            entity_id: int,
            data: ApplicationCreate,
            db: Session = Depends(get_db),
            actor: Actor = Depends(get_current_actor),
    ):
        if actor.is_client_side:
            # Un utilisateur client ne s'inscrit qu'en son nom
            applicant = Applicant(
                user_id=actor.actor_id,
                user_name=actor.name,
                company_name=data.company_name,
                client_id=actor.client_id,
            )
        elif has_permission(actor.role, edit_permission):
            if not data.user_id or not data.user_name:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="user_id et user_name sont requis",
                )
            applicant = Applicant(
                user_id=data.user_id,
                user_name=data.user_name,
                company_name=data.company_name,
                client_id=data.client_id,
            )
        else:
            raise _forbidden(edit_permission)

        result = GatheringService(db, kind).registrations.apply(entity_id, applicant, actor=actor)
        application = raise_for_result(result)
        return ApplyResponse(
            application=ApplicationResponse.model_validate(application),
            message=result.message,
        )

    @router.get(
        "/{entity_id}/applications",
        response_model=ApplicationList,
        summary=f"Inscriptions ({tag})",
    )
    def list_applications(
            entity_id: int,
            db: Session = Depends(get_db),
            actor: Actor = Depends(require_permission(view_permission)),
    ):
        service = GatheringService(db, kind)
        try:
            service.get_by_id(entity_id)
        except GatheringNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        items = service.registrations.list_applications(entity_id)
        return ApplicationList(
            items=[ApplicationResponse.model_validate(a) for a in items],
            total=len(items),
        )

    @router.delete(
        "/{entity_id}/applications/{user_id}",
        summary=f"Annuler une inscription ({tag})",
        description="Le ticket éventuellement consommé n'est pas restitué.",
    )
    def cancel_application(
            entity_id: int,
            user_id: str,
            db: Session = Depends(get_db),
            actor: Actor = Depends(get_current_actor),
    ):
        if actor.is_client_side:
            if user_id != actor.actor_id:
                raise _forbidden(edit_permission)
        elif not has_permission(actor.role, edit_permission):
            raise _forbidden(edit_permission)

        result = GatheringService(db, kind).registrations.cancel(entity_id, user_id, actor=actor)
        raise_for_result(result)
        return {"message": result.message}

    return router


seminars_router = build_router(
    SEMINAR,
    prefix="/seminars",
    tag="Seminars",
    view_permission=Permission.VIEW_SEMINARS,
    edit_permission=Permission.EDIT_SEMINARS,
)

events_router = build_router(
    EVENT,
    prefix="/events",
    tag="Events",
    view_permission=Permission.VIEW_EVENTS,
    edit_permission=Permission.EDIT_EVENTS,
)
