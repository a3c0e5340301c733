"""
Routes FastAPI pour le module Consultations.

Endpoints pour :
- /consultations : Ouverture (1 ticket) et liste
- /consultations/{id} : Détail avec participants et messages
- /consultations/{id}/status : Avancement du statut
- /consultations/{id}/assignee : Affectation
- /consultations/{id}/participants : Invitation (1 ticket pour un spécialiste)
- /consultations/{id}/messages : Nouveau message
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.consultations.schemas import (
    AssigneeChange,
    ConsultationCreate,
    ConsultationDetail,
    ConsultationList,
    ConsultationResponse,
    InviteResponse,
    MessageCreate,
    MessageResponse,
    ParticipantInvite,
    ParticipantResponse,
    StatusChange,
)
from smartpolice.api.v1.consultations.services import (
    ConsultationNotFoundError,
    ConsultationService,
    StaffNotFoundError,
)
from smartpolice.api.v1.dependencies import PaginationParams, paginated_response, raise_for_result
from smartpolice.core.auth import Actor, ensure_client_access, get_current_actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import ConsultationStatus, Permission
from smartpolice.services.permissions import has_permission

router = APIRouter(prefix="/consultations", tags=["Consultations"])


def _get_accessible(service: ConsultationService, consultation_id: int, actor: Actor, permission: Permission):
    """Charge une consultation et vérifie l'accès de l'acteur."""
    try:
        consultation = service.get_by_id(consultation_id)
    except ConsultationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    ensure_client_access(actor, consultation.client_id, permission)
    return consultation


# =============================================================================
# CONSULTATION ENDPOINTS
# =============================================================================

@router.post(
    "",
    response_model=ConsultationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ouvrir une consultation",
    description="Débite 1 ticket ; 402 si le solde est insuffisant (aucune consultation créée).",
)
def open_consultation(
        data: ConsultationCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Ouvre une consultation pour un client."""
    ensure_client_access(actor, data.client_id, Permission.EDIT_TICKETS)
    consultation = raise_for_result(ConsultationService(db).open_consultation(data, actor=actor))
    return ConsultationResponse.model_validate(consultation)


@router.get("", response_model=ConsultationList, summary="Liste des consultations")
def list_consultations(
        pagination: PaginationParams = Depends(),
        client_id: Optional[int] = Query(None, description="Filtrer par client"),
        status_filter: Optional[ConsultationStatus] = Query(None, alias="status", description="Filtrer par statut"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Liste les consultations ; un utilisateur client ne voit que les siennes."""
    if actor.is_client_side:
        client_id = actor.client_id
    elif not has_permission(actor.role, Permission.VIEW_TICKETS):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission 'VIEW_TICKETS' requise")

    items, total = ConsultationService(db).get_all(
        page=pagination.page,
        size=pagination.size,
        client_id=client_id,
        status=status_filter,
    )
    return paginated_response(
        items=[ConsultationResponse.model_validate(c) for c in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.get("/{consultation_id}", response_model=ConsultationDetail, summary="Détails d'une consultation")
def get_consultation(
        consultation_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Récupère une consultation avec participants et messages."""
    consultation = _get_accessible(
        ConsultationService(db), consultation_id, actor, Permission.VIEW_TICKETS
    )
    return ConsultationDetail.model_validate(consultation)


@router.patch("/{consultation_id}/status", response_model=ConsultationResponse, summary="Changer le statut")
def change_status(
        consultation_id: int,
        data: StatusChange,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_TICKETS)),
):
    """Fait avancer le statut (受付中 -> 対応中 -> 完了)."""
    consultation = raise_for_result(
        ConsultationService(db).update_status(consultation_id, data.status, actor=actor)
    )
    return ConsultationResponse.model_validate(consultation)


@router.patch("/{consultation_id}/assignee", response_model=ConsultationResponse, summary="Affecter")
def change_assignee(
        consultation_id: int,
        data: AssigneeChange,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_TICKETS)),
):
    """Affecte un membre du staff validé."""
    try:
        consultation = ConsultationService(db).assign(consultation_id, data.staff_id, actor=actor)
        return ConsultationResponse.model_validate(consultation)
    except ConsultationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StaffNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# PARTICIPANTS ET MESSAGES
# =============================================================================

@router.post(
    "/{consultation_id}/participants",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Inviter un participant",
    description="Un avocat ou un expert-comptable coûte 1 ticket au client.",
)
def invite_participant(
        consultation_id: int,
        data: ParticipantInvite,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Ajoute un participant au fil de consultation."""
    service = ConsultationService(db)
    _get_accessible(service, consultation_id, actor, Permission.EDIT_TICKETS)

    result = service.invite_participant(
        consultation_id, data.participant_type, data.participant_id, actor=actor
    )
    participant = raise_for_result(result)
    return InviteResponse(
        participant=ParticipantResponse.model_validate(participant),
        ticket_consumed=participant.role.is_billable,
        message=result.message,
    )


@router.post(
    "/{consultation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Poster un message",
)
def post_message(
        consultation_id: int,
        data: MessageCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Ajoute un message au fil."""
    service = ConsultationService(db)
    _get_accessible(service, consultation_id, actor, Permission.EDIT_TICKETS)
    try:
        return MessageResponse.model_validate(service.post_message(consultation_id, data.body, actor=actor))
    except ConsultationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
