"""
Routes FastAPI pour le module Staff.

Endpoints pour :
- /staff : Liste et création
- /staff/{id}/approve : Validation
- /staff/invitable : Staff invitable dans une consultation
- /roles/{role}/permissions : Permissions statiques d'un rôle
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.staff.schemas import (
    InvitableStaffResponse,
    RolePermissionsResponse,
    StaffCreate,
    StaffResponse,
)
from smartpolice.api.v1.staff.services import (
    StaffAccessRoleError,
    StaffEmailExistsError,
    StaffNotFoundError,
    StaffService,
)
from smartpolice.core.auth import Actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import AccessRole, ApprovalStatus, Permission, StaffRole
from smartpolice.services.permissions import permissions_for_role

router = APIRouter(prefix="/staff", tags=["Staff"])
roles_router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("", response_model=list[StaffResponse], summary="Liste du staff")
def list_staff(
        approval_status: Optional[ApprovalStatus] = Query(None, description="Filtrer par validation"),
        role: Optional[StaffRole] = Query(None, description="Filtrer par fonction"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.VIEW_STAFF)),
):
    """Liste les membres du staff."""
    return [StaffResponse.model_validate(s) for s in StaffService(db).get_all(approval_status, role)]


@router.post(
    "",
    response_model=StaffResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un membre du staff",
)
def create_staff(
        data: StaffCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_STAFF)),
):
    """Crée un membre du staff en attente de validation."""
    try:
        return StaffResponse.model_validate(StaffService(db).create(data, actor=actor))
    except StaffEmailExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StaffAccessRoleError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/invitable",
    response_model=list[InvitableStaffResponse],
    summary="Staff invitable",
    description="Staff validé absent du fil ; ticket_cost=1 pour un spécialiste.",
)
def list_invitable_staff(
        consultation_id: int = Query(..., description="Consultation cible"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_TICKETS)),
):
    """Staff pouvant être invité dans une consultation."""
    try:
        staff_members = StaffService(db).invitable_for(consultation_id)
    except StaffNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return [
        InvitableStaffResponse(
            **StaffResponse.model_validate(s).model_dump(),
            participant_role=s.participant_role.label,
            ticket_cost=1 if s.participant_role.is_billable else 0,
        )
        for s in staff_members
    ]


@router.post("/{staff_id}/approve", response_model=StaffResponse, summary="Valider un membre du staff")
def approve_staff(
        staff_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.EDIT_STAFF)),
):
    """Valide un compte staff."""
    try:
        return StaffResponse.model_validate(StaffService(db).approve(staff_id, actor=actor))
    except StaffNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@roles_router.get(
    "/{role}/permissions",
    response_model=RolePermissionsResponse,
    summary="Permissions d'un rôle",
)
def get_role_permissions(
        role: AccessRole,
        actor: Actor = Depends(require_permission(Permission.VIEW_STAFF)),
):
    """Liste les permissions statiques d'un rôle."""
    return RolePermissionsResponse(
        role=role,
        permissions=sorted(permissions_for_role(role), key=lambda p: list(Permission).index(p)),
    )
