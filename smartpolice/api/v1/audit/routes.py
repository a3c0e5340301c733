"""
Routes FastAPI pour le journal d'audit.

Endpoints pour :
- /audit-logs : Consultation paginée et filtrée (plus récents d'abord)
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smartpolice.api.v1.audit.schemas import AuditLogList, AuditLogResponse
from smartpolice.api.v1.dependencies import paginated_response
from smartpolice.core.auth import Actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import Permission
from smartpolice.services.audit import AuditRecorder

router = APIRouter(tags=["Audit"])


@router.get(
    "/audit-logs",
    response_model=AuditLogList,
    summary="Journal d'audit",
    description="Liste les actions tracées avec pagination et filtres.",
)
def list_audit_logs(
        page: int = Query(1, ge=1, description="Numéro de page"),
        size: int = Query(50, ge=1, le=100, description="Nombre d'éléments par page"),
        search: Optional[str] = Query(None, description="Recherche (acteur, action, détails)"),
        action: Optional[str] = Query(None, description="Filtrer par action"),
        client_id: Optional[int] = Query(None, description="Filtrer par client"),
        date_from: Optional[datetime] = Query(None, description="Date de début"),
        date_to: Optional[datetime] = Query(None, description="Date de fin"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.VIEW_LOGS)),
):
    """Liste les logs d'audit."""
    items, total = AuditRecorder(db).search(
        page=page,
        size=size,
        search=search,
        action=action,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
    )
    return paginated_response(
        items=[AuditLogResponse.model_validate(i) for i in items],
        total=total,
        page=page,
        size=size,
    )
