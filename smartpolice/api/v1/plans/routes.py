"""
Routes FastAPI pour le module Plans.

Endpoints pour :
- /plans : Catalogue des offres
- /plans/{id} : Détail, modification, suppression
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.dependencies import raise_for_result
from smartpolice.api.v1.plans.schemas import PlanCreate, PlanResponse, PlanUpdate
from smartpolice.api.v1.plans.services import PlanCodeExistsError, PlanNotFoundError, PlanService
from smartpolice.core.auth import Actor, get_current_actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import Permission

router = APIRouter(prefix="/plans", tags=["Plans"])


@router.get(
    "",
    response_model=list[PlanResponse],
    summary="Liste des plans",
)
def list_plans(
        public_only: bool = Query(False, description="Uniquement les plans publics"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Liste les plans, du moins cher au plus cher."""
    return [PlanResponse.model_validate(p) for p in PlanService(db).get_all(public_only)]


@router.get(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Détails d'un plan",
)
def get_plan(
        plan_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Récupère un plan."""
    try:
        return PlanResponse.model_validate(PlanService(db).get_by_id(plan_id))
    except PlanNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un plan",
)
def create_plan(
        data: PlanCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_PLANS)),
):
    """Crée un plan."""
    try:
        return PlanResponse.model_validate(PlanService(db).create(data, actor=actor))
    except PlanCodeExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Modifier un plan",
    description="Modification en place ; le livret des clients est recalculé avec les nouvelles valeurs.",
)
def update_plan(
        plan_id: int,
        data: PlanUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_PLANS)),
):
    """Modifie un plan."""
    try:
        return PlanResponse.model_validate(PlanService(db).update(plan_id, data, actor=actor))
    except PlanNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete(
    "/{plan_id}",
    summary="Supprimer un plan",
    description="409 PLAN_IN_USE si des clients utilisent encore ce plan.",
)
def delete_plan(
        plan_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.DELETE_PLANS)),
):
    """Supprime un plan inutilisé."""
    result = PlanService(db).delete(plan_id, actor=actor)
    raise_for_result(result)
    return {"message": result.message}
