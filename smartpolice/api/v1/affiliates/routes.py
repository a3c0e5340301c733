"""
Routes FastAPI pour le module Affiliation.

Endpoints pour :
- /affiliates : Partenaires
- /affiliates/{id}/referrals : Recommandations
- /referrals/{id}/approve|reject : Décision
- /affiliates/{id}/payouts : Demande de versement
- /payouts/{id}/paid : Versement effectué
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from smartpolice.api.v1.affiliates.schemas import (
    AffiliateCreate,
    AffiliateResponse,
    PayoutResponse,
    ReferralCreate,
    ReferralResponse,
)
from smartpolice.api.v1.affiliates.services import (
    AffiliateNotFoundError,
    AffiliateService,
    ReferralCodeExistsError,
)
from smartpolice.api.v1.dependencies import raise_for_result
from smartpolice.core.auth import Actor, get_current_actor, require_permission
from smartpolice.database.session import get_db
from smartpolice.models.enums import AccessRole, Permission
from smartpolice.services.permissions import has_permission

router = APIRouter(tags=["Affiliates"])


def _build_payout_response(service: AffiliateService, payout) -> PayoutResponse:
    """Construit la réponse pour un versement."""
    return PayoutResponse(
        id=payout.id,
        affiliate_id=payout.affiliate_id,
        amount=payout.amount,
        status=payout.status,
        requested_at=payout.requested_at,
        paid_at=payout.paid_at,
        referral_ids=service.referral_ids(payout.id),
    )


@router.get("/affiliates", response_model=list[AffiliateResponse], summary="Liste des partenaires")
def list_affiliates(
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_AFFILIATES)),
):
    """Liste les partenaires."""
    return [AffiliateResponse.model_validate(a) for a in AffiliateService(db).get_all()]


@router.post(
    "/affiliates",
    response_model=AffiliateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un partenaire",
)
def create_affiliate(
        data: AffiliateCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_AFFILIATES)),
):
    """Crée un partenaire."""
    try:
        return AffiliateResponse.model_validate(AffiliateService(db).create(data, actor=actor))
    except ReferralCodeExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/affiliates/{affiliate_id}/referrals",
    response_model=ReferralResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enregistrer une recommandation",
)
def create_referral(
        affiliate_id: int,
        data: ReferralCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_AFFILIATES)),
):
    """Enregistre une entreprise recommandée (en attente)."""
    try:
        return ReferralResponse.model_validate(AffiliateService(db).add_referral(affiliate_id, data, actor=actor))
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/referrals/{referral_id}/approve", response_model=ReferralResponse, summary="Valider")
def approve_referral(
        referral_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_AFFILIATES)),
):
    """Valide une recommandation en attente."""
    referral = raise_for_result(AffiliateService(db).approve_referral(referral_id, actor=actor))
    return ReferralResponse.model_validate(referral)


@router.post("/referrals/{referral_id}/reject", response_model=ReferralResponse, summary="Refuser")
def reject_referral(
        referral_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_AFFILIATES)),
):
    """Refuse une recommandation en attente."""
    referral = raise_for_result(AffiliateService(db).reject_referral(referral_id, actor=actor))
    return ReferralResponse.model_validate(referral)


@router.post(
    "/affiliates/{affiliate_id}/payouts",
    response_model=PayoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Demander un versement",
)
def request_payout(
        affiliate_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Demande le versement des commissions dues."""
    is_self = actor.role == AccessRole.AFFILIATE and actor.affiliate_id == affiliate_id
    if not is_self and not has_permission(actor.role, Permission.MANAGE_AFFILIATES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Permission 'MANAGE_AFFILIATES' requise",
        )

    service = AffiliateService(db)
    payout = raise_for_result(service.request_payout(affiliate_id, actor=actor))
    return _build_payout_response(service, payout)


@router.post("/payouts/{payout_id}/paid", response_model=PayoutResponse, summary="Marquer comme payé")
def mark_payout_paid(
        payout_id: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(require_permission(Permission.MANAGE_AFFILIATES)),
):
    """Marque un versement comme effectué."""
    service = AffiliateService(db)
    payout = raise_for_result(service.mark_paid(payout_id, actor=actor))
    return _build_payout_response(service, payout)
