"""
Services métier pour le module Affiliation.

Règles :
- Commission fixe par recommandation validée (AFFILIATE_COMMISSION_PER_REFERRAL)
- Une demande de versement regroupe toutes les recommandations validées
  non encore versées ; refusée sous AFFILIATE_MINIMUM_PAYOUT
- Aucun mouvement financier réel : le versement est seulement marqué payé
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from smartpolice.api.v1.affiliates.schemas import AffiliateCreate, ReferralCreate
from smartpolice.core import clock
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.core.config import settings
from smartpolice.core.results import ErrorCode, OperationResult
from smartpolice.models.affiliates import Affiliate, Payout, Referral
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.enums import PayoutStatus, ReferralStatus
from smartpolice.services.audit.recorder import AuditRecorder

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class AffiliateNotFoundError(Exception):
    """Partenaire non trouvé."""
    pass


class ReferralCodeExistsError(Exception):
    """Code de parrainage déjà utilisé."""
    pass


# =============================================================================
# SERVICE
# =============================================================================

class AffiliateService:
    """Service de gestion de l'affiliation."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditRecorder(db)

    # =========================================================================
    # PARTENAIRES
    # =========================================================================

    def get_all(self) -> List[Affiliate]:
        return list(self.db.execute(select(Affiliate).order_by(Affiliate.id)).scalars().all())

    def get_by_id(self, affiliate_id: int) -> Affiliate:
        affiliate = self.db.get(Affiliate, affiliate_id)
        if not affiliate:
            raise AffiliateNotFoundError(f"Partenaire {affiliate_id} non trouvé")
        return affiliate

    def create(self, data: AffiliateCreate, actor: Actor = SYSTEM_ACTOR) -> Affiliate:
        existing = self.db.execute(
            select(Affiliate).where(Affiliate.referral_code == data.referral_code)
        ).scalar_one_or_none()
        if existing:
            raise ReferralCodeExistsError(f"Le code '{data.referral_code}' existe déjà")

        affiliate = Affiliate(**data.model_dump())
        self.db.add(affiliate)
        self.db.commit()

        self.audit.record_for(actor, AuditAction.CREATE_AFFILIATE, f"Affiliate {affiliate.name} created")
        return affiliate

    # =========================================================================
    # RECOMMANDATIONS
    # =========================================================================

    def add_referral(self, affiliate_id: int, data: ReferralCreate, actor: Actor = SYSTEM_ACTOR) -> Referral:
        affiliate = self.get_by_id(affiliate_id)

        referral = Referral(
            affiliate_id=affiliate.id,
            client_name=data.client_name,
            client_id=data.client_id,
            status=ReferralStatus.PENDING,
            referred_at=clock.utcnow(),
        )
        self.db.add(referral)
        self.db.commit()

        self.audit.record_for(
            actor,
            AuditAction.CREATE_REFERRAL,
            f"Referral of {referral.client_name} by {affiliate.name}",
            client_id=referral.client_id,
        )
        return referral

    def _decide_referral(
            self,
            referral_id: int,
            status: ReferralStatus,
            action: AuditAction,
            actor: Actor,
    ) -> OperationResult[Referral]:
        referral = self.db.get(Referral, referral_id)
        if referral is None:
            return OperationResult.failure(ErrorCode.NOT_FOUND, "紹介が見つかりません。")
        if referral.status != ReferralStatus.PENDING:
            return OperationResult.failure(ErrorCode.ALREADY_PROCESSED)

        referral.status = status
        self.db.commit()

        self.audit.record_for(
            actor,
            action,
            f"Referral #{referral.id} ({referral.client_name}) {status.value.lower()}",
            client_id=referral.client_id,
        )
        return OperationResult.success(referral)

    def approve_referral(self, referral_id: int, actor: Actor = SYSTEM_ACTOR) -> OperationResult[Referral]:
        return self._decide_referral(referral_id, ReferralStatus.APPROVED, AuditAction.APPROVE_REFERRAL, actor)

    def reject_referral(self, referral_id: int, actor: Actor = SYSTEM_ACTOR) -> OperationResult[Referral]:
        return self._decide_referral(referral_id, ReferralStatus.REJECTED, AuditAction.REJECT_REFERRAL, actor)

    # =========================================================================
    # VERSEMENTS
    # =========================================================================

    def payable_referrals(self, affiliate_id: int) -> List[Referral]:
        return list(self.db.execute(
            select(Referral).where(
                Referral.affiliate_id == affiliate_id,
                Referral.status == ReferralStatus.APPROVED,
                Referral.payout_id.is_(None),
            ).order_by(Referral.id)
        ).scalars().all())

    def request_payout(self, affiliate_id: int, actor: Actor = SYSTEM_ACTOR) -> OperationResult[Payout]:
        """
        Regroupe les recommandations validées non versées dans un versement.

        Échecs : NOT_FOUND, NOTHING_TO_PAY, BELOW_MINIMUM_PAYOUT.
        """
        affiliate = self.db.get(Affiliate, affiliate_id)
        if affiliate is None:
            return OperationResult.failure(ErrorCode.NOT_FOUND, "アフィリエイトが見つかりません。")

        referrals = self.payable_referrals(affiliate_id)
        if not referrals:
            return OperationResult.failure(ErrorCode.NOTHING_TO_PAY)

        amount = len(referrals) * settings.AFFILIATE_COMMISSION_PER_REFERRAL
        if amount < settings.AFFILIATE_MINIMUM_PAYOUT:
            return OperationResult.failure(ErrorCode.BELOW_MINIMUM_PAYOUT)

        payout = Payout(
            affiliate_id=affiliate.id,
            amount=amount,
            status=PayoutStatus.PENDING,
            requested_at=clock.utcnow(),
        )
        self.db.add(payout)
        self.db.flush()
        for referral in referrals:
            referral.payout_id = payout.id
        self.db.commit()

        logger.info(f"💴 Versement #{payout.id} demandé par {affiliate.name}: ¥{amount} ({len(referrals)} recommandation(s))")
        self.audit.record_for(
            actor,
            AuditAction.REQUEST_PAYOUT,
            f"Payout #{payout.id} requested by {affiliate.name}: {amount} JPY",
        )
        return OperationResult.success(payout)

    def mark_paid(self, payout_id: int, actor: Actor = SYSTEM_ACTOR) -> OperationResult[Payout]:
        payout = self.db.get(Payout, payout_id)
        if payout is None:
            return OperationResult.failure(ErrorCode.NOT_FOUND, "支払いが見つかりません。")
        if payout.status == PayoutStatus.PAID:
            return OperationResult.failure(ErrorCode.ALREADY_PROCESSED)

        payout.status = PayoutStatus.PAID
        payout.paid_at = clock.utcnow()
        self.db.commit()

        self.audit.record_for(
            actor,
            AuditAction.PROCESS_PAYOUT,
            f"Payout #{payout.id} marked as paid ({payout.amount} JPY)",
        )
        return OperationResult.success(payout)

    def referral_ids(self, payout_id: int) -> List[int]:
        return list(self.db.execute(
            select(Referral.id).where(Referral.payout_id == payout_id).order_by(Referral.id)
        ).scalars().all())
