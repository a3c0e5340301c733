"""
Schémas Pydantic pour le module Affiliation.

Contient les schémas pour :
- Affiliate : Partenaire apporteur d'affaires
- Referral : Entreprise recommandée
- Payout : Versement de commissions
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from smartpolice.models.enums import PayoutStatus, ReferralStatus


class AffiliateCreate(BaseModel):
    """Création d'un partenaire."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    referral_code: str = Field(..., min_length=3, max_length=50)
    bank_account: Optional[str] = Field(None, max_length=255)


class AffiliateResponse(BaseModel):
    """Schéma de réponse pour un partenaire."""
    id: int
    name: str
    email: str
    referral_code: str
    bank_account: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReferralCreate(BaseModel):
    """Entreprise recommandée par un partenaire."""
    client_name: str = Field(..., min_length=1, max_length=200)
    client_id: Optional[int] = None


class ReferralResponse(BaseModel):
    """Schéma de réponse pour une recommandation."""
    id: int
    affiliate_id: int
    client_name: str
    client_id: Optional[int] = None
    status: ReferralStatus
    payout_id: Optional[int] = None
    referred_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PayoutResponse(BaseModel):
    """Schéma de réponse pour un versement."""
    id: int
    affiliate_id: int
    amount: int
    status: PayoutStatus
    requested_at: datetime
    paid_at: Optional[datetime] = None
    referral_ids: List[int] = []
