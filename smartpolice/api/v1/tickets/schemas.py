"""
Schémas Pydantic pour le module Tickets.

Contient les schémas pour :
- Débit de tickets
- Solde courant
- Livret (passbook) et historique de consommation
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from smartpolice.models.enums import ConsumptionType
from smartpolice.services.ledger.passbook import PassbookEntryKind


# =============================================================================
# DÉBIT
# =============================================================================

class DebitRequest(BaseModel):
    """Demande de débit."""
    type: ConsumptionType = Field(..., description="Motif de consommation")
    description: str = Field(..., min_length=1, max_length=500)
    related_id: Optional[str] = Field(None, max_length=100, description="Objet à l'origine du débit")
    amount: int = Field(1, ge=1, description="Nombre de tickets (entier positif)")


class ConsumptionLogResponse(BaseModel):
    """Écriture du journal de consommation."""
    id: int
    client_id: int
    consumed_at: datetime
    consumption_type: ConsumptionType
    description: str
    ticket_cost: int
    related_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DebitResponse(BaseModel):
    """Résultat d'un débit réussi."""
    success: bool = True
    log: ConsumptionLogResponse
    remaining_tickets: int


# =============================================================================
# SOLDE
# =============================================================================

class BalanceResponse(BaseModel):
    """Solde courant d'un client (attributions échues incluses)."""
    client_id: int
    company_name: str
    remaining_tickets: int
    plan_code: str
    plan_name: str
    monthly_tickets: int
    next_grant_date: date


# =============================================================================
# LIVRET
# =============================================================================

class PassbookEntryResponse(BaseModel):
    """Ligne du livret."""
    occurred_at: datetime
    kind: PassbookEntryKind
    description: str
    delta: int
    running_balance: int
    consumption_type: Optional[str] = None
    related_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PassbookResponse(BaseModel):
    """Livret complet, lignes du plus récent au plus ancien."""
    client_id: int
    as_of: date
    closing_balance: int
    remaining_tickets: int
    total_granted: int
    total_consumed: int
    entries: List[PassbookEntryResponse]


class ConsumptionLogList(BaseModel):
    """Liste paginée d'écritures de consommation."""
    items: List[ConsumptionLogResponse]
    total: int
    page: int
    size: int
    pages: int
