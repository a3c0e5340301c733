"""
Schémas Pydantic pour le module Clients.

Contient les schémas pour :
- Client : Entreprise cliente
- Changement de plan et historique
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from smartpolice.models.enums import ClientPermission


# =============================================================================
# CLIENT SCHEMAS
# =============================================================================

class ClientBase(BaseModel):
    """Champs de profil d'un client."""
    company_name: str = Field(..., min_length=1, max_length=200)
    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=100)


class ClientCreate(ClientBase):
    """
    Schéma pour inscrire un client.

    Sans plan_id, le client est inscrit sur le plan gratuit.
    """
    plan_id: Optional[int] = Field(None, description="Plan souscrit (défaut: plan gratuit)")


class ClientUpdate(BaseModel):
    """
    Schéma pour modifier le profil d'un client.

    Le solde de tickets n'est pas modifiable ici.
    """
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    industry: Optional[str] = Field(None, max_length=100)


class ClientResponse(BaseModel):
    """Schéma de réponse pour un client."""
    id: int
    company_name: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    industry: Optional[str] = None
    plan_id: int
    plan_code: str
    plan_name: str
    registration_date: date
    remaining_tickets: int
    created_at: datetime


class ClientList(BaseModel):
    """Liste paginée de clients."""
    items: List[ClientResponse]
    total: int
    page: int
    size: int
    pages: int


# =============================================================================
# PLAN CHANGE SCHEMAS
# =============================================================================

class PlanChangeRequest(BaseModel):
    """Changement de plan immédiat."""
    plan_id: int
    reason: Optional[str] = Field(None, max_length=1000)


class PlanChangeResponse(BaseModel):
    """Entrée de l'historique des changements de plan."""
    id: int
    client_id: int
    old_plan_id: Optional[int] = None
    new_plan_id: Optional[int] = None
    changed_by: str
    reason: Optional[str] = None
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientPermissionsResponse(BaseModel):
    """Fonctionnalités du portail ouvertes par le plan courant."""
    client_id: int
    plan_code: str
    permissions: List[ClientPermission]
