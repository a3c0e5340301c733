"""
Schémas Pydantic communs aux séminaires et aux événements.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from smartpolice.models.enums import GatheringStatus


class GatheringCreate(BaseModel):
    """Création d'un séminaire ou d'un événement."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    starts_at: Optional[datetime] = None
    location: str = Field(..., min_length=1, max_length=200, description="'オンライン' / 'Online' : payant")
    capacity: int = Field(..., ge=1)
    status: GatheringStatus = GatheringStatus.OPEN


class GatheringResponse(BaseModel):
    """Séminaire ou événement."""
    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    starts_at: Optional[datetime] = None
    location: str
    capacity: int
    status: GatheringStatus
    is_online: bool
    applicant_count: int = 0


class ApplicationCreate(BaseModel):
    """
    Inscription.

    Pour un utilisateur client, les champs vides sont complétés depuis le
    token (identité, nom, client débité).
    """
    user_id: Optional[str] = Field(None, max_length=100)
    user_name: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=200)
    client_id: Optional[int] = None


class ApplicationResponse(BaseModel):
    """Inscription enregistrée."""
    id: int
    client_id: Optional[int] = None
    user_id: str
    user_name: str
    company_name: Optional[str] = None
    ticket_consumed: bool
    applied_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplyResponse(BaseModel):
    """Résultat d'une inscription réussie."""
    application: ApplicationResponse
    message: str


class ApplicationList(BaseModel):
    """Inscriptions d'une entité."""
    items: List[ApplicationResponse]
    total: int
