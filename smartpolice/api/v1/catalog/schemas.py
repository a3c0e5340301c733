"""
Schémas Pydantic pour le catalogue de services.

Contient les schémas pour :
- Service : Offre du catalogue
- ServiceApplication : Demande d'un client et décision du back-office
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from smartpolice.models.enums import (
    ServiceApplicationStatus,
    ServiceCategory,
    ServicePriceType,
    ServiceStatus,
)


# =============================================================================
# SERVICE SCHEMAS
# =============================================================================

class ServiceBase(BaseModel):
    """Champs communs pour Service."""
    name: str = Field(..., min_length=1, max_length=200)
    category: ServiceCategory
    description: str = Field("", max_length=2000)
    long_description: Optional[str] = None
    price: int = Field(0, ge=0, description="Prix (JPY)")
    price_type: ServicePriceType = ServicePriceType.ONE_TIME
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    main_image_url: Optional[str] = Field(None, max_length=500)
    status: ServiceStatus = ServiceStatus.ACTIVE


class ServiceCreate(ServiceBase):
    """Schéma pour créer un service."""
    pass


class ServiceUpdate(ServiceBase):
    """Schéma pour remplacer un service (tous les champs)."""
    pass


class ServiceResponse(BaseModel):
    """Schéma de réponse pour un service."""
    id: int
    name: str
    category: ServiceCategory
    description: str
    long_description: Optional[str] = None
    price: int
    price_type: ServicePriceType
    icon: Optional[str] = None
    color: Optional[str] = None
    main_image_url: Optional[str] = None
    status: ServiceStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# APPLICATION SCHEMAS
# =============================================================================

class ServiceApplicationCreate(BaseModel):
    """Demande d'un service depuis le portail client."""
    notes: str = Field("", max_length=2000, description="Précisions pour le back-office")
    user_email: Optional[EmailStr] = None


class ServiceApplicationDecision(BaseModel):
    """Décision du back-office sur une demande."""
    status: ServiceApplicationStatus

    @field_validator("status")
    @classmethod
    def must_be_final(cls, v: ServiceApplicationStatus) -> ServiceApplicationStatus:
        if v == ServiceApplicationStatus.PENDING:
            raise ValueError("La décision doit être APPROVED ou REJECTED")
        return v


class ServiceApplicationResponse(BaseModel):
    """Schéma de réponse pour une demande de service."""
    id: int
    service_id: Optional[int] = None
    service_name: str
    client_id: int
    client_name: str
    user_id: str
    user_name: str
    user_email: Optional[str] = None
    notes: str
    status: ServiceApplicationStatus
    applied_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ServiceApplicationList(BaseModel):
    """Liste paginée de demandes."""
    items: List[ServiceApplicationResponse]
    total: int
    page: int
    size: int
    pages: int
