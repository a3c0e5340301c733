"""
Schémas Pydantic pour le module Plans.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from smartpolice.models.enums import ClientPermission


class PlanBase(BaseModel):
    """Champs communs pour Plan."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    monthly_fee: int = Field(0, ge=0, description="Redevance mensuelle (JPY)")
    initial_tickets: int = Field(0, ge=0, description="Tickets attribués à l'inscription")
    monthly_tickets: int = Field(0, ge=0, description="Tickets attribués chaque mois")
    permissions: List[ClientPermission] = Field(default_factory=list)
    is_public: bool = True

    @field_validator("permissions")
    @classmethod
    def deduplicate_permissions(cls, v: List[ClientPermission]) -> List[ClientPermission]:
        return list(dict.fromkeys(v))


class PlanCreate(PlanBase):
    """Schéma pour créer un plan."""
    code: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9_]+$")


class PlanUpdate(PlanBase):
    """
    Schéma pour modifier un plan en place.

    La modification s'applique rétroactivement à la reconstruction du livret.
    """
    pass


class PlanResponse(BaseModel):
    """Schéma de réponse pour un plan."""
    id: int
    code: str
    name: str
    description: Optional[str] = None
    monthly_fee: int
    initial_tickets: int
    monthly_tickets: int
    permissions: List[str]
    is_public: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
