"""
Schémas Pydantic pour le module Staff.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from smartpolice.models.enums import AccessRole, ApprovalStatus, Permission, StaffRole


class StaffCreate(BaseModel):
    """Création d'un membre du staff (en attente de validation)."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: StaffRole
    access_role: AccessRole = AccessRole.STAFF


class StaffResponse(BaseModel):
    """Schéma de réponse pour un membre du staff."""
    id: int
    name: str
    email: str
    role: StaffRole
    access_role: AccessRole
    approval_status: ApprovalStatus
    approved_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvitableStaffResponse(StaffResponse):
    """Membre invitable dans un fil, avec le coût de l'invitation."""
    participant_role: str
    ticket_cost: int


class RolePermissionsResponse(BaseModel):
    """Permissions statiques d'un rôle."""
    role: AccessRole
    permissions: List[Permission]
