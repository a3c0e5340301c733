"""
Schémas Pydantic pour le module Consultations.

Contient les schémas pour :
- Consultation : Fil de consultation (ticket de message)
- Participants et messages du fil
"""
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from smartpolice.models.enums import (
    ConsultationPriority,
    ConsultationStatus,
    MessageSenderKind,
    ParticipantRole,
)


# =============================================================================
# CONSULTATION SCHEMAS
# =============================================================================

class ConsultationCreate(BaseModel):
    """Nouvelle consultation (débite 1 ticket)."""
    client_id: int
    subject: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    priority: ConsultationPriority = ConsultationPriority.MEDIUM
    body: str = Field(..., min_length=1, description="Premier message du client")


class ConsultationResponse(BaseModel):
    """Schéma de réponse pour une consultation."""
    id: int
    reference: Optional[str] = None
    client_id: int
    subject: str
    category: Optional[str] = None
    priority: ConsultationPriority
    excerpt: Optional[str] = None
    status: ConsultationStatus
    assignee_id: Optional[int] = None
    expiration_date: Optional[date] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConsultationList(BaseModel):
    """Liste paginée de consultations."""
    items: List[ConsultationResponse]
    total: int
    page: int
    size: int
    pages: int


class ParticipantResponse(BaseModel):
    """Participant d'un fil."""
    id: int
    staff_id: Optional[int] = None
    client_user_id: Optional[int] = None
    display_name: str
    role: ParticipantRole
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Message d'un fil."""
    id: int
    sender_kind: MessageSenderKind
    sender_name: str
    body: str
    posted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConsultationDetail(ConsultationResponse):
    """Consultation avec participants et messages."""
    participants: List[ParticipantResponse] = []
    messages: List[MessageResponse] = []


# =============================================================================
# ACTION SCHEMAS
# =============================================================================

class StatusChange(BaseModel):
    """Changement de statut (sens unique)."""
    status: ConsultationStatus


class AssigneeChange(BaseModel):
    """Affectation d'un membre du staff."""
    staff_id: int


class ParticipantInvite(BaseModel):
    """Invitation dans le fil ; un spécialiste coûte 1 ticket."""
    participant_type: Literal["staff", "client_user"] = "staff"
    participant_id: int


class InviteResponse(BaseModel):
    """Résultat d'une invitation."""
    participant: ParticipantResponse
    ticket_consumed: bool
    message: str


class MessageCreate(BaseModel):
    """Nouveau message."""
    body: str = Field(..., min_length=1)
