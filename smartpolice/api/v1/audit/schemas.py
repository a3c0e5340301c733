"""
Schémas Pydantic pour le journal d'audit.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    """Entrée du journal d'audit."""
    id: int
    created_at: datetime
    actor_id: str
    actor_name: str
    action: str
    details: str
    client_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class AuditLogList(BaseModel):
    """Liste paginée d'entrées d'audit."""
    items: List[AuditLogResponse]
    total: int
    page: int
    size: int
    pages: int
