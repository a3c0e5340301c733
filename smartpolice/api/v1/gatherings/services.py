"""
Services métier pour les séminaires et les événements.

La mécanique d'inscription (passerelle de consommation) est dans
smartpolice/services/registration.py ; ce module gère le catalogue.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from smartpolice.api.v1.gatherings.schemas import GatheringCreate
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.enums import GatheringStatus
from smartpolice.services.audit.recorder import AuditRecorder
from smartpolice.services.registration import GatheringKind, RegistrationGateway, SEMINAR

logger = logging.getLogger(__name__)


class GatheringNotFoundError(Exception):
    """Séminaire ou événement non trouvé."""
    pass


class GatheringService:
    """Catalogue des séminaires ou des événements."""

    def __init__(self, db: Session, kind: GatheringKind):
        self.db = db
        self.kind = kind
        self.audit = AuditRecorder(db)
        self.registrations = RegistrationGateway(db, kind, audit=self.audit)

    @property
    def create_action(self) -> AuditAction:
        return AuditAction.CREATE_SEMINAR if self.kind is SEMINAR else AuditAction.CREATE_EVENT

    def get_all(self, status: Optional[GatheringStatus] = None) -> List:
        entity = self.kind.entity
        query = select(entity)
        if status is not None:
            query = query.where(entity.status == status)
        query = query.order_by(entity.starts_at, entity.id)
        return list(self.db.execute(query).scalars().all())

    def get_by_id(self, entity_id: int):
        entity = self.db.get(self.kind.entity, entity_id)
        if not entity:
            raise GatheringNotFoundError(f"{self.kind.reference_prefix} {entity_id} non trouvé")
        return entity

    def applicant_counts(self) -> dict:
        """Nombre d'inscrits par entité."""
        fk = getattr(self.kind.application, self.kind.foreign_key)
        rows = self.db.execute(select(fk, func.count()).group_by(fk)).all()
        return {entity_id: count for entity_id, count in rows}

    def create(self, data: GatheringCreate, actor: Actor = SYSTEM_ACTOR):
        entity = self.kind.entity(**data.model_dump())
        self.db.add(entity)
        self.db.commit()

        logger.info(f"✅ {self.kind.reference_prefix} créé: {entity.title} ({entity.location}, {entity.capacity} places)")
        self.audit.record_for(
            actor,
            self.create_action,
            f"{self.kind.reference_prefix} #{entity.id} created: {entity.title}",
        )
        return entity
