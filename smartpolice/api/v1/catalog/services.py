"""
Services métier pour le catalogue de services.

Règles :
- Seuls les services ACTIVE acceptent des demandes
- Un client ne peut avoir qu'une demande en attente par service
- Une demande est approuvée ou rejetée une seule fois (ALREADY_PROCESSED ensuite)
- Une demande de service ne consomme pas de ticket
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func, update
from sqlalchemy.orm import Session

from smartpolice.api.v1.catalog.schemas import ServiceCreate, ServiceUpdate
from smartpolice.core import clock
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.core.locks import LockScope, resource_locks
from smartpolice.core.results import ErrorCode, OperationResult
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.catalog import Service, ServiceApplication
from smartpolice.models.clients.client import Client
from smartpolice.models.enums import ServiceApplicationStatus, ServiceCategory, ServiceStatus
from smartpolice.services.audit.recorder import AuditRecorder

logger = logging.getLogger(__name__)

SERVICE_NOT_FOUND_MESSAGE = "サービスが見つかりません。"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ServiceNotFoundError(Exception):
    """Service non trouvé."""
    pass


# =============================================================================
# SERVICE
# =============================================================================

class CatalogService:
    """Service de gestion du catalogue et des demandes de services."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditRecorder(db)

    # =========================================================================
    # CATALOGUE
    # =========================================================================

    def get_all(
            self,
            category: Optional[ServiceCategory] = None,
            status: Optional[ServiceStatus] = None,
    ) -> List[Service]:
        query = select(Service)
        if category is not None:
            query = query.where(Service.category == category)
        if status is not None:
            query = query.where(Service.status == status)
        return list(self.db.execute(query.order_by(Service.id)).scalars().all())

    def get_by_id(self, service_id: int) -> Service:
        service = self.db.get(Service, service_id)
        if not service:
            raise ServiceNotFoundError(f"Service {service_id} non trouvé")
        return service

    def create(self, data: ServiceCreate, actor: Actor = SYSTEM_ACTOR) -> Service:
        service = Service(**data.model_dump())
        self.db.add(service)
        self.db.commit()

        self.audit.record_for(actor, AuditAction.CREATE_SERVICE, f'Created service "{service.name}".')
        return service

    def update(self, service_id: int, data: ServiceUpdate, actor: Actor = SYSTEM_ACTOR) -> Service:
        service = self.get_by_id(service_id)
        for field, value in data.model_dump().items():
            setattr(service, field, value)
        self.db.commit()

        logger.info(f"📝 Service #{service.id} modifié ({service.status.value})")
        self.audit.record_for(actor, AuditAction.UPDATE_SERVICE, f'Updated service "{service.name}".')
        return service

    def delete(self, service_id: int, actor: Actor = SYSTEM_ACTOR) -> None:
        """Supprime un service ; ses demandes sont conservées, détachées."""
        service = self.get_by_id(service_id)
        self.db.delete(service)
        self.db.commit()

        self.audit.record_for(actor, AuditAction.DELETE_SERVICE, f"Deleted service #{service_id}.")

    # =========================================================================
    # DEMANDES
    # =========================================================================

    def find_pending(self, service_id: int, client_id: int) -> Optional[ServiceApplication]:
        return self.db.execute(
            select(ServiceApplication).where(
                ServiceApplication.service_id == service_id,
                ServiceApplication.client_id == client_id,
                ServiceApplication.status == ServiceApplicationStatus.PENDING,
            )
        ).scalars().first()

    def apply(
            self,
            service_id: int,
            client_id: int,
            user_id: str,
            user_name: str,
            user_email: Optional[str] = None,
            notes: str = "",
            actor: Actor = SYSTEM_ACTOR,
    ) -> OperationResult[ServiceApplication]:
        """
        Enregistre une demande de service en attente.

        Échecs : NOT_FOUND (service ou client), NOT_ACCEPTING_APPLICATIONS
        (service inactif), DUPLICATE_APPLICATION (demande déjà en attente).
        """
        with resource_locks.hold(LockScope.SERVICE, service_id):
            service = self.db.get(Service, service_id, populate_existing=True)
            if service is None:
                return OperationResult.failure(ErrorCode.NOT_FOUND, SERVICE_NOT_FOUND_MESSAGE)
            if not service.is_active:
                return OperationResult.failure(
                    ErrorCode.NOT_ACCEPTING_APPLICATIONS,
                    "このサービスは現在受け付けていません。",
                )

            client = self.db.get(Client, client_id)
            if client is None:
                return OperationResult.failure(ErrorCode.NOT_FOUND, "クライアントが見つかりません。")

            if self.find_pending(service_id, client_id) is not None:
                return OperationResult.failure(
                    ErrorCode.DUPLICATE_APPLICATION,
                    "このサービスはすでに申し込み済みです（審査中）。",
                )

            application = ServiceApplication(
                service_id=service.id,
                service_name=service.name,
                client_id=client.id,
                client_name=client.company_name,
                user_id=user_id,
                user_name=user_name,
                user_email=user_email,
                notes=notes,
                status=ServiceApplicationStatus.PENDING,
                applied_at=clock.utcnow(),
            )
            self.db.add(application)
            self.db.commit()

        logger.info(f"📝 Service #{service_id}: demande de {user_id} (client #{client_id})")
        self.audit.record_for(
            actor,
            AuditAction.APPLY_SERVICE,
            f'Applied for service "{application.service_name}".',
            client_id=client_id,
        )
        return OperationResult.success(application, message="サービスに申し込みました。")

    def list_applications(
            self,
            page: int = 1,
            size: int = 20,
            status: Optional[ServiceApplicationStatus] = None,
            client_id: Optional[int] = None,
    ) -> Tuple[List[ServiceApplication], int]:
        """Liste les demandes (plus récentes d'abord)."""
        query = select(ServiceApplication)
        if status is not None:
            query = query.where(ServiceApplication.status == status)
        if client_id is not None:
            query = query.where(ServiceApplication.client_id == client_id)

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar() or 0

        query = query.order_by(ServiceApplication.applied_at.desc(), ServiceApplication.id.desc())
        items = self.db.execute(query.offset((page - 1) * size).limit(size)).scalars().all()
        return list(items), total

    def process_application(
            self,
            application_id: int,
            status: ServiceApplicationStatus,
            actor: Actor = SYSTEM_ACTOR,
    ) -> OperationResult[ServiceApplication]:
        """
        Approuve ou rejette une demande en attente.

        La transition PENDING -> décision est conditionnelle : une seule
        décision aboutit, les suivantes échouent en ALREADY_PROCESSED.
        """
        if status == ServiceApplicationStatus.PENDING:
            raise ValueError("La décision doit être APPROVED ou REJECTED")

        result = self.db.execute(
            update(ServiceApplication)
            .where(
                ServiceApplication.id == application_id,
                ServiceApplication.status == ServiceApplicationStatus.PENDING,
            )
            .values(status=status, processed_at=clock.utcnow(), processed_by=actor.name)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            if self.db.get(ServiceApplication, application_id) is None:
                return OperationResult.failure(ErrorCode.NOT_FOUND, "申し込みが見つかりません。")
            return OperationResult.failure(ErrorCode.ALREADY_PROCESSED)
        self.db.commit()

        application = self.db.get(ServiceApplication, application_id, populate_existing=True)
        logger.info(f"✅ Demande de service #{application_id}: {status.value} par {actor.name}")
        self.audit.record_for(
            actor,
            AuditAction.PROCESS_APPLICATION,
            f"Processed application #{application_id} to {status.value.lower()}.",
            client_id=application.client_id,
        )
        return OperationResult.success(application)
