"""
Services métier pour le module Staff.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from smartpolice.api.v1.staff.schemas import StaffCreate
from smartpolice.core import clock
from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.models.audit.audit_log import AuditAction
from smartpolice.models.consultations.consultation import Consultation
from smartpolice.models.consultations.participant import ConsultationParticipant
from smartpolice.models.enums import AccessRole, ApprovalStatus, StaffRole
from smartpolice.models.staff.staff import Staff
from smartpolice.services.audit.recorder import AuditRecorder

logger = logging.getLogger(__name__)


class StaffNotFoundError(Exception):
    """Membre du staff non trouvé."""
    pass


class StaffEmailExistsError(Exception):
    """Email déjà utilisé."""
    pass


class StaffAccessRoleError(Exception):
    """Rôle d'accès non applicable à un membre du staff."""
    pass


class StaffService:
    """Service de gestion du staff."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditRecorder(db)

    def get_all(
            self,
            approval_status: Optional[ApprovalStatus] = None,
            role: Optional[StaffRole] = None,
    ) -> List[Staff]:
        query = select(Staff)
        if approval_status is not None:
            query = query.where(Staff.approval_status == approval_status)
        if role is not None:
            query = query.where(Staff.role == role)
        return list(self.db.execute(query.order_by(Staff.id)).scalars().all())

    def get_by_id(self, staff_id: int) -> Staff:
        staff = self.db.get(Staff, staff_id)
        if not staff:
            raise StaffNotFoundError(f"Staff {staff_id} non trouvé")
        return staff

    def create(self, data: StaffCreate, actor: Actor = SYSTEM_ACTOR) -> Staff:
        """Crée un membre du staff, en attente de validation."""
        if data.access_role not in (AccessRole.SUPERADMIN, AccessRole.ADMIN, AccessRole.STAFF):
            raise StaffAccessRoleError(f"Rôle d'accès '{data.access_role.value}' invalide pour le staff")

        existing = self.db.execute(
            select(Staff).where(Staff.email == data.email)
        ).scalar_one_or_none()
        if existing:
            raise StaffEmailExistsError(f"L'email '{data.email}' est déjà utilisé")

        staff = Staff(
            name=data.name,
            email=data.email,
            role=data.role,
            access_role=data.access_role,
            approval_status=ApprovalStatus.PENDING,
        )
        self.db.add(staff)
        self.db.commit()

        self.audit.record_for(actor, AuditAction.CREATE_STAFF, f"Staff {staff.name} ({staff.role.value}) created")
        return staff

    def approve(self, staff_id: int, actor: Actor = SYSTEM_ACTOR) -> Staff:
        """Valide un compte staff."""
        staff = self.get_by_id(staff_id)
        staff.approval_status = ApprovalStatus.APPROVED
        staff.approved_at = clock.utcnow()
        self.db.commit()

        logger.info(f"✅ Staff validé: {staff.name}")
        self.audit.record_for(actor, AuditAction.APPROVE_STAFF, f"Staff {staff.name} approved")
        return staff

    def invitable_for(self, consultation_id: int) -> List[Staff]:
        """Staff validé qui ne participe pas encore au fil."""
        if self.db.get(Consultation, consultation_id) is None:
            raise StaffNotFoundError(f"Consultation {consultation_id} non trouvée")

        already = select(ConsultationParticipant.staff_id).where(
            ConsultationParticipant.consultation_id == consultation_id,
            ConsultationParticipant.staff_id.is_not(None),
        )
        return list(self.db.execute(
            select(Staff)
            .where(
                Staff.approval_status == ApprovalStatus.APPROVED,
                Staff.id.not_in(already),
            )
            .order_by(Staff.id)
        ).scalars().all())
