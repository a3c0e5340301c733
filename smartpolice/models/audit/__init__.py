from smartpolice.models.audit.audit_log import AuditLog, AuditAction

__all__ = ["AuditLog", "AuditAction"]
