from smartpolice.services.audit.recorder import AuditRecorder

__all__ = ["AuditRecorder"]
