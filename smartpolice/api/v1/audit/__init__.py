from smartpolice.api.v1.audit.routes import router

__all__ = ["router"]
