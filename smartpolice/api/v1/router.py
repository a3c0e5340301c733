"""
Router principal API v1.

Agrège tous les routers des différents modules métier.

Usage dans main.py:
    from smartpolice.api.v1.router import api_router

    app = FastAPI(title="SmartPolice API")
    app.include_router(api_router)
"""
from fastapi import APIRouter

from .affiliates import router as affiliates_router
from .audit import router as audit_router
from .catalog import router as catalog_router
from .clients import router as clients_router
from .consultations import router as consultations_router
from .gatherings import events_router, seminars_router
from .plans import router as plans_router
from .staff import roles_router, router as staff_router
from .tickets import router as tickets_router


# =============================================================================
# ROUTER PRINCIPAL
# =============================================================================

api_router = APIRouter(prefix="/api/v1")


api_router.include_router(tickets_router)
api_router.include_router(clients_router)
api_router.include_router(plans_router)
api_router.include_router(consultations_router)
api_router.include_router(seminars_router)
api_router.include_router(events_router)
api_router.include_router(catalog_router)
api_router.include_router(staff_router)
api_router.include_router(roles_router)
api_router.include_router(affiliates_router)
api_router.include_router(audit_router)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@api_router.get(
    "/health",
    tags=["System"],
    summary="Health check",
    description="Vérifie que l'API est opérationnelle.",
)
async def health_check():
    """
    Endpoint de santé pour le monitoring.

    Returns:
        Statut de l'API
    """
    return {"status": "healthy", "version": "v1"}
