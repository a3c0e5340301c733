"""
SmartPolice - Application principale FastAPI
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartpolice.api.v1 import api_router
from smartpolice.core.config import settings
from smartpolice.database.init_db import init_db
from smartpolice.database.session import check_database_connection

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Crée le schéma (et les données de démonstration) au démarrage."""
    logger.info(f"🚀 Démarrage de {settings.APP_NAME} ({settings.ENVIRONMENT})")
    init_db(seed=settings.SEED_DEMO_DATA)
    if settings.is_development:
        logger.info("📚 Documentation: /api/docs")
    yield
    logger.info("👋 Arrêt de l'application")


# Créer l'application FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    description="Portail B2B de gestion de crise : clients, tickets, consultations et séminaires",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    docs_url=None if settings.is_production else "/api/docs",
    redoc_url=None if settings.is_production else "/api/redoc",
    lifespan=lifespan,
)

# Configuration CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Page d'accueil"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
def health_check():
    """Endpoint de vérification de santé (inclut la base)"""
    database_ok = check_database_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "ok" if database_ok else "unavailable",
    }
