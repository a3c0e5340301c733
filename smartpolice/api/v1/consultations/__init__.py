"""
Module Consultations API.

Expose l'ouverture de consultations et la gestion des fils.
"""
from smartpolice.api.v1.consultations.routes import router

__all__ = ["router"]
