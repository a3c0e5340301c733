"""
Module Clients API.

Expose les routes d'inscription, de profil et de changement de plan.
"""
from smartpolice.api.v1.clients.routes import router

__all__ = ["router"]
