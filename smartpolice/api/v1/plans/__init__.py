"""
Module Plans API.

Expose le catalogue des offres et leur administration.
"""
from smartpolice.api.v1.plans.routes import router

__all__ = ["router"]
