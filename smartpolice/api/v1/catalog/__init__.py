"""
Module Catalogue de services API.

Expose les offres de services et les demandes des clients.
"""
from smartpolice.api.v1.catalog.routes import router

__all__ = ["router"]
