"""
Module Affiliation API.

Expose les partenaires, recommandations et versements.
"""
from smartpolice.api.v1.affiliates.routes import router

__all__ = ["router"]
