"""
Module Staff API.

Expose la gestion du staff et la consultation des rôles.
"""
from smartpolice.api.v1.staff.routes import roles_router, router

__all__ = ["router", "roles_router"]
