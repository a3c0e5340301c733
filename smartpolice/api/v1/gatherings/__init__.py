"""
Module Gatherings API.

Expose les routes des séminaires et des événements.
"""
from smartpolice.api.v1.gatherings.routes import events_router, seminars_router

__all__ = ["seminars_router", "events_router"]
