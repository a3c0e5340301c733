"""
Module Tickets API.

Expose le débit, le solde, le livret et l'historique de consommation.
"""
from smartpolice.api.v1.tickets.routes import router

__all__ = ["router"]
