from smartpolice.models.tickets.consumption_log import TicketConsumptionLog

__all__ = ["TicketConsumptionLog"]
