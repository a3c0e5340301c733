from smartpolice.models.clients.plan import Plan
from smartpolice.models.clients.client import Client
from smartpolice.models.clients.client_user import ClientUser
from smartpolice.models.clients.plan_change import PlanChange

__all__ = ["Plan", "Client", "ClientUser", "PlanChange"]
