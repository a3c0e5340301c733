from smartpolice.models.catalog.service import Service
from smartpolice.models.catalog.service_application import ServiceApplication

__all__ = ["Service", "ServiceApplication"]
