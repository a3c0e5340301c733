from smartpolice.core.auth.actor import Actor, SYSTEM_ACTOR
from smartpolice.core.auth.actor_auth import (
    bearer_scheme,
    ensure_client_access,
    get_current_actor,
    require_permission,
)

__all__ = [
    "Actor",
    "SYSTEM_ACTOR",
    "bearer_scheme",
    "ensure_client_access",
    "get_current_actor",
    "require_permission",
]
