from smartpolice.services.permissions.gate import (
    ROLE_PERMISSIONS,
    has_client_permission,
    has_permission,
    permissions_for_role,
)

__all__ = [
    "ROLE_PERMISSIONS",
    "has_client_permission",
    "has_permission",
    "permissions_for_role",
]
