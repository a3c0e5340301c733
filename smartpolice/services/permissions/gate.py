"""
Contrôle d'accès (permission gate).

Deux familles de permissions :
- Permissions du back-office, attachées au rôle d'accès (tables statiques)
- Permissions du portail client, ouvertes par le plan souscrit
"""

from typing import Dict, FrozenSet, Optional

from smartpolice.models.clients.plan import Plan
from smartpolice.models.enums import AccessRole, ClientPermission, Permission


# =============================================================================
# TABLES STATIQUES RÔLE -> PERMISSIONS
# =============================================================================

_ALL_PERMISSIONS: FrozenSet[Permission] = frozenset(Permission)

_ADMIN_PERMISSIONS: FrozenSet[Permission] = frozenset(
    p for p in Permission
    if not p.value.startswith(("MANAGE_", "DELETE_"))
    and p != Permission.EDIT_SERVICES
)

_STAFF_PERMISSIONS: FrozenSet[Permission] = frozenset({
    Permission.VIEW_DASHBOARD,
    Permission.VIEW_CLIENTS,
    Permission.VIEW_TICKETS,
    Permission.EDIT_TICKETS,
    Permission.VIEW_BILLING,
    Permission.VIEW_STAFF,
    Permission.VIEW_ANNOUNCEMENTS,
    Permission.VIEW_SEMINARS,
    Permission.VIEW_EVENTS,
    Permission.VIEW_MATERIALS,
})

ROLE_PERMISSIONS: Dict[AccessRole, FrozenSet[Permission]] = {
    AccessRole.SUPERADMIN: _ALL_PERMISSIONS,
    AccessRole.ADMIN: _ADMIN_PERMISSIONS,
    AccessRole.STAFF: _STAFF_PERMISSIONS,
    # Rôles régis par le plan ou par l'appartenance à la ressource
    AccessRole.CLIENTADMIN: frozenset(),
    AccessRole.CLIENT: frozenset(),
    AccessRole.AFFILIATE: frozenset(),
}


def permissions_for_role(role: AccessRole) -> FrozenSet[Permission]:
    """Ensemble des permissions du back-office d'un rôle."""
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: AccessRole, permission: Permission) -> bool:
    """
    Vérifie qu'un rôle possède une permission du back-office.

    Example:
        >>> has_permission(AccessRole.STAFF, Permission.EDIT_TICKETS)
        True
        >>> has_permission(AccessRole.ADMIN, Permission.MANAGE_PLANS)
        False
    """
    return permission in permissions_for_role(role)


def has_client_permission(plan: Optional[Plan], permission: ClientPermission) -> bool:
    """Vérifie qu'un plan ouvre une fonctionnalité du portail client."""
    if plan is None:
        return False
    return permission in plan.permission_set
