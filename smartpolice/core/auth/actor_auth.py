"""
Dépendances FastAPI d'authentification et d'autorisation.

Le token JWT (émis par le service d'authentification) décrit l'acteur :
- sub: identifiant de l'acteur (email)
- name: nom affiché
- role: rôle d'accès (AccessRole)
- client_id / affiliate_id: rattachement éventuel
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from smartpolice.core.auth.actor import Actor
from smartpolice.core.security.jwt import verify_token
from smartpolice.models.enums import AccessRole, Permission
from smartpolice.services.permissions import has_permission

logger = logging.getLogger(__name__)


# =============================================================================
# SECURITY SCHEME
# =============================================================================

bearer_scheme = HTTPBearer(
    scheme_name="SmartPoliceAuth",
    description="JWT Bearer token émis par le service d'authentification",
    auto_error=False,
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(value)


# =============================================================================
# DEPENDENCIES
# =============================================================================

async def get_current_actor(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Actor:
    """
    Construit l'acteur courant à partir du token.

    Raises:
        HTTPException 401: Si pas de token, token invalide ou claims incomplets
    """
    if not credentials:
        raise _unauthorized("Authentification requise")

    try:
        payload = verify_token(credentials.credentials, token_type="access")
    except JWTError as e:
        raise _unauthorized(f"Token invalide: {str(e)}")

    actor_id = payload.get("sub")
    if not actor_id:
        raise _unauthorized("Token invalide: ID manquant")

    try:
        role = AccessRole(payload.get("role"))
        client_id = _optional_int(payload.get("client_id"))
        affiliate_id = _optional_int(payload.get("affiliate_id"))
    except (ValueError, TypeError):
        raise _unauthorized("Token invalide: claims incorrects")

    if role.is_client_side and client_id is None:
        raise _unauthorized("Token invalide: client_id manquant")

    return Actor(
        actor_id=str(actor_id),
        name=payload.get("name") or str(actor_id),
        role=role,
        client_id=client_id,
        affiliate_id=affiliate_id,
    )


def require_permission(permission: Permission) -> Callable:
    """
    Factory pour créer une dépendance qui vérifie une permission du back-office.

    Usage:
        @router.get("/audit-logs")
        def list_audit_logs(
            actor: Actor = Depends(require_permission(Permission.VIEW_LOGS))
        ):
            ...
    """
    async def check_permission(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not has_permission(actor.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{permission.value}' requise. Votre rôle: {actor.role.value}",
            )
        return actor

    return check_permission


def ensure_client_access(actor: Actor, client_id: int, permission: Permission) -> None:
    """
    Autorise les utilisateurs du client lui-même, ou le staff ayant la permission.

    Raises:
        HTTPException 403: Sinon
    """
    if actor.belongs_to_client(client_id):
        return
    if has_permission(actor.role, permission):
        return
    logger.warning(f"⛔ Accès refusé: {actor.actor_id} ({actor.role.value}) sur client #{client_id}")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Accès refusé à ce client",
    )
