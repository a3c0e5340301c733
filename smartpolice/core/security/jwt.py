"""Gestion des tokens JWT (HS256) émis par le service d'authentification."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from jose import jwt, JWTError

from smartpolice.core.config import settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crée un token JWT d'accès signé.

    L'émission en production est assurée par le service d'authentification ;
    cette fonction sert aux outils d'administration et aux tests.

    Args:
        data: Claims à encoder (sub, name, role, client_id, affiliate_id)
        expires_delta: Durée de validité personnalisée

    Returns:
        Token JWT signé
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "iss": settings.TOKEN_ISSUER,
        "type": "access"
    })

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def verify_token(token: str, token_type: str = "access") -> Dict[str, Any]:
    """
    Vérifie et décode un token JWT.

    Args:
        token: Token JWT à vérifier
        token_type: Type attendu ("access")

    Returns:
        Payload décodé

    Raises:
        JWTError: Si le token est invalide, expiré ou de mauvais type
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.TOKEN_ISSUER,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_iat": True,
                "require_exp": True,
                "require_iat": True
            }
        )
    except JWTError as e:
        raise JWTError(f"Token validation failed: {str(e)}")

    if payload.get("type") != token_type:
        raise JWTError(f"Token type mismatch. Expected {token_type}")

    return payload
