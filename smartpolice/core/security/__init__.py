# smartpolice/core/security/__init__.py

from smartpolice.core.security.jwt import create_access_token, verify_token

__all__ = ["create_access_token", "verify_token"]
