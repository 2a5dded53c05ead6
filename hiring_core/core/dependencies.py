"""
FastAPI dependencies for the application.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.security import decode_access_token
from hiring_core.db.session import get_db
from hiring_core.errors import Unauthorized
from hiring_core.schemas.auth import AuthContext
from hiring_core.services.access_control import AuthContextResolver

# Security scheme for signed bearer tokens. Missing credentials are reported
# by the services as Unauthorized, in the standard error shape.
security = HTTPBearer(auto_error=False)


async def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[AuthContext]:
    """
    Resolve the caller's AuthContext from the bearer token.

    Returns None when no token was sent.

    Raises:
        Unauthorized: token invalid, expired, or for an unknown account
    """
    if credentials is None:
        return None

    account_id = decode_access_token(credentials.credentials)
    if account_id is None:
        raise Unauthorized("INVALID_TOKEN", "Invalid or expired authentication token")

    ctx = await AuthContextResolver(db).resolve(account_id)
    if ctx is None:
        raise Unauthorized("UNKNOWN_ACCOUNT", "Account not found")
    return ctx


async def require_auth_context(ctx: Optional[AuthContext] = Depends(get_auth_context)) -> AuthContext:
    """Same as get_auth_context, for routes that never serve anonymous callers."""
    if ctx is None:
        raise Unauthorized("NOT_AUTHENTICATED", "Authentication required")
    return ctx
