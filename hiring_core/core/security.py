"""
Signed bearer tokens.

Tokens carry only the account id; the organization role is resolved from the
database on every request so that the authorization snapshot is current.
"""

from typing import Optional
from uuid import UUID

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from hiring_core.core.config import settings

_TOKEN_SALT = "hiring-core-access-token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.SECRET_KEY, salt=_TOKEN_SALT)


def create_access_token(account_id: UUID) -> str:
    """Issue a signed token for an account."""
    return _serializer().dumps({"account_id": str(account_id)})


def decode_access_token(token: str) -> Optional[UUID]:
    """Return the account id of a valid token, or None if invalid or expired."""
    try:
        payload = _serializer().loads(token, max_age=settings.ACCESS_TOKEN_EXPIRE_HOURS * 3600)
    except (BadSignature, SignatureExpired):
        return None
    try:
        return UUID(payload["account_id"])
    except (KeyError, TypeError, ValueError):
        return None
