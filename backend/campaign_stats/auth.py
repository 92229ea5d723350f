import logging
from typing import Optional

from fastapi import Header
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import BaseModel

from campaign_stats.errors import PermissionDenied, Unauthenticated
from campaign_stats.settings import SECRET_KEY, TOKEN_MAX_AGE

logger = logging.getLogger(__name__)

ADMIN_ROLES = {"admin", "superadmin"}

# Tokens are issued by the dashboard's sign-in flow with the same key
serializer = URLSafeTimedSerializer(SECRET_KEY, salt="campaign-stats-identity")


class Claims(BaseModel):
    uid: str
    admin: bool = False
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.admin is True or (self.role or "") in ADMIN_ROLES


def issue_token(uid: str, admin: bool = False, role: Optional[str] = None) -> str:
    return serializer.dumps({"uid": uid, "admin": admin, "role": role})


def load_claims(token: str) -> Claims:
    try:
        data = serializer.loads(token, max_age=TOKEN_MAX_AGE)
    except SignatureExpired:
        logger.warning("[AUTH] Expired identity token")
        raise Unauthenticated("Identity token expired.")
    except BadSignature:
        logger.warning("[AUTH] Invalid identity token signature")
        raise Unauthenticated("Invalid identity token.")

    if not isinstance(data, dict) or not data.get("uid"):
        raise Unauthenticated("Identity token carries no uid.")
    return Claims(**data)


def require_admin(claims: Optional[Claims]) -> Claims:
    if claims is None:
        raise Unauthenticated("Authentication required.")
    if not claims.is_admin:
        logger.warning(f"[AUTH] Admin-only call rejected for uid={claims.uid}")
        raise PermissionDenied("Admin only")
    return claims


async def current_claims(authorization: Optional[str] = Header(default=None)) -> Claims:
    """FastAPI dependency: decode the bearer token or fail with Unauthenticated."""
    if not authorization:
        raise Unauthenticated("Authentication required.")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Expected a bearer token.")
    return load_claims(token.strip())


async def admin_claims(authorization: Optional[str] = Header(default=None)) -> Claims:
    claims = await current_claims(authorization)
    return require_admin(claims)
