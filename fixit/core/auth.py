"""
Principal extraction and role guards.

Tokens are Firebase ID tokens. The caller's role comes from the "role" custom
claim ("administrator" or "member"); anything else is treated as a member.
Token issuance lives outside this service.
"""

from enum import Enum
from typing import Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from pydantic import BaseModel

from fixit.config.firebase import initialize_firebase_app
from fixit.core.exceptions import ForbiddenError
from fixit.utils.identity import normalize_id

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Role(str, Enum):
    ADMINISTRATOR = "administrator"
    MEMBER = "member"


class Principal(BaseModel):
    """Authenticated caller."""
    user_id: str
    role: Role = Role.MEMBER
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMINISTRATOR


def require_role(principal: Optional[Principal], role: Role) -> Principal:
    """
    Raise ForbiddenError unless the principal holds the role.

    Managers call this before touching storage.
    """
    if principal is None or principal.role != role:
        raise ForbiddenError(
            f"{role.value} role required",
            required_role=role.value,
            actual_role=principal.role.value if principal else None,
        )
    return principal


def principal_from_claims(claims: dict) -> Principal:
    user_id = normalize_id(claims.get("uid") or claims.get("sub"))
    if not user_id:
        raise ValueError("Token carries no user id")
    role_claim = claims.get("role")
    role = Role.ADMINISTRATOR if role_claim in ("administrator", "admin") else Role.MEMBER
    return Principal(user_id=user_id, role=role, email=claims.get("email"))


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Verify the bearer token and build the Principal."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        initialize_firebase_app()
        claims = firebase_auth.verify_id_token(credentials.credentials)
        return principal_from_claims(claims)
    except Exception as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Route dependency for administrator-only endpoints."""
    return require_role(principal, Role.ADMINISTRATOR)
