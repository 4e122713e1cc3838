"""Security utilities and dependencies for authentication

Access tokens are issued by the identity service; this backend only
verifies them. The token subject and role are trusted once the signature
and expiry check out.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from backend.app.core.config import settings
from backend.app.core.logging import get_logger

logger = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer()


class UserRole(str, enum.Enum):
    """Roles carried in access tokens"""
    ADMIN = "admin"
    RECRUITER = "recruiter"
    HIRING_MANAGER = "hiring_manager"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller"""
    user_id: str
    role: UserRole


def create_access_token(user_id: str, role: UserRole, expires_minutes: int = 30) -> str:
    """
    Create a signed access token

    Args:
        user_id: Token subject
        role: Caller role
        expires_minutes: Lifetime in minutes

    Returns:
        Encoded JWT
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = {"sub": str(user_id), "role": UserRole(role).value, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode an access token

    Returns:
        Token payload if valid, None otherwise
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token verification failed: {str(e)}")
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Principal:
    """
    Dependency to get the authenticated caller from a JWT

    Raises:
        HTTPException: If the token is invalid or carries no usable subject/role
    """
    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Token missing user ID")
        raise _unauthorized("Invalid token payload")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        logger.warning(f"Token carries unknown role: {payload.get('role')}")
        raise _unauthorized("Invalid token payload")

    return Principal(user_id=str(user_id), role=role)


class RoleChecker:
    """Dependency class for role-based access control"""

    def __init__(self, allowed_roles: list[UserRole]):
        self.allowed_roles = allowed_roles

    def __call__(self, current_user: Principal = Depends(get_current_user)) -> Principal:
        if current_user.role not in self.allowed_roles:
            logger.warning(
                f"User {current_user.user_id} with role {current_user.role.value} "
                f"attempted to access resource requiring roles: {[r.value for r in self.allowed_roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required roles: {[r.value for r in self.allowed_roles]}"
            )

        return current_user


require_recruiter = RoleChecker([UserRole.ADMIN, UserRole.RECRUITER])
require_any_role = RoleChecker([UserRole.ADMIN, UserRole.RECRUITER, UserRole.HIRING_MANAGER])
