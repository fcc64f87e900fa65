from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List
import logging

from catalog.config import settings
from catalog.database import get_db
from catalog.core.exceptions import AccessDeniedError
from catalog.core.security import decode_access_token
from catalog.models.user import User, UserRole
from catalog.services.filter_query_builder import FilterDefaults, normalize_params

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """User named by the bearer token; the token role must match the stored role"""
    if not credentials:
        raise _unauthorized("Not authenticated")

    claims = decode_access_token(credentials.credentials)
    if not claims:
        raise _unauthorized("Invalid or expired token")
    if not claims.get("user_id"):
        raise _unauthorized("Token carries no user_id")

    user = await db.get(User, claims["user_id"])
    if not user:
        raise _unauthorized("User not found")

    if claims.get("role") and claims["role"] != user.role.value:
        logger.warning(f"Role mismatch for user {user.id}: token={claims['role']}, db={user.role.value}")
        raise _unauthorized("Token role mismatch - please re-login")

    return user


async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Verify current user is admin"""
    if current_user.role != UserRole.ADMIN:
        raise AccessDeniedError("Admin access required")
    return current_user


def get_filter_defaults() -> FilterDefaults:
    return FilterDefaults.from_settings(settings)


def get_query_params(request: Request) -> Dict[str, List[str]]:
    """All query parameters as key -> [values]; `key[]` folds into `key`"""
    return normalize_params(request.query_params.multi_items())
