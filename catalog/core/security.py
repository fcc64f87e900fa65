"""
Bearer tokens for the admin endpoints

Tokens carry `user_id` and `role`; the role is re-checked against the user row
on every request.
"""
from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from catalog.config import settings
from catalog.core.datetime_utils import utc_now

ACCESS_TOKEN_TYPE = "access"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    claims = dict(data)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims.update({"exp": utc_now() + lifetime, "type": ACCESS_TOKEN_TYPE})
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Claims of a valid, unexpired access token; None otherwise"""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        return None
    return claims
