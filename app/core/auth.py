from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.config.settings import AuthConfig, config
from app.core.errors import AuthError, ForbiddenError

ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


class AdminIdentity(BaseModel):
    email: str
    role: str


def create_session_token(email: str, auth_config: AuthConfig, now: Optional[datetime] = None) -> str:
    """Sign a stateless admin session token"""
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "sub": email,
        "email": email,
        "role": ADMIN_ROLE,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(hours=auth_config.token_ttl_hours)).timestamp()),
    }
    return jwt.encode(claims, auth_config.jwt_secret, algorithm=auth_config.algorithm)


def authenticate_token(token: Optional[str], auth_config: AuthConfig) -> AdminIdentity:
    """
    Verify signature and expiry.
    Fails closed: anything not provably a live admin token is rejected.
    """
    if not token:
        raise AuthError("error.token_missing")

    try:
        claims = jwt.decode(
            token,
            auth_config.jwt_secret,
            algorithms=[auth_config.algorithm],
            options={"require_exp": True},
        )
    except JWTError:
        raise AuthError("error.token_invalid")

    email = claims.get("email") or claims.get("sub")
    if not email:
        raise AuthError("error.token_invalid")

    if claims.get("role") != ADMIN_ROLE:
        raise ForbiddenError("error.forbidden")

    return AdminIdentity(email=email, role=claims["role"])


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> AdminIdentity:
    """Dependency guarding admin endpoints"""
    token = credentials.credentials if credentials else None
    return authenticate_token(token, config.auth)
