"""Request-scoped dependencies: settings, Redis handle and the calling actor.

The identity service issues the JWTs; this service only verifies them and reads
the ``sub`` claim as the actor id.
"""

from functools import lru_cache
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis

from app.config import Settings

_bearer = HTTPBearer(auto_error=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_redis(request: Request) -> Redis | None:
    """Redis client from app state, or None when caching is disabled."""
    return getattr(request.app.state, "redis", None)


def _decode_actor(token: str, settings: Settings) -> UUID:
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    return UUID(payload["sub"])


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    settings: Settings = Depends(get_settings),
) -> UUID:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return _decode_actor(credentials.credentials, settings)
    except (jwt.PyJWTError, KeyError, ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    settings: Settings = Depends(get_settings),
) -> UUID | None:
    """Returns user_id if a valid JWT is present, None for unauthenticated requests."""
    if credentials is None:
        return None
    try:
        return _decode_actor(credentials.credentials, settings)
    except (jwt.PyJWTError, KeyError, ValueError, TypeError):
        return None
