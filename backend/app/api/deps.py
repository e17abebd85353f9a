"""API dependencies."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import Identity, InvalidTokenError, decode_access_token
from app.models.user import User
from app.services.completion_service import CompletionService
from app.services.user_service import ensure_user

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Validate the bearer token and resolve the caller's identity."""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        claims = await decode_access_token(credentials.credentials)
        return Identity.from_claims(claims)
    except InvalidTokenError as e:
        logger.warning("Rejected access token: %s", e)
        raise _unauthorized("Invalid or expired token")


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get the local user for the authenticated caller, creating it on first use."""
    access_token = credentials.credentials if credentials else None
    return await ensure_user(db, identity, access_token)


def get_completion_service(request: Request) -> CompletionService:
    return request.app.state.completion_service
