"""Authentication endpoints.

Tokens are issued by the OIDC provider; this API only validates them, so there is
no login or refresh flow here.
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.user import MessageResponse, UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the current user's profile, provisioning it on first call."""
    return current_user


@router.post("/logout", response_model=MessageResponse)
async def logout():
    """Stateless acknowledgement; clients discard their token."""
    return MessageResponse(message="Logged out successfully")
