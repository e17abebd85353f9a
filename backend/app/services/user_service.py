"""User provisioning from OIDC identities."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import Identity, fetch_userinfo
from app.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "User"


def placeholder_email(sub: str) -> str:
    return f"user-{sub}@placeholder.local"


async def get_user_by_sub(db: AsyncSession, sub: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.sub == sub))
    return result.scalar_one_or_none()


async def ensure_user(db: AsyncSession, identity: Identity, access_token: Optional[str] = None) -> User:
    """Get or create the local user row for an authenticated identity.

    New users missing an email claim are looked up on the provider's userinfo
    endpoint. Existing users pick up changed email or name claims.
    """
    user = await get_user_by_sub(db, identity.sub)

    if user is not None:
        changed = False
        if identity.email and identity.email != user.email:
            user.email = identity.email
            changed = True
        if identity.name and identity.name != user.name:
            user.name = identity.name
            changed = True
        if changed:
            await db.commit()
            logger.info("User profile updated", extra={"user_id": str(user.id)})
        return user

    email = identity.email
    name = identity.name
    if not email and access_token:
        profile = await fetch_userinfo(access_token)
        if profile:
            email = profile.get("email")
            name = name or profile.get("name") or profile.get("nickname")

    user = User(
        sub=identity.sub,
        email=email or placeholder_email(identity.sub),
        name=name or DEFAULT_USER_NAME,
    )
    db.add(user)
    await db.commit()
    logger.info("User created", extra={"user_id": str(user.id), "sub": identity.sub})
    return user
