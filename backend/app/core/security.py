"""Security utilities: OIDC access token validation against the provider JWKS."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be trusted."""


@dataclass
class Identity:
    """Caller identity resolved from validated token claims."""

    sub: str
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Identity":
        sub = claims.get("sub")
        if not sub:
            raise InvalidTokenError("Token has no subject")
        return cls(
            sub=str(sub),
            email=claims.get("email"),
            name=claims.get("name") or claims.get("preferred_username"),
        )


class JWKSCache:
    """Keeps the provider signing keys in memory for a bounded time."""

    def __init__(self, url: str, ttl_seconds: int):
        self.url = url
        self.ttl_seconds = ttl_seconds
        self._keys: List[Dict[str, Any]] = []
        self._fetched_at: float = 0.0

    def set_keys(self, keys: List[Dict[str, Any]]) -> None:
        self._keys = list(keys)
        self._fetched_at = time.monotonic()

    @property
    def is_stale(self) -> bool:
        return not self._keys or time.monotonic() - self._fetched_at > self.ttl_seconds

    async def refresh(self) -> None:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            self.set_keys(response.json().get("keys", []))
        logger.info("Fetched JWKS", extra={"jwks_url": self.url, "keys": len(self._keys)})

    def find(self, kid: Optional[str]) -> Optional[Dict[str, Any]]:
        for key in self._keys:
            if kid is None or key.get("kid") == kid:
                return key
        return None

    async def get_key(self, kid: Optional[str]) -> Dict[str, Any]:
        if self.is_stale:
            await self.refresh()
        key = self.find(kid)
        if key is None:
            # Provider may have rotated keys since the last fetch
            await self.refresh()
            key = self.find(kid)
        if key is None:
            raise InvalidTokenError(f"No signing key for kid={kid!r}")
        return key


jwks_cache = JWKSCache(settings.jwks_url, settings.JWKS_CACHE_TTL_SECONDS)


async def decode_access_token(token: str) -> Dict[str, Any]:
    """Validate signature, audience, issuer and expiry; return the claims."""
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise InvalidTokenError(f"Malformed token: {e}") from e

    algorithm = header.get("alg")
    if algorithm not in settings.OIDC_ALGORITHMS:
        raise InvalidTokenError(f"Algorithm {algorithm!r} not allowed")

    try:
        key = await jwks_cache.get_key(header.get("kid"))
    except httpx.HTTPError as e:
        logger.error(f"JWKS fetch failed: {type(e).__name__}: {e}")
        raise InvalidTokenError("Signing keys unavailable") from e

    try:
        return jwt.decode(
            token,
            key,
            algorithms=settings.OIDC_ALGORITHMS,
            audience=settings.OIDC_AUDIENCE,
            issuer=settings.OIDC_ISSUER,
        )
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e


async def fetch_userinfo(access_token: str) -> Optional[Dict[str, Any]]:
    """Fetch the profile from the provider userinfo endpoint, None on failure."""
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(
                settings.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
    except httpx.HTTPError as e:
        logger.warning("Userinfo request failed: %s", e)
        return None

    if response.status_code != 200:
        logger.warning(
            "Userinfo request failed: %s %s", response.status_code, response.reason_phrase
        )
        return None
    return response.json()
