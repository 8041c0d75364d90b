"""
Identity provider (Clerk) Backend API client.
Only used for profile lookups; session verification happens locally in auth_utils.
"""

import logging
from typing import Optional

import httpx

from learnhub import config

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    pass


class IdentityClient:
    def __init__(self, base_url: str, secret_key: str, timeout: float = 10.0,
                 http_client: Optional[httpx.AsyncClient] = None):
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {secret_key}"},
        )

    @classmethod
    def from_config(cls) -> "IdentityClient":
        return cls(config.CLERK_API_URL, config.CLERK_SECRET_KEY, config.IDENTITY_TIMEOUT_SECONDS)

    async def get_user(self, user_id: str) -> dict:
        """Return a display profile: full_name, username, image_url"""
        try:
            response = await self._client.get(f"/users/{user_id}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IdentityProviderError(f"Profile lookup failed for {user_id}: {e}") from e

        first = data.get("first_name") or ""
        last = data.get("last_name") or ""
        full_name = f"{first} {last}".strip() or None

        return {
            "full_name": full_name,
            "username": data.get("username"),
            "image_url": data.get("image_url"),
        }

    async def aclose(self):
        await self._client.aclose()


def looks_like_provider_id(user_id: Optional[str]) -> bool:
    return isinstance(user_id, str) and user_id.startswith("user_")
