"""
Clerk Identity Directory client
Wraps the few Backend API calls this service needs
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class ClerkDirectory:
    def __init__(
        self,
        api_url: str,
        secret_key: Optional[str],
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._http = http or httpx.AsyncClient(
            base_url=api_url,
            headers={"Authorization": f"Bearer {secret_key or ''}"},
            timeout=timeout,
        )

    async def get_user(self, user_id: str) -> dict:
        response = await self._http.get(f"/users/{user_id}")
        response.raise_for_status()
        return response.json()

    async def get_role(self, user_id: str) -> Optional[str]:
        user = await self.get_user(user_id)
        return (user.get("public_metadata") or {}).get("role")

    async def update_public_metadata(self, user_id: str, public_metadata: dict) -> dict:
        """Merge keys into the user's public metadata"""
        response = await self._http.patch(
            f"/users/{user_id}/metadata",
            json={"public_metadata": public_metadata},
        )
        response.raise_for_status()
        logger.info("📝 Directory metadata updated for %s: %s", user_id, sorted(public_metadata))
        return response.json()

    async def aclose(self):
        await self._http.aclose()
