"""
HTTP client the admin pages use to reach the users REST API.

The pages never open a database session; every read and write goes
through these calls so the REST API stays the single write path.
"""

import logging
from typing import AsyncIterator, Optional

import httpx

from usermanager.config import get_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Non-success answer from the users API.

    Attributes:
        status_code: HTTP status returned by the API (0 if it was unreachable)
        detail: Error message from the response body
        errors: Per-field validation messages, if any
    """

    def __init__(self, status_code: int, detail: str, errors: Optional[dict] = None):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.errors = errors or {}


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient for the /api/users endpoints.

    Args:
        client: Configured AsyncClient (base_url points at the API server)
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def list_users(self, page_number: int, page_size: int) -> dict:
        response = await self._send(
            "GET", "/api/users", params={"page_number": page_number, "page_size": page_size}
        )
        return response.json()

    async def get_user(self, user_id: str) -> dict:
        response = await self._send("GET", f"/api/users/{user_id}")
        return response.json()

    async def create_user(self, payload: dict) -> str:
        response = await self._send("POST", "/api/users", json=payload)
        return response.json()

    async def update_user(self, user_id: str, payload: dict) -> None:
        await self._send("PUT", f"/api/users/{user_id}", json=payload)

    async def delete_user(self, user_id: str) -> None:
        await self._send("DELETE", f"/api/users/{user_id}")

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Users API unreachable ({method} {url}): {str(e)}")
            raise ApiError(0, "Users API is unreachable") from e

        if response.is_success:
            return response

        detail = response.reason_phrase
        errors = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("detail", detail)
            errors = body.get("errors")

        logger.warning(f"Users API returned {response.status_code} for {method} {url}: {detail}")
        raise ApiError(response.status_code, str(detail), errors)


async def get_api_client() -> AsyncIterator[ApiClient]:
    """Dependency providing an ApiClient for the duration of one page request."""
    web = get_settings().web
    async with httpx.AsyncClient(base_url=web.API_BASE_URL, timeout=web.API_TIMEOUT_SECONDS) as client:
        yield ApiClient(client)
