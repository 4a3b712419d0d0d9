"""Kontent.ai Delivery API client.

Read-only access to published content items:
- one item with its linked items, by codename
- every item of a language, following pagination
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx
import structlog

from algolia_sync.core.errors import KontentDeliveryError
from algolia_sync.core.settings import settings

logger = structlog.get_logger(__name__)


class KontentDeliveryClient:
    """
    Kontent.ai Delivery REST client scoped to one environment (project).
    """

    def __init__(
        self,
        environment_id: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.environment_id = environment_id
        self.base_url = (base_url or settings.KONTENT_DELIVERY_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "KontentDeliveryClient":
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/{self.environment_id}",
            timeout=self.timeout,
            headers=self._headers(),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            # Bypass the CDN cache so webhook-triggered reads see the new version
            "X-KC-Wait-For-Loading-New-Content": "true",
            "X-KC-SOURCE": settings.KONTENT_SOURCE_HEADER,
        }

    async def _get(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        try:
            response = await self._client.get(path, params=params or {})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "kontent.request_failed",
                path=path,
                status=e.response.status_code,
            )
            raise KontentDeliveryError(
                f"Delivery API returned {e.response.status_code} for {path}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("kontent.request_error", path=path, error=str(e))
            raise KontentDeliveryError(f"Delivery API request failed: {e}") from e

    async def get_item(
        self, codename: str, language: str, depth: int
    ) -> Tuple[Dict[str, Any], Dict[str, Dict[str, Any]]]:
        """
        Fetch one item with linked items up to ``depth`` levels.

        Returns:
            The item JSON and the ``modular_content`` map of linked items
        """
        data = await self._get(
            f"/items/{codename}", {"language": language, "depth": depth}
        )
        item = data.get("item")
        if not isinstance(item, dict):
            raise KontentDeliveryError(f"Malformed item response for {codename}")
        return item, data.get("modular_content") or {}

    async def list_language_items(
        self, language: str
    ) -> Tuple[List[Dict[str, Any]], Dict[str, Dict[str, Any]]]:
        """
        Fetch every item whose own language is ``language`` (no fallbacks).

        Follows ``pagination.next_page`` until exhausted.
        """
        items: List[Dict[str, Any]] = []
        linked: Dict[str, Dict[str, Any]] = {}
        params: Optional[Dict[str, Any]] = {
            "language": language,
            "system.language": language,
        }
        path = "/items"

        while True:
            data = await self._get(path, params)
            items.extend(data.get("items") or [])
            linked.update(data.get("modular_content") or {})

            next_page = (data.get("pagination") or {}).get("next_page") or ""
            if not next_page:
                break
            # next_page is absolute; reuse its query string against our base URL
            params = dict(httpx.URL(next_page).params)

        logger.info(
            "kontent.language_items_listed",
            environment_id=self.environment_id,
            language=language,
            items=len(items),
            linked=len(linked),
        )
        return items, linked
