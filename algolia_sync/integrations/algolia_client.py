"""Algolia REST API client.

Covers the index operations the sync needs:
- facet-filtered search
- batched upserts and deletes
- index settings
- waiting for indexing tasks to publish
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote, urlencode

import httpx
import structlog

from algolia_sync.core.errors import AlgoliaApiError
from algolia_sync.core.settings import settings

logger = structlog.get_logger(__name__)

BATCH_SIZE = 1000
MAX_HITS_PER_PAGE = 1000


class AlgoliaClient:
    """
    Algolia REST client for one application.

    Usage:
        async with AlgoliaClient(app_id, api_key) as client:
            index = client.init_index("pages")
            await index.save_objects(records)
    """

    def __init__(
        self,
        app_id: str,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        poll_interval: Optional[float] = None,
        max_polls: Optional[int] = None,
    ):
        self.app_id = app_id
        self.api_key = api_key
        self.base_url = (
            base_url or settings.ALGOLIA_HOST_TEMPLATE.format(app_id=app_id)
        ).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.poll_interval = (
            settings.ALGOLIA_TASK_POLL_INTERVAL if poll_interval is None else poll_interval
        )
        self.max_polls = max_polls or settings.ALGOLIA_TASK_MAX_POLLS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "AlgoliaClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
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
            "X-Algolia-Application-Id": self.app_id,
            "X-Algolia-API-Key": self.api_key,
            "Content-Type": "application/json",
        }

    def init_index(self, index_name: str) -> "AlgoliaIndex":
        return AlgoliaIndex(self, index_name)

    async def request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        try:
            response = await self._client.request(method, path, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(
                "algolia.request_failed",
                method=method,
                path=path,
                status=e.response.status_code,
                error=message,
            )
            raise AlgoliaApiError(
                f"Algolia returned {e.response.status_code}: {message}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("algolia.request_error", method=method, path=path, error=str(e))
            raise AlgoliaApiError(f"Algolia request failed: {e}") from e


class AlgoliaIndex:
    """Operations scoped to one index."""

    def __init__(self, client: AlgoliaClient, name: str):
        self.client = client
        self.name = name
        self._path = f"/1/indexes/{quote(name, safe='')}"

    async def search(
        self,
        query: str = "",
        facet_filters: Optional[Sequence[Any]] = None,
        hits_per_page: int = MAX_HITS_PER_PAGE,
    ) -> List[Dict[str, Any]]:
        """Return the raw hits of one search page."""
        params: Dict[str, Any] = {"query": query, "hitsPerPage": hits_per_page}
        if facet_filters:
            params["facetFilters"] = json.dumps(list(facet_filters))
        data = await self.client.request(
            "POST", f"{self._path}/query", {"params": urlencode(params)}
        )
        return data.get("hits") or []

    async def set_settings(self, index_settings: Dict[str, Any], wait: bool = True) -> None:
        data = await self.client.request("PUT", f"{self._path}/settings", index_settings)
        if wait:
            await self.wait_task(data.get("taskID"))

    async def save_objects(
        self, objects: Sequence[Dict[str, Any]], wait: bool = True
    ) -> List[str]:
        """Replace (or create) every object; returns the written object IDs."""
        requests = [{"action": "updateObject", "body": obj} for obj in objects]
        return await self._batch(requests, wait)

    async def delete_objects(
        self, object_ids: Sequence[str], wait: bool = True
    ) -> List[str]:
        requests = [
            {"action": "deleteObject", "body": {"objectID": object_id}}
            for object_id in object_ids
        ]
        return await self._batch(requests, wait)

    async def _batch(self, requests: List[Dict[str, Any]], wait: bool) -> List[str]:
        object_ids: List[str] = []
        task_ids: List[int] = []
        for start in range(0, len(requests), BATCH_SIZE):
            chunk = requests[start : start + BATCH_SIZE]
            data = await self.client.request(
                "POST", f"{self._path}/batch", {"requests": chunk}
            )
            object_ids.extend(data.get("objectIDs") or [])
            task_ids.append(data.get("taskID"))

        if wait:
            for task_id in task_ids:
                await self.wait_task(task_id)
        return object_ids

    async def wait_task(self, task_id: Optional[int]) -> None:
        """Poll until the task is published."""
        if task_id is None:
            return
        for _ in range(self.client.max_polls):
            data = await self.client.request("GET", f"{self._path}/task/{task_id}")
            if data.get("status") == "published":
                return
            await asyncio.sleep(self.client.poll_interval)
        raise AlgoliaApiError(
            f"Task {task_id} on index {self.name} was not published in time"
        )


def _error_message(response: httpx.Response) -> str:
    try:
        return str(response.json().get("message") or response.text)
    except ValueError:
        return response.text
