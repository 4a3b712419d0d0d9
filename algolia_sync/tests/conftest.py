"""Pytest configuration and fixtures for the sync service.

Provides:
- raw Delivery API item builders
- FakeDeliveryClient / FakeSearchIndex: in-memory stand-ins for Kontent.ai and Algolia
- api_client: TestClient with the fakes injected through dependency overrides
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from algolia_sync.api.deps import get_delivery_client_factory, get_search_client_factory
from algolia_sync.api.main import app
from algolia_sync.core.errors import AlgoliaApiError, KontentDeliveryError
from algolia_sync.core.settings import settings
from algolia_sync.services.content_graph import ContentItem, linked_codenames

TEST_SECRET = "webhook-secret"
TEST_API_KEY = "algolia-admin-key"
SLUG = "url_slug"


# ---------------------------------------------------------------------------
# Raw item builders (Delivery API JSON shape)
# ---------------------------------------------------------------------------


def text_element(value: str, name: str = "Title") -> Dict[str, Any]:
    return {"type": "text", "name": name, "value": value}


def rich_text_element(
    value: str, linked: Sequence[str] = (), name: str = "Body"
) -> Dict[str, Any]:
    return {
        "type": "rich_text",
        "name": name,
        "value": value,
        "images": {},
        "links": {},
        "modular_content": list(linked),
    }


def linked_items_element(codenames: Sequence[str], name: str = "Related") -> Dict[str, Any]:
    return {"type": "modular_content", "name": name, "value": list(codenames)}


def slug_element(value: str) -> Dict[str, Any]:
    return {"type": "url_slug", "name": "URL slug", "value": value}


def make_item(
    codename: str,
    elements: Optional[Dict[str, Any]] = None,
    *,
    item_id: Optional[str] = None,
    language: str = "en",
    name: Optional[str] = None,
    item_type: str = "article",
) -> Dict[str, Any]:
    return {
        "system": {
            "id": item_id or f"id-{codename}",
            "name": name or codename.replace("_", " ").title(),
            "codename": codename,
            "language": language,
            "type": item_type,
            "collection": "default",
            "last_modified": "2024-01-01T00:00:00Z",
        },
        "elements": elements or {},
    }


def make_page(codename: str, slug: str, *texts: str, linked: Sequence[str] = (), **kwargs):
    elements: Dict[str, Any] = {SLUG: slug_element(slug)}
    for i, text in enumerate(texts):
        elements[f"text_{i}"] = text_element(text)
    if linked:
        elements["body"] = rich_text_element("<p></p>", linked)
    return make_item(codename, elements, **kwargs)


def make_fragment(codename: str, *texts: str, linked: Sequence[str] = (), **kwargs):
    elements: Dict[str, Any] = {}
    for i, text in enumerate(texts):
        elements[f"text_{i}"] = text_element(text)
    if linked:
        elements["components"] = linked_items_element(linked)
    return make_item(codename, elements, item_type="component", **kwargs)


def make_notification(
    codename: str,
    *,
    item_id: Optional[str] = None,
    language: str = "en",
    object_type: str = "content_item",
    environment_id: str = "p1",
    action: str = "published",
) -> Dict[str, Any]:
    return {
        "data": {
            "system": {
                "id": item_id or f"id-{codename}",
                "name": codename,
                "codename": codename,
                "collection": "default",
                "workflow": "default",
                "workflow_step": "published",
                "language": language,
                "type": "article",
                "last_modified": "2024-01-01T00:00:00Z",
            }
        },
        "message": {
            "environment_id": environment_id,
            "object_type": object_type,
            "action": action,
            "delivery_slot": "published",
        },
    }


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeDeliveryClient:
    """Serves raw items from memory with Delivery API semantics."""

    def __init__(self, items: Iterable[Dict[str, Any]] = ()):
        self.items: Dict[tuple, Dict[str, Any]] = {}
        self.failing: set = set()
        self.fail_listing = False
        self.get_item_calls: List[tuple] = []
        self.entered = 0
        for raw in items:
            self.put(raw)

    def put(self, raw: Dict[str, Any]) -> None:
        system = raw["system"]
        self.items[(system["codename"], system["language"])] = raw

    def remove(self, codename: str, language: str = "en") -> None:
        self.items.pop((codename, language), None)

    async def __aenter__(self) -> "FakeDeliveryClient":
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def get_item(self, codename: str, language: str, depth: int):
        self.get_item_calls.append((codename, language, depth))
        if codename in self.failing or (codename, language) not in self.items:
            raise KontentDeliveryError(f"{codename} not found", status_code=404)

        root = self.items[(codename, language)]
        linked: Dict[str, Dict[str, Any]] = {}
        stack = linked_codenames(ContentItem.from_api(root))
        while stack:
            ref = stack.pop()
            if ref in linked or ref == codename:
                continue
            raw = self.items.get((ref, language))
            if raw is None:
                continue
            linked[ref] = raw
            stack.extend(linked_codenames(ContentItem.from_api(raw)))
        return root, linked

    async def list_language_items(self, language: str):
        if self.fail_listing:
            raise KontentDeliveryError("Delivery API unavailable", status_code=503)
        items = [raw for (_, lang), raw in self.items.items() if lang == language]
        return items, {}


class FakeSearchIndex:
    """In-memory index honouring content.id / language facet filters."""

    def __init__(self, name: str = "pages"):
        self.name = name
        self.records: Dict[str, Dict[str, Any]] = {}
        self.settings: Optional[Dict[str, Any]] = None
        self.fail_search = False
        self.fail_save = False
        self.calls: List[str] = []
        self.saved_batches: List[List[Dict[str, Any]]] = []
        self.deleted_batches: List[List[str]] = []

    def seed(self, *records: Dict[str, Any]) -> None:
        for record in records:
            self.records[record["objectID"]] = record

    async def search(self, query: str = "", facet_filters=None, hits_per_page: int = 1000):
        self.calls.append("search")
        if self.fail_search:
            raise AlgoliaApiError("search unavailable", status_code=503)
        filters = dict(f.split(":", 1) for f in facet_filters or [])
        hits = []
        for record in self.records.values():
            if "language" in filters and record.get("language") != filters["language"]:
                continue
            if "content.id" in filters and not any(
                block.get("id") == filters["content.id"] for block in record.get("content", [])
            ):
                continue
            hits.append({**record, "_highlightResult": {}})
        return hits[:hits_per_page]

    async def set_settings(self, index_settings: Dict[str, Any], wait: bool = True) -> None:
        self.calls.append("set_settings")
        self.settings = index_settings

    async def save_objects(self, objects, wait: bool = True) -> List[str]:
        self.calls.append("save_objects")
        if self.fail_save:
            raise AlgoliaApiError("write rejected", status_code=400)
        self.saved_batches.append(list(objects))
        for obj in objects:
            self.records[obj["objectID"]] = obj
        return [obj["objectID"] for obj in objects]

    async def delete_objects(self, object_ids, wait: bool = True) -> List[str]:
        self.calls.append("delete_objects")
        self.deleted_batches.append(list(object_ids))
        for object_id in object_ids:
            self.records.pop(object_id, None)
        return list(object_ids)


class FakeSearchClient:
    def __init__(self, index: FakeSearchIndex):
        self.index = index
        self.credentials: Optional[tuple] = None

    async def __aenter__(self) -> "FakeSearchClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    def init_index(self, name: str) -> FakeSearchIndex:
        self.index.name = name
        return self.index


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def delivery() -> FakeDeliveryClient:
    return FakeDeliveryClient()


@pytest.fixture
def search_index() -> FakeSearchIndex:
    return FakeSearchIndex()


@pytest.fixture
def configured_env(monkeypatch):
    monkeypatch.setattr(settings, "ALGOLIA_API_KEY", TEST_API_KEY)
    monkeypatch.setattr(settings, "KONTENT_SECRET", TEST_SECRET)


@pytest.fixture
def api_client(delivery, search_index, configured_env):
    """TestClient with Kontent.ai and Algolia replaced by in-memory fakes."""
    search_client = FakeSearchClient(search_index)
    requested_environments: List[str] = []

    def delivery_factory(environment_id: str) -> FakeDeliveryClient:
        requested_environments.append(environment_id)
        return delivery

    def search_factory(app_id: str, api_key: str) -> FakeSearchClient:
        search_client.credentials = (app_id, api_key)
        return search_client

    app.dependency_overrides[get_delivery_client_factory] = lambda: delivery_factory
    app.dependency_overrides[get_search_client_factory] = lambda: search_factory
    client = TestClient(app, raise_server_exceptions=False)
    client.requested_environments = requested_environments
    client.search_client = search_client
    yield client
    app.dependency_overrides.clear()
