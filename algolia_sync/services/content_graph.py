"""
Content graph fetching and traversal.

A content graph maps codename -> ContentItem for one root item (or a whole
language) and everything reachable from it through rich-text components,
linked items and linked-items elements.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import structlog

from algolia_sync.core.settings import settings
from algolia_sync.integrations.kontent_client import KontentDeliveryClient

logger = structlog.get_logger(__name__)

TEXT = "text"
RICH_TEXT = "rich_text"
MODULAR_CONTENT = "modular_content"


@dataclass
class ContentElement:
    type: str
    name: str = ""
    value: Any = None
    modular_content: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ContentElement":
        return cls(
            type=data.get("type") or "",
            name=data.get("name") or "",
            value=data.get("value"),
            modular_content=list(data.get("modular_content") or []),
        )


@dataclass
class ContentItem:
    """One content item as returned by the Delivery API."""

    id: str
    codename: str
    language: str
    name: str = ""
    type: str = ""
    collection: str = ""
    last_modified: Optional[str] = None
    elements: Dict[str, ContentElement] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ContentItem":
        system = data.get("system") or {}
        return cls(
            id=system["id"],
            codename=system["codename"],
            language=system["language"],
            name=system.get("name") or "",
            type=system.get("type") or "",
            collection=system.get("collection") or "",
            last_modified=system.get("last_modified"),
            elements={
                codename: ContentElement.from_api(element)
                for codename, element in (data.get("elements") or {}).items()
            },
        )

    def element_value(self, codename: str) -> Any:
        element = self.elements.get(codename)
        return element.value if element else None


ContentGraph = Dict[str, ContentItem]


def build_graph(raw_items: List[Dict[str, Any]]) -> ContentGraph:
    """Index raw item JSON by codename; the first occurrence of a codename wins."""
    graph: ContentGraph = {}
    for raw in raw_items:
        item = ContentItem.from_api(raw)
        graph.setdefault(item.codename, item)
    return graph


async def fetch_item_graph(
    client: KontentDeliveryClient,
    codename: str,
    language: str,
    depth: Optional[int] = None,
) -> ContentGraph:
    """
    Fetch an item and everything linked from it.

    Any failure yields an empty graph: a missing or broken sub-tree degrades
    the resulting record instead of aborting the sync.
    """
    try:
        item, linked = await client.get_item(
            codename, language, depth or settings.KONTENT_FETCH_DEPTH
        )
        return build_graph([item, *linked.values()])
    except Exception as e:
        logger.warning(
            "content_graph.fetch_failed",
            codename=codename,
            language=language,
            error=str(e),
        )
        return {}


async def fetch_language_graph(
    client: KontentDeliveryClient, language: str
) -> ContentGraph:
    """Fetch every item of a language plus all linked items. Failures propagate."""
    items, linked = await client.list_language_items(language)
    return build_graph([*items, *linked.values()])


def linked_codenames(item: ContentItem) -> List[str]:
    """Codenames referenced by the item's rich-text and linked-items elements."""
    seen: Dict[str, None] = {}
    for element in item.elements.values():
        if element.type == RICH_TEXT:
            refs = element.modular_content
        elif element.type == MODULAR_CONTENT:
            refs = element.value or []
        else:
            continue
        for ref in refs:
            if isinstance(ref, str):
                seen.setdefault(ref, None)
    return list(seen)


def walk_fragments(
    graph: ContentGraph,
    root: str,
    is_page: Callable[[ContentItem], bool],
) -> Iterator[Tuple[ContentItem, List[str]]]:
    """
    Yield (fragment, parents) for every non-page item reachable from ``root``.

    Depth-first, pre-order, in element order. Pages and missing codenames stop
    the descent. Each item is visited at most once, so cycles terminate.
    """
    root_item = graph.get(root)
    if root_item is None:
        return

    visited = {root}
    stack: List[Tuple[str, List[str]]] = [
        (ref, [root]) for ref in reversed(linked_codenames(root_item))
    ]
    while stack:
        codename, parents = stack.pop()
        if codename in visited:
            continue
        visited.add(codename)

        item = graph.get(codename)
        if item is None or is_page(item):
            continue

        yield item, parents
        child_parents = [*parents, codename]
        stack.extend(
            (ref, child_parents) for ref in reversed(linked_codenames(item))
        )
