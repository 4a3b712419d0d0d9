"""
Conversion of content graphs into search records.

Only items with a non-empty slug element are pages. Everything reachable from
a page that is not itself a page is folded into the page's record.
"""

from __future__ import annotations

import re
from functools import partial
from typing import List

from bs4 import BeautifulSoup

from algolia_sync.schemas.records import AlgoliaRecord, ContentBlock
from algolia_sync.services.content_graph import (
    RICH_TEXT,
    TEXT,
    ContentGraph,
    ContentItem,
    walk_fragments,
)

_WS_RE = re.compile(r"\s+")


def create_object_id(item_id: str, language: str) -> str:
    return f"{item_id}_{language}"


def html_to_text(value: str) -> str:
    soup = BeautifulSoup(value, "html.parser")
    # Drop script and style blocks entirely
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _WS_RE.sub(" ", soup.get_text(separator=" ")).strip()


def extract_text(item: ContentItem) -> str:
    """Text of the item's text and rich-text elements, in element order."""
    parts: List[str] = []
    for element in item.elements.values():
        if not isinstance(element.value, str):
            continue
        if element.type == TEXT:
            part = _WS_RE.sub(" ", element.value).strip()
        elif element.type == RICH_TEXT:
            part = html_to_text(element.value)
        else:
            continue
        if part:
            parts.append(part)
    return " ".join(parts)


def has_slug(item: ContentItem, slug_codename: str) -> bool:
    value = item.element_value(slug_codename)
    return isinstance(value, str) and bool(value.strip())


def is_convertible(graph: ContentGraph, codename: str, slug_codename: str) -> bool:
    item = graph.get(codename)
    return item is not None and has_slug(item, slug_codename)


def _block(item: ContentItem, parents: List[str]) -> ContentBlock:
    return ContentBlock(
        id=item.id,
        codename=item.codename,
        name=item.name,
        type=item.type,
        collection=item.collection,
        language=item.language,
        parents=parents,
        contents=extract_text(item),
    )


def convert(graph: ContentGraph, codename: str, slug_codename: str) -> AlgoliaRecord:
    """Build the record for the page at ``codename``."""
    if not is_convertible(graph, codename, slug_codename):
        raise ValueError(f"{codename!r} is not a page for slug element {slug_codename!r}")

    page = graph[codename]
    is_page = partial(has_slug, slug_codename=slug_codename)
    blocks = [_block(page, [])]
    blocks.extend(
        _block(fragment, parents)
        for fragment, parents in walk_fragments(graph, codename, is_page)
    )

    return AlgoliaRecord(
        objectID=create_object_id(page.id, page.language),
        id=page.id,
        codename=page.codename,
        name=page.name,
        language=page.language,
        type=page.type,
        collection=page.collection,
        slug=page.element_value(slug_codename).strip(),
        content=blocks,
    )
