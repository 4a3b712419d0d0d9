"""Full reindex of one language."""

from __future__ import annotations

from typing import Any, Dict, List

import structlog

from algolia_sync.core.metrics import RECORDS_UPSERTED
from algolia_sync.services.content_graph import fetch_language_graph
from algolia_sync.services.records import convert, is_convertible

logger = structlog.get_logger(__name__)

INDEX_SETTINGS: Dict[str, Any] = {
    "searchableAttributes": ["content.contents", "content.name", "name"],
    "attributesForFaceting": [
        "content.codename",
        "filterOnly(content.id)",
        "language",
    ],
    "attributesToSnippet": ["content.contents:80"],
}


async def run_full_sync(
    delivery_client,
    index,
    language: str,
    slug_codename: str,
) -> List[str]:
    """
    Rebuild every page record of ``language``.

    Stale records of deleted items are not removed here; deletions only
    propagate through webhooks. Any failure aborts the run.

    Returns:
        Object IDs written to the index
    """
    logger.info("full_sync.start", language=language, index=index.name)

    graph = await fetch_language_graph(delivery_client, language)
    records = [
        convert(graph, codename, slug_codename)
        for codename in graph
        if is_convertible(graph, codename, slug_codename)
    ]

    await index.set_settings(INDEX_SETTINGS)

    object_ids: List[str] = []
    if records:
        object_ids = await index.save_objects([r.to_algolia() for r in records])
        RECORDS_UPSERTED.labels(source="full_sync").inc(len(object_ids))

    logger.info(
        "full_sync.complete",
        language=language,
        items=len(graph),
        records=len(object_ids),
    )
    return object_ids
