"""
Resolution of one webhook notification into index mutations.

The content platform exposes no reverse links, so the index itself is the
record of which pages embed a changed item: every folded fragment's id is
stored in the page record's ``content.id`` facet.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List

import structlog
from pydantic import ValidationError

from algolia_sync.schemas.records import AlgoliaRecord
from algolia_sync.schemas.webhook import ChangeNotification
from algolia_sync.services.content_graph import fetch_item_graph
from algolia_sync.services.records import convert, is_convertible

logger = structlog.get_logger(__name__)


@dataclass
class SyncAction:
    records_to_reindex: List[AlgoliaRecord] = field(default_factory=list)
    object_ids_to_remove: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.records_to_reindex or self.object_ids_to_remove)


async def find_existing_records(index, item_id: str, language: str) -> List[AlgoliaRecord]:
    """
    Records whose page or folded fragments include ``item_id`` in ``language``.

    A failed search is treated as "no records".
    """
    try:
        hits = await index.search(
            "", facet_filters=[f"content.id:{item_id}", f"language:{language}"]
        )
    except Exception as e:
        logger.warning(
            "change_resolver.search_failed",
            item_id=item_id,
            language=language,
            error=str(e),
        )
        return []

    records: List[AlgoliaRecord] = []
    for hit in hits:
        try:
            records.append(AlgoliaRecord.model_validate(hit))
        except ValidationError:
            logger.warning("change_resolver.unrecognized_hit", object_id=hit.get("objectID"))
    return records


async def _refresh_record(
    delivery_client, existing: AlgoliaRecord, codename: str, slug_codename: str
) -> SyncAction:
    """Rebuild ``existing`` from the page now at ``codename``, or drop it."""
    graph = await fetch_item_graph(delivery_client, codename, existing.language)
    if is_convertible(graph, codename, slug_codename):
        return SyncAction(records_to_reindex=[convert(graph, codename, slug_codename)])

    logger.info(
        "change_resolver.page_gone",
        codename=codename,
        object_id=existing.object_id,
    )
    return SyncAction(object_ids_to_remove=[existing.object_id])


async def _index_candidate(delivery_client, codename: str, language: str, slug_codename: str):
    graph = await fetch_item_graph(delivery_client, codename, language)
    if is_convertible(graph, codename, slug_codename):
        return SyncAction(records_to_reindex=[convert(graph, codename, slug_codename)])
    logger.debug("change_resolver.not_a_page", codename=codename)
    return SyncAction()


async def resolve_notification(
    notification: ChangeNotification,
    delivery_client,
    index,
    slug_codename: str,
) -> SyncAction:
    """
    Decide which records to reindex or remove after one item changed.

    Every record embedding the item is rebuilt. The record of the item's own
    page is rebuilt from the notified codename, so a renamed page keeps its
    object ID. When the item has no record of its own it may have just become
    a page, so it is checked as a candidate as well.
    """
    if not notification.is_content_item:
        return SyncAction()

    system = notification.data.system
    existing = await find_existing_records(index, system.id, system.language)

    tasks = [
        _refresh_record(
            delivery_client,
            record,
            system.codename if record.id == system.id else record.codename,
            slug_codename,
        )
        for record in existing
    ]
    if not any(record.id == system.id for record in existing):
        tasks.append(
            _index_candidate(delivery_client, system.codename, system.language, slug_codename)
        )

    refreshed = await asyncio.gather(*tasks)
    action = SyncAction()
    for result in refreshed:
        action.records_to_reindex.extend(result.records_to_reindex)
        action.object_ids_to_remove.extend(result.object_ids_to_remove)

    logger.info(
        "change_resolver.resolved",
        codename=system.codename,
        existing=len(existing),
        reindex=len(action.records_to_reindex),
        remove=len(action.object_ids_to_remove),
    )
    return action
