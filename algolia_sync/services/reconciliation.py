"""
Reconciliation of a webhook delivery.

Notifications are resolved concurrently and read-only; their actions are
merged into one upsert batch and one delete batch applied at the end.
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

import structlog

from algolia_sync.core.metrics import NOTIFICATIONS_RECEIVED, RECORDS_DELETED, RECORDS_UPSERTED
from algolia_sync.schemas.records import AlgoliaRecord
from algolia_sync.schemas.webhook import WebhookDelivery
from algolia_sync.services.change_resolver import SyncAction, resolve_notification

logger = structlog.get_logger(__name__)


@dataclass
class ReconciliationBatch:
    records: List[AlgoliaRecord] = field(default_factory=list)
    object_ids_to_remove: List[str] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    reindexed_object_ids: List[str] = field(default_factory=list)
    deleted_object_ids: List[str] = field(default_factory=list)

    @property
    def touched_object_ids(self) -> List[str]:
        return list(dict.fromkeys([*self.reindexed_object_ids, *self.deleted_object_ids]))


def merge_actions(actions: Sequence[SyncAction]) -> ReconciliationBatch:
    """
    Merge per-notification actions in notification order.

    Upserts are keyed by page codename, last one wins. Removals are
    de-duplicated. The latest intent for an object ID replaces any earlier
    opposite intent, so no object is both written and deleted.
    """
    upserts: Dict[str, AlgoliaRecord] = {}
    removals: Dict[str, None] = {}

    for action in actions:
        for record in action.records_to_reindex:
            upserts[record.codename] = record
            removals.pop(record.object_id, None)
        for object_id in action.object_ids_to_remove:
            removals[object_id] = None
            superseded = [c for c, r in upserts.items() if r.object_id == object_id]
            for codename in superseded:
                del upserts[codename]

    return ReconciliationBatch(
        records=list(upserts.values()),
        object_ids_to_remove=list(removals),
    )


async def apply_batch(index, batch: ReconciliationBatch) -> ReconciliationResult:
    """
    Upsert, then delete. Empty sides issue no request.

    If the upsert raises, the delete is not attempted and the error propagates
    so the sender re-delivers; both writes are idempotent.
    """
    result = ReconciliationResult()
    if batch.records:
        result.reindexed_object_ids = await index.save_objects(
            [record.to_algolia() for record in batch.records]
        )
        RECORDS_UPSERTED.labels(source="webhook").inc(len(result.reindexed_object_ids))
    if batch.object_ids_to_remove:
        result.deleted_object_ids = await index.delete_objects(batch.object_ids_to_remove)
        RECORDS_DELETED.inc(len(result.deleted_object_ids))
    return result


async def process_delivery(
    delivery: WebhookDelivery,
    delivery_client_factory: Callable[[str], object],
    index,
    slug_codename: str,
) -> ReconciliationResult:
    """Resolve every notification of a delivery, merge, and apply once."""
    for notification in delivery.notifications:
        NOTIFICATIONS_RECEIVED.labels(object_type=notification.message.object_type).inc()

    relevant = [n for n in delivery.notifications if n.is_content_item]

    async with AsyncExitStack() as stack:
        clients = {}
        for environment_id in dict.fromkeys(n.message.environment_id for n in relevant):
            clients[environment_id] = await stack.enter_async_context(
                delivery_client_factory(environment_id)
            )

        actions = await asyncio.gather(
            *(
                resolve_notification(
                    n, clients[n.message.environment_id], index, slug_codename
                )
                for n in relevant
            )
        )

    batch = merge_actions(actions)
    result = await apply_batch(index, batch)

    logger.info(
        "reconciliation.applied",
        notifications=len(delivery.notifications),
        processed=len(relevant),
        reindexed=len(result.reindexed_object_ids),
        deleted=len(result.deleted_object_ids),
        touched=result.touched_object_ids,
    )
    return result
