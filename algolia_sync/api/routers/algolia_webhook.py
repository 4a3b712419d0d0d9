"""
Kontent.ai webhook ingestion.

Each delivery may carry several notifications; they are resolved together
and applied to the index as one upsert batch and one delete batch.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from algolia_sync.api.deps import (
    DeliveryClientFactory,
    SearchClientFactory,
    get_delivery_client_factory,
    get_search_client_factory,
)
from algolia_sync.core.settings import check_required_env, settings
from algolia_sync.core.webhooks import SIGNATURE_HEADER, verify_kontent_signature
from algolia_sync.schemas.requests import WebhookQueryParams
from algolia_sync.schemas.webhook import WebhookDelivery
from algolia_sync.services.reconciliation import process_delivery

router = APIRouter(prefix="/api/algolia", tags=["algolia_webhook"])
logger = structlog.get_logger(__name__)


@router.post("/webhook")
async def ingest(
    request: Request,
    delivery_client_factory: DeliveryClientFactory = Depends(get_delivery_client_factory),
    search_client_factory: SearchClientFactory = Depends(get_search_client_factory),
):
    body = await request.body()
    if not body.strip():
        raise HTTPException(status_code=400, detail="Missing Data")

    env = check_required_env(settings, ["KONTENT_SECRET", "ALGOLIA_API_KEY"])
    if not env.ok:
        logger.error("algolia_webhook.missing_env", missing=env.missing)
        raise HTTPException(
            status_code=500,
            detail=f"{', '.join(env.missing)} environment variables are missing, "
            "please check the documentation",
        )

    verify_kontent_signature(
        request.headers.get(SIGNATURE_HEADER), body, env.values["KONTENT_SECRET"]
    )

    try:
        params = WebhookQueryParams.model_validate(dict(request.query_params))
    except ValidationError:
        raise HTTPException(
            status_code=400,
            detail="Missing some query parameters, please check the documentation",
        )

    try:
        delivery = WebhookDelivery.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("algolia_webhook.invalid_payload", errors=exc.error_count())
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    async with search_client_factory(params.appId, env.values["ALGOLIA_API_KEY"]) as algolia:
        index = algolia.init_index(params.index)
        result = await process_delivery(
            delivery, delivery_client_factory, index, params.slug
        )

    return {
        "deletedObjectIds": result.deleted_object_ids,
        "reIndexedObjectIds": result.reindexed_object_ids,
    }
