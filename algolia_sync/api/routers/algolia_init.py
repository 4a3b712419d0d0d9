"""
Full reindex endpoint, called by the admin widget.

Rebuilds every page record of one language and returns the written object IDs.
"""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from algolia_sync.api.deps import (
    DeliveryClientFactory,
    SearchClientFactory,
    get_delivery_client_factory,
    get_search_client_factory,
)
from algolia_sync.core.settings import check_required_env, settings
from algolia_sync.schemas.requests import parse_init_body
from algolia_sync.services.full_sync import run_full_sync

router = APIRouter(prefix="/api/algolia", tags=["algolia_init"])
logger = structlog.get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@router.options("/init")
async def init_options() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/init")
async def init_index(
    request: Request,
    delivery_client_factory: DeliveryClientFactory = Depends(get_delivery_client_factory),
    search_client_factory: SearchClientFactory = Depends(get_search_client_factory),
):
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw.strip() else None
    except ValueError:
        payload = None

    body, invalid = parse_init_body(payload)
    if body is None:
        raise HTTPException(
            status_code=400,
            detail={
                "message": "Missing or invalid body, the following properties are "
                f"missing or invalid: {', '.join(invalid)}",
                "fields": invalid,
            },
        )

    env = check_required_env(settings, ["ALGOLIA_API_KEY"])
    if not env.ok:
        logger.error("algolia_init.missing_env", missing=env.missing)
        raise HTTPException(
            status_code=500,
            detail=f"{', '.join(env.missing)} environment variable(s) are missing, "
            "please check the documentation",
        )

    logger.info(
        "algolia_init.start",
        project_id=body.projectId,
        language=body.language,
        index=body.algoliaIndexName,
    )
    async with search_client_factory(body.algoliaAppId, env.values["ALGOLIA_API_KEY"]) as algolia:
        index = algolia.init_index(body.algoliaIndexName)
        async with delivery_client_factory(body.projectId) as delivery:
            object_ids = await run_full_sync(
                delivery, index, body.language, body.slugCodename
            )

    return JSONResponse(content=object_ids, headers=CORS_HEADERS)
