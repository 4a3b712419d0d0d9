# algolia_sync/schemas/requests.py

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError


class InitRequestBody(BaseModel):
    """Payload posted by the admin widget to start a full reindex."""

    model_config = ConfigDict(extra="ignore")

    projectId: StrictStr = Field(min_length=1)
    language: StrictStr = Field(min_length=1)
    slugCodename: StrictStr = Field(min_length=1)
    algoliaAppId: StrictStr = Field(min_length=1)
    algoliaIndexName: StrictStr = Field(min_length=1)


def invalid_fields(model: type[BaseModel], error: ValidationError) -> List[str]:
    """Top-level field names reported by a validation error, in declaration order."""
    reported = {str(err["loc"][0]) for err in error.errors() if err.get("loc")}
    declared = list(model.model_fields)
    if not reported:
        return declared
    return [name for name in declared if name in reported]


def parse_init_body(payload: Any) -> tuple[Optional[InitRequestBody], List[str]]:
    """Validate a decoded JSON payload; return the body or the offending field names."""
    if not isinstance(payload, dict):
        return None, list(InitRequestBody.model_fields)
    try:
        return InitRequestBody.model_validate(payload), []
    except ValidationError as exc:
        return None, invalid_fields(InitRequestBody, exc)


class WebhookQueryParams(BaseModel):
    """Query string of the webhook URL configured in Kontent.ai."""

    slug: StrictStr = Field(min_length=1)
    appId: StrictStr = Field(min_length=1)
    index: StrictStr = Field(min_length=1)
