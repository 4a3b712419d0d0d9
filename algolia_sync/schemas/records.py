# algolia_sync/schemas/records.py

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class ContentBlock(BaseModel):
    """Text of one content item folded into a page record."""

    model_config = ConfigDict(extra="ignore")

    id: str
    codename: str
    name: str = ""
    type: str = ""
    collection: str = ""
    language: str
    parents: List[str] = Field(default_factory=list)
    contents: str = ""


class AlgoliaRecord(BaseModel):
    """
    One search record per page and language.

    ``content`` holds the page's own block first, then one block per folded
    fragment, so ``content.id`` facets resolve fragments back to their pages.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    object_id: str = Field(alias="objectID")
    id: str
    codename: str
    name: str = ""
    language: str
    type: str = ""
    collection: str = ""
    slug: str = ""
    content: List[ContentBlock] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(block.contents for block in self.content if block.contents)

    def to_algolia(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
