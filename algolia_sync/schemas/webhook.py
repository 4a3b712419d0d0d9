# algolia_sync/schemas/webhook.py

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

CONTENT_ITEM = "content_item"


class NotificationSystem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    codename: str
    language: str
    name: Optional[str] = None
    type: Optional[str] = None
    collection: Optional[str] = None
    workflow: Optional[str] = None
    workflow_step: Optional[str] = None
    last_modified: Optional[str] = None


class NotificationData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    system: Optional[NotificationSystem] = None


class NotificationMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    environment_id: str
    object_type: str
    action: Optional[str] = None
    delivery_slot: Optional[str] = None


class ChangeNotification(BaseModel):
    """One change event from a Kontent.ai webhook delivery."""

    model_config = ConfigDict(extra="ignore")

    data: NotificationData = Field(default_factory=NotificationData)
    message: NotificationMessage

    @property
    def is_content_item(self) -> bool:
        return self.message.object_type == CONTENT_ITEM and self.data.system is not None


class WebhookDelivery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    notifications: List[ChangeNotification] = Field(default_factory=list)
