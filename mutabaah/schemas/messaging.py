from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    title: str
    message: str
    timestamp: int
    is_read: bool
    related_entity_id: str | None


class NotificationAction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["mark_read", "mark_all_read"]
    notification_id: str | None = Field(default=None, alias="notificationId")
    user_id: str | None = Field(default=None, alias="userId")

    @model_validator(mode="after")
    def _required_for_action(self) -> NotificationAction:
        if self.action == "mark_read" and not self.notification_id:
            raise ValueError("notificationId is required for mark_read")
        if self.action == "mark_all_read" and not self.user_id:
            raise ValueError("userId is required for mark_all_read")
        return self


AnnouncementScope = Literal["alliansi", "mentor"]


class AnnouncementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    author_id: str
    author_name: str
    timestamp: int
    scope: str
    target_hospital_ids: list[str]
    target_hospital_names: list[str]
    image_url: str | None
    document_url: str | None
    document_name: str | None


class AnnouncementCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    scope: AnnouncementScope = "alliansi"
    # None lets the server pick: every hospital for super-admins, the managed set for admins.
    target_hospital_ids: list[str] | None = None
    image_url: str | None = None
    document_url: str | None = None
    document_name: str | None = None


class AnnouncementUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    scope: AnnouncementScope | None = None
    target_hospital_ids: list[str] | None = None
    image_url: str | None = None
    document_url: str | None = None
    document_name: str | None = None
