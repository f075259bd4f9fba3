from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"

ActivityStatus = Literal["scheduled", "postponed", "cancelled"]

# Columns a partial update may change but not null.
_ACTIVITY_REQUIRED = frozenset(
    {"name", "date", "start_time", "end_time", "participant_ids", "activity_type", "status", "audience_type"}
)
_SESSION_REQUIRED = frozenset(
    {"type", "date", "start_time", "end_time", "audience_type", "manual_participant_ids", "attendance_mode"}
)


def reject_nulls(model: BaseModel, fields: frozenset[str]) -> None:
    nulled = sorted(f for f in fields & model.model_fields_set if getattr(model, f) is None)
    if nulled:
        raise ValueError(f"cannot be null: {', '.join(nulled)}")


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    date: str
    start_time: str
    end_time: str
    created_by: str
    created_by_name: str | None
    participant_ids: list[str]
    zoom_url: str | None
    youtube_url: str | None
    activity_type: str
    status: str
    audience_type: str
    audience_rules: dict[str, Any] | None
    created_at: datetime


class ActivityCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    description: str | None = None
    date: str = Field(pattern=DATE_PATTERN)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    participant_ids: list[str] = Field(default_factory=list)
    zoom_url: str | None = None
    youtube_url: str | None = None
    activity_type: str = "Umum"
    status: ActivityStatus = "scheduled"
    audience_type: str = "public"
    audience_rules: dict[str, Any] | None = None


class ActivityUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    date: str | None = Field(default=None, pattern=DATE_PATTERN)
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    participant_ids: list[str] | None = None
    zoom_url: str | None = None
    youtube_url: str | None = None
    activity_type: str | None = None
    status: ActivityStatus | None = None
    audience_type: str | None = None
    audience_rules: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _required_columns_stay_set(self) -> ActivityUpdate:
        reject_nulls(self, _ACTIVITY_REQUIRED)
        return self


class TeamSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    creator_id: str
    creator_name: str
    type: str
    date: str
    start_time: str
    end_time: str
    audience_type: str
    audience_rules: dict[str, Any] | None
    manual_participant_ids: list[str]
    attendance_mode: str
    zoom_url: str | None
    youtube_url: str | None
    created_at: int
    updated_at: int | None


class TeamSessionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str = Field(min_length=1)
    date: str = Field(pattern=DATE_PATTERN)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    audience_type: Literal["rules", "manual"] = "rules"
    audience_rules: dict[str, Any] | None = None
    manual_participant_ids: list[str] = Field(default_factory=list)
    attendance_mode: Literal["leader", "self"] = "leader"
    zoom_url: str | None = None
    youtube_url: str | None = None


class TeamSessionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    type: str | None = Field(default=None, min_length=1)
    date: str | None = Field(default=None, pattern=DATE_PATTERN)
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    audience_type: Literal["rules", "manual"] | None = None
    audience_rules: dict[str, Any] | None = None
    manual_participant_ids: list[str] | None = None
    attendance_mode: Literal["leader", "self"] | None = None
    zoom_url: str | None = None
    youtube_url: str | None = None

    @model_validator(mode="after")
    def _required_columns_stay_set(self) -> TeamSessionUpdate:
        reject_nulls(self, _SESSION_REQUIRED)
        return self


AttendanceStatus = Literal["hadir", "tidak-hadir"]


class AttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    entity_id: str
    status: str
    reason: str | None
    timestamp: int
    is_late_entry: bool
    location: str | None


class AttendanceEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Overwritten with the batch's employeeId.
    employee_id: str | None = None
    entity_id: str = Field(min_length=1)
    status: AttendanceStatus
    reason: str | None = None
    # Epoch milliseconds; server time when omitted.
    timestamp: int | None = None
    is_late_entry: bool = False
    location: str | None = None


class AttendanceSubmit(AttendanceEntry):
    employee_id: str = Field(min_length=1)


class AttendanceBatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    employee_id: str = Field(alias="employeeId", min_length=1)
    records: list[AttendanceEntry] = Field(min_length=1, max_length=500)
