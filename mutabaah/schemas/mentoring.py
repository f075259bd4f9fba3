from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mutabaah.schemas.activities import DATE_PATTERN, TIME_PATTERN, reject_nulls

MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

PrayerId = Literal["subuh", "dzuhur", "ashar", "maghrib", "isya", "tahajud"]
TeamRelation = Literal["supervisor", "kaunit", "manager", "mentor", "dirut"]


class MonthlyActivities(BaseModel):
    """``{"YYYY-MM": {"DD": {activity_id: true}}}``"""

    activities: dict[str, dict[str, dict[str, bool]]]


class ActivateMonthIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    employee_id: str = Field(alias="employeeId", min_length=1)
    month_key: str = Field(alias="monthKey", pattern=MONTH_KEY_PATTERN)


class TadarusSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    date: str
    start_time: str
    end_time: str
    category: str
    notes: str | None
    is_recurring: bool
    mentor_id: str
    participant_ids: list[str]
    present_mentee_ids: list[str]
    status: str
    mentor_present: bool
    created_at: int


class TadarusSessionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    date: str = Field(pattern=DATE_PATTERN)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    category: Literal["UMUM", "BBQ"] = "UMUM"
    notes: str | None = None
    is_recurring: bool = False
    # Defaults to the creator.
    mentor_id: str | None = None
    participant_ids: list[str] = Field(default_factory=list)
    present_mentee_ids: list[str] = Field(default_factory=list)
    status: Literal["open", "closed"] = "open"
    mentor_present: bool = False


class TadarusSessionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    title: str | None = Field(default=None, min_length=1)
    notes: str | None = None
    participant_ids: list[str] | None = None
    present_mentee_ids: list[str] | None = None
    status: Literal["open", "closed"] | None = None
    mentor_present: bool | None = None

    @model_validator(mode="after")
    def _required_columns_stay_set(self) -> TadarusSessionUpdate:
        reject_nulls(self, frozenset({"title", "participant_ids", "present_mentee_ids", "status", "mentor_present"}))
        return self


class _RequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    mentee_id: str
    mentee_name: str
    mentor_id: str
    date: str
    status: str
    requested_at: int
    reviewed_at: int | None
    reviewed_by: str | None
    mentor_notes: str | None


class TadarusRequestOut(_RequestOut):
    category: str
    notes: str | None


class PrayerRequestOut(_RequestOut):
    prayer_id: str
    prayer_name: str
    reason: str


class TadarusRequestCreate(BaseModel):
    """Filed by the mentee for themselves; the mentor defaults to their assigned one."""

    model_config = ConfigDict(extra="forbid")

    date: str = Field(pattern=DATE_PATTERN)
    category: Literal[
        "UMUM", "BBQ", "KIE", "Doa Bersama", "Kajian Selasa", "Pengajian Persyarikatan"
    ] = "UMUM"
    notes: str | None = None
    mentor_id: str | None = None


class PrayerRequestCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: str = Field(pattern=DATE_PATTERN)
    prayer_id: PrayerId
    prayer_name: str | None = None
    reason: str = Field(min_length=1)
    mentor_id: str | None = None


class RequestReview(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    status: Literal["approved", "rejected"]
    mentor_notes: str | None = None


class ManageTeamIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    supervisor_id: str = Field(alias="supervisorId", min_length=1)
    employee_ids: list[str] = Field(alias="employeeIds", min_length=1, max_length=500)
    action: Literal["add", "remove"]
    role: TeamRelation
