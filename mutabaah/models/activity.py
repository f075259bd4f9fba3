from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mutabaah.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Activity(Base):
    """Scheduled activity (kajian, pengajian...) created by an admin."""

    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Wall-clock values as entered: YYYY-MM-DD and HH:MM.
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    # Creator's NIP (or id when the creator has none).
    created_by: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    participant_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    zoom_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    youtube_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    activity_type: Mapped[str] = mapped_column(String(50), default="Umum", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="scheduled", nullable=False)
    audience_type: Mapped[str] = mapped_column(String(20), default="public", nullable=False)
    audience_rules: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class TeamAttendanceSession(Base):
    __tablename__ = "team_attendance_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    creator_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    creator_name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)

    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    audience_type: Mapped[str] = mapped_column(String(20), default="rules", nullable=False)
    audience_rules: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    manual_participant_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    # leader = the creator takes attendance, self = each participant checks in.
    attendance_mode: Mapped[str] = mapped_column(String(10), default="leader", nullable=False)

    zoom_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    youtube_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Epoch milliseconds.
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class AttendanceRecord(Base):
    """
    Attendance for one employee at one entity (prayer slot, activity or session).

    Keyed by (employee_id, entity_id); a later submit for the same pair replaces the earlier one.
    """

    __tablename__ = "attendance_records"
    __table_args__ = (UniqueConstraint("employee_id", "entity_id", name="uq_attendance_employee_entity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[str] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_late_entry: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
