from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mutabaah.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class TadarusSession(Base):
    """Quran reading circle led by a mentor. Present mentees count towards their monthly report."""

    __tablename__ = "tadarus_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    # UMUM or BBQ.
    category: Mapped[str] = mapped_column(String(10), default="UMUM", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    mentor_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    participant_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    present_mentee_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[str] = mapped_column(String(10), default="open", nullable=False)
    mentor_present: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Epoch milliseconds.
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class _ManualRequest:
    """Columns shared by the mentee-to-mentor catch-up requests."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    mentee_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    mentee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    mentor_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)

    # pending -> approved | rejected
    status: Mapped[str] = mapped_column(String(10), default="pending", nullable=False, index=True)
    # Epoch milliseconds.
    requested_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reviewed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mentor_notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class TadarusRequest(_ManualRequest, Base):
    __tablename__ = "tadarus_requests"

    category: Mapped[str] = mapped_column(String(50), default="UMUM", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class MissedPrayerRequest(_ManualRequest, Base):
    __tablename__ = "missed_prayer_requests"

    prayer_id: Mapped[str] = mapped_column(String(20), nullable=False)
    prayer_name: Mapped[str] = mapped_column(String(50), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)


class MonthlyReport(Base):
    """
    Per-employee manual report entries.

    ``reports`` is ``{"YYYY-MM": {activity_id: {"count": n, "entries": [{"date": "YYYY-MM-DD", ...}]}}}``.
    """

    __tablename__ = "employee_monthly_reports"

    employee_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    reports: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    updated_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class MonthActivation(Base):
    """A month an employee has switched on for mutabaah tracking."""

    __tablename__ = "mutabaah_activations"
    __table_args__ = (UniqueConstraint("employee_id", "month_key", name="uq_activation_employee_month"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # YYYY-MM
    month_key: Mapped[str] = mapped_column(String(7), nullable=False)
