from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mutabaah.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Hospital(Base):
    __tablename__ = "hospitals"

    # Brand-derived id, e.g. "RSIJSP".
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    employees: Mapped[list["Employee"]] = relationship(back_populates="hospital")


class Identity(Base):
    """
    Login identity created by self-registration or by an admin.

    Created before the employee profile; removed again if the profile insert fails.
    """

    __tablename__ = "identities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    user_metadata: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Employee(Base):
    __tablename__ = "employees"

    # NIP for provisioned staff, identity uuid for self-registered accounts.
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(100), nullable=True)

    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    hospital_id: Mapped[str | None] = mapped_column(ForeignKey("hospitals.id"), nullable=True, index=True)
    managed_hospital_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    # Reporting lines, by employee id. Anyone listed here may read this employee's monthly report.
    mentor_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    supervisor_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    manager_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    ka_unit_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    dirut_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    unit: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bagian: Mapped[str | None] = mapped_column(String(100), nullable=True)
    profession_category: Mapped[str | None] = mapped_column(String(20), nullable=True)
    profession: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)

    auth_user_id: Mapped[str | None] = mapped_column(ForeignKey("identities.id"), nullable=True)
    must_change_password: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_profile_complete: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notification_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    location_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_visit_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    hospital: Mapped[Hospital | None] = relationship(back_populates="employees")
