from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mutabaah.security.policy import Role


class HospitalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    brand: str
    name: str
    address: str | None
    logo: str | None
    is_active: bool


class HospitalCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    brand: str = Field(min_length=1)
    name: str = Field(min_length=1)
    address: str | None = None
    logo: str | None = None


class HospitalUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    brand: str | None = Field(default=None, min_length=1)
    name: str | None = Field(default=None, min_length=1)
    address: str | None = None
    logo: str | None = None
    is_active: bool | None = None


class EmployeeOut(BaseModel):
    """Employee as returned to clients. The password hash is never part of it."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: str
    is_active: bool
    hospital_id: str | None
    managed_hospital_ids: list[str]
    mentor_id: str | None
    supervisor_id: str | None
    manager_id: str | None
    ka_unit_id: str | None
    dirut_id: str | None
    unit: str | None
    bagian: str | None
    profession_category: str | None
    profession: str | None
    gender: str | None
    must_change_password: bool
    is_profile_complete: bool
    email_verified: bool
    notification_enabled: bool
    profile_picture: str | None
    signature: str | None
    location_id: str | None
    location_name: str | None
    last_visit_date: date | None
    created_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


class EmployeePage(BaseModel):
    employees: list[EmployeeOut]
    pagination: Pagination


class BulkEmployeesIn(BaseModel):
    ids: list[str] = Field(min_length=1, max_length=500)


# Fields only an admin (subject to the role policy) may change.
PROTECTED_EMPLOYEE_FIELDS = frozenset({"role", "is_active", "hospital_id", "managed_hospital_ids"})


class EmployeeUpdate(BaseModel):
    """
    Partial update. Omitted fields are left alone.

    ``id`` defaults to the caller's own record.
    """

    model_config = ConfigDict(extra="forbid")

    id: str | None = None

    name: str | None = Field(default=None, min_length=1)
    unit: str | None = None
    bagian: str | None = None
    profession_category: Literal["MEDIS", "NON MEDIS"] | None = None
    profession: str | None = None
    gender: str | None = None
    notification_enabled: bool | None = None
    profile_picture: str | None = None
    signature: str | None = None
    location_id: str | None = None
    location_name: str | None = None
    last_visit_date: date | None = None
    is_profile_complete: bool | None = None

    role: Role | None = None
    is_active: bool | None = None
    hospital_id: str | None = None
    managed_hospital_ids: list[str] | None = None


class AdminEmployeeCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # NIP
    id: str = Field(min_length=1, max_length=50)
    email: str
    name: str = Field(min_length=1)
    password: str | None = Field(default=None, min_length=6)
    role: Role = Role.USER
    hospital_id: str | None = None
    managed_hospital_ids: list[str] = Field(default_factory=list)
    unit: str | None = None
    bagian: str | None = None
    profession_category: Literal["MEDIS", "NON MEDIS"] | None = None
    profession: str | None = None
    gender: str | None = None

    @field_validator("email")
    @classmethod
    def _email_format(cls, v: str) -> str:
        return normalize_email(v)


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain or " " in value:
        raise ValueError("invalid email format")
    return value
