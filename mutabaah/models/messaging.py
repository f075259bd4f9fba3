from __future__ import annotations

import uuid

from sqlalchemy import JSON, BigInteger, Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mutabaah.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Announcement(Base):
    __tablename__ = "announcements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    author_name: Mapped[str] = mapped_column(String(200), nullable=False)
    # Epoch milliseconds.
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    # alliansi = organisation-wide, mentor = from a mentor to their group.
    scope: Mapped[str] = mapped_column(String(20), default="alliansi", nullable=False)

    # Empty means every hospital.
    target_hospital_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    target_hospital_names: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    document_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    document_name: Mapped[str | None] = mapped_column(String(200), nullable=True)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    related_entity_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
