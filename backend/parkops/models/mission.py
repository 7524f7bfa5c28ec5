# backend/parkops/models/mission.py
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, ForeignKey, JSON, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from parkops.db import Base
from parkops.models.user import _utcnow

STATUS_UNOPENED = "unopened"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUSES = (STATUS_UNOPENED, STATUS_IN_PROGRESS, STATUS_COMPLETED)


class Mission(Base):
    __tablename__ = "missions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    mission_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    # Task bundle (collect / refill / maintenance + descriptive fields)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    # Copy of payload["date"], kept as a column so listings can sort on it
    scheduled_date: Mapped[str] = mapped_column(String(32), default="", nullable=False)

    status: Mapped[str] = mapped_column(String(16), default=STATUS_UNOPENED, nullable=False)
    comment: Mapped[str] = mapped_column(Text, default="", nullable=False)

    assigned_to_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    opened_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)

    opened_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_missions_status", "status"),
        Index("ix_missions_assigned_created", "assigned_to_id", "created_at"),
    )
    # Optimistic locking: a stale read-modify-write raises StaleDataError on flush
    __mapper_args__ = {"version_id_col": version}

    assigned_to = relationship("User", foreign_keys=[assigned_to_id], lazy="joined")
    opened_by = relationship("User", foreign_keys=[opened_by_id], lazy="joined")
