"""Relational task model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, Index, Integer, String, Text
from taskapi.database import Base

TASK_PRIORITIES = ("low", "medium", "high")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Task(Base):
    """A globally visible task. Relational tasks have no owner."""
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_completed_created", "completed", "created_at"),
        Index("idx_tasks_priority_created", "priority", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    priority = Column(Enum(*TASK_PRIORITIES, name="task_priority"), nullable=False, default="medium")
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
