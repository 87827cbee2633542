from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session

from taskapi.models.task import Task
from taskapi.repositories.base import Page, PageRequest, TaskFilters, TaskRepository
from taskapi.schemas.task import TaskCreate

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "completed", "priority", "due_date")

_PRIORITY_RANK = case(
    {"low": 1, "medium": 2, "high": 3},
    value=Task.priority,
    else_=0,
)

SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "title": Task.title,
    "priority": _PRIORITY_RANK,
    "dueDate": Task.due_date,
}


class SqlTaskRepository(TaskRepository[Task]):
    """Global task store on the relational database."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, filters: TaskFilters | None) -> Query:
        query = self.db.query(Task)
        if filters is None:
            return query

        if filters.completed is not None:
            query = query.filter(Task.completed.is_(filters.completed))
        if filters.priority:
            query = query.filter(Task.priority == filters.priority)
        if filters.search:
            # literal substring; % and _ in the term are escaped
            query = query.filter(
                or_(
                    Task.title.icontains(filters.search, autoescape=True),
                    func.coalesce(Task.description, "").icontains(filters.search, autoescape=True),
                )
            )
        return query

    def create(self, data: TaskCreate) -> Task:
        task = Task(
            title=data.title,
            description=data.description,
            priority=data.priority,
            due_date=data.due_date,
            completed=False,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.debug("Created task %s", task.id)
        return task

    def list(self, filters: TaskFilters | None = None) -> list[Task]:
        return self._filtered(filters).order_by(Task.created_at.desc(), Task.id.desc()).all()

    def list_paginated(self, filters: TaskFilters | None, page: PageRequest) -> Page[Task]:
        query = self._filtered(filters)
        total = query.count()

        column = SORT_COLUMNS[page.sort_by]
        ordering = column.asc() if page.ascending else column.desc()
        tiebreak = Task.id.asc() if page.ascending else Task.id.desc()

        items = query.order_by(ordering, tiebreak).offset(page.offset).limit(page.limit).all()
        return Page(items=items, page=page.page, limit=page.limit, total=total)

    def get(self, task_id: int) -> Task | None:
        return self.db.get(Task, task_id)

    def update(self, task_id: int, changes: dict[str, Any]) -> Task | None:
        task = self.get(task_id)
        if task is None:
            return None

        fields = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if not fields:
            return task

        for key, value in fields.items():
            setattr(task, key, value)
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, task_id: int) -> bool:
        task = self.get(task_id)
        if task is None:
            return False

        self.db.delete(task)
        self.db.commit()
        return True
