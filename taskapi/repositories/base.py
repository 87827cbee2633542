"""
Task repository contract shared by the relational and document backends.

Both backends implement the same operations, with these documented
differences:

* Scope. The relational repository is global: every caller sees and may
  mutate every task. The document repository is bound to one owner and
  treats another owner's task exactly like a missing one.
* Search. The relational backend matches ``search`` as a case-insensitive
  substring of title or description. The document backend runs a weighted
  full-text query (title weighs more than description), so it matches
  whole words and stems rather than arbitrary substrings.
* Identifiers. Relational ids are integers; the route layer rejects a
  non-numeric id before reaching the repository. Document ids are
  ObjectId strings; a malformed one is reported as not found.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

SORT_FIELDS = ("createdAt", "updatedAt", "title", "priority", "dueDate")
DEFAULT_SORT_FIELD = "createdAt"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class TaskFilters:
    completed: bool | None = None
    priority: str | None = None
    search: str | None = None
    category: str | None = None

    @classmethod
    def from_query(
        cls,
        status: str | None = None,
        priority: str | None = None,
        search: str | None = None,
        category: str | None = None,
    ) -> TaskFilters:
        """Build filters from query-string values, ignoring unknown ones."""
        completed = None
        if status == "completed":
            completed = True
        elif status == "pending":
            completed = False

        return cls(
            completed=completed,
            priority=priority if priority in ("low", "medium", "high") else None,
            search=search.strip() if search and search.strip() else None,
            category=category.strip() if category and category.strip() else None,
        )


@dataclass
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = "DESC"

    def __post_init__(self) -> None:
        self.page = max(1, self.page)
        self.limit = min(max(1, self.limit), MAX_LIMIT)
        if self.sort_by not in SORT_FIELDS:
            self.sort_by = DEFAULT_SORT_FIELD
        self.sort_order = "ASC" if str(self.sort_order).upper() == "ASC" else "DESC"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def ascending(self) -> bool:
        return self.sort_order == "ASC"


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    limit: int
    total: int
    total_pages: int = field(init=False)
    has_next: bool = field(init=False)
    has_prev: bool = field(init=False)

    def __post_init__(self) -> None:
        self.total_pages = math.ceil(self.total / self.limit) if self.limit else 0
        self.has_next = self.page < self.total_pages
        self.has_prev = self.page > 1

    def pagination(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


class TaskRepository(ABC, Generic[T]):
    @abstractmethod
    def create(self, data: Any) -> T: ...

    @abstractmethod
    def list(self, filters: TaskFilters | None = None) -> list[T]:
        """All matching tasks, newest first."""

    @abstractmethod
    def list_paginated(self, filters: TaskFilters | None, page: PageRequest) -> Page[T]: ...

    @abstractmethod
    def get(self, task_id: Any) -> T | None: ...

    @abstractmethod
    def update(self, task_id: Any, changes: dict[str, Any]) -> T | None:
        """Apply only the given fields. An empty dict returns the task unchanged."""

    @abstractmethod
    def delete(self, task_id: Any) -> bool: ...

    def by_status(self, completed: bool) -> list[T]:
        return self.list(TaskFilters(completed=completed))

    def by_priority(self, priority: str) -> list[T]:
        return self.list(TaskFilters(priority=priority))
