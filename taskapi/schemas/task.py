"""Request and response schemas for both task backends."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import Field, computed_field, field_validator

from taskapi.schemas.common import CamelModel

Priority = Literal["low", "medium", "high"]

MAX_TITLE_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 1000
MAX_CATEGORY_LENGTH = 50
MAX_TAG_LENGTH = 20


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_title(value: str | None) -> str:
    if value is None:
        raise ValueError("Title is required")
    normalized = value.strip()
    if not normalized or len(normalized) > MAX_TITLE_LENGTH:
        raise ValueError(f"Title must be between 1 and {MAX_TITLE_LENGTH} characters")
    return normalized


def _clean_description(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) > MAX_DESCRIPTION_LENGTH:
        raise ValueError(f"Description must not exceed {MAX_DESCRIPTION_LENGTH} characters")
    return normalized


class Attachment(CamelModel):
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    size: int = Field(ge=0)
    type: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Attachment name is required")
        return normalized


class TaskCreate(CamelModel):
    title: str
    description: str | None = None
    priority: Priority = "medium"
    due_date: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, value):
        if value is not None and not isinstance(value, str):
            raise ValueError("Title must be a string")
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return _clean_description(value)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class TaskUpdate(CamelModel):
    """Partial update: only the fields present in the request are applied."""

    title: str | None = None
    description: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    due_date: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, value):
        if value is not None and not isinstance(value, str):
            raise ValueError("Title must be a string")
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return _clean_description(value)

    @field_validator("completed")
    @classmethod
    def validate_completed(cls, value: bool | None) -> bool:
        if value is None:
            raise ValueError("Completed must be a boolean value")
        return value

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("Priority must be low, medium, or high")
        return value

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


def _validate_category(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) > MAX_CATEGORY_LENGTH:
        raise ValueError(f"Category must not exceed {MAX_CATEGORY_LENGTH} characters")
    return normalized


def _validate_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    tags = [tag.strip() for tag in value]
    for tag in tags:
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag must not exceed {MAX_TAG_LENGTH} characters")
    return tags


class DocumentTaskCreate(TaskCreate):
    category: str | None = None
    tags: list[str] | None = None
    attachments: list[Attachment] | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: datetime | None) -> datetime | None:
        value = _as_utc(value)
        if value is not None and value < datetime.now(timezone.utc):
            raise ValueError("Due date must be in the future")
        return value

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: str | None) -> str | None:
        return _validate_category(value)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: list[str] | None) -> list[str] | None:
        return _validate_tags(value)


class DocumentTaskUpdate(TaskUpdate):
    category: str | None = None
    tags: list[str] | None = None
    attachments: list[Attachment] | None = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: str | None) -> str | None:
        return _validate_category(value)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: list[str] | None) -> list[str] | None:
        return _validate_tags(value)


class TaskResponse(CamelModel):
    id: int
    title: str
    description: str | None = None
    completed: bool
    priority: Priority
    due_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        # SQLite and MySQL drop the offset on the way back
        return _as_utc(value)


class TaskOwner(CamelModel):
    name: str
    email: str

    class Config:
        from_attributes = True


class DocumentTask(CamelModel):
    """A task as stored in the document backend, with owner and extras."""

    id: str
    user_id: str
    title: str
    description: str | None = None
    completed: bool = False
    priority: Priority = "medium"
    due_date: datetime | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    owner: TaskOwner | None = None

    @computed_field(alias="isOverdue")
    @property
    def is_overdue(self) -> bool:
        due_date = _as_utc(self.due_date)
        return due_date is not None and due_date < datetime.now(timezone.utc) and not self.completed

    @classmethod
    def from_document(cls, document: dict, owner: TaskOwner | None = None) -> "DocumentTask":
        payload = dict(document)
        payload["owner"] = owner
        payload["id"] = str(payload.pop("_id"))
        payload["userId"] = str(payload["userId"])
        for field in ("dueDate", "createdAt", "updatedAt"):
            payload[field] = _as_utc(payload.get(field))
        return cls.model_validate(payload)


class TaskStats(CamelModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    high_priority: int = 0
    medium_priority: int = 0
    low_priority: int = 0
