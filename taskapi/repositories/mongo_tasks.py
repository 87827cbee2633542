from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from taskapi.core.exceptions import NotFoundError
from taskapi.repositories.base import Page, PageRequest, TaskFilters, TaskRepository
from taskapi.schemas.task import DocumentTask, DocumentTaskCreate, TaskOwner, TaskStats

logger = logging.getLogger(__name__)

# snake_case attribute -> stored document field
FIELD_NAMES = {
    "title": "title",
    "description": "description",
    "completed": "completed",
    "priority": "priority",
    "due_date": "dueDate",
    "category": "category",
    "tags": "tags",
    "attachments": "attachments",
}

NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]


def parse_object_id(task_id: str | None) -> ObjectId | None:
    # ObjectId(None) would mint a fresh id
    if not isinstance(task_id, str):
        return None
    try:
        return ObjectId(task_id)
    except InvalidId:
        return None


def build_task_query(owner_id: str, filters: TaskFilters | None = None) -> dict[str, Any]:
    query: dict[str, Any] = {"userId": owner_id}
    if filters is None:
        return query

    if filters.completed is not None:
        query["completed"] = filters.completed
    if filters.priority:
        query["priority"] = filters.priority
    if filters.category:
        query["category"] = filters.category
    if filters.search:
        query["$text"] = {"$search": filters.search}
    return query


def build_update(changes: dict[str, Any], now: datetime) -> dict[str, Any]:
    values = {FIELD_NAMES[key]: value for key, value in changes.items() if key in FIELD_NAMES}
    if not values:
        return {}
    values["updatedAt"] = now
    return {"$set": values}


def build_stats_pipeline(owner_id: str, now: datetime) -> list[dict[str, Any]]:
    def count_if(condition: dict[str, Any]) -> dict[str, Any]:
        return {"$sum": {"$cond": [condition, 1, 0]}}

    return [
        {"$match": {"userId": owner_id}},
        {
            "$group": {
                "_id": None,
                "total": {"$sum": 1},
                "completed": count_if({"$eq": ["$completed", True]}),
                "pending": count_if({"$eq": ["$completed", False]}),
                "overdue": count_if(
                    {
                        "$and": [
                            {"$eq": ["$completed", False]},
                            {"$eq": [{"$type": "$dueDate"}, "date"]},
                            {"$lt": ["$dueDate", now]},
                        ]
                    }
                ),
                "highPriority": count_if({"$eq": ["$priority", "high"]}),
                "mediumPriority": count_if({"$eq": ["$priority", "medium"]}),
                "lowPriority": count_if({"$eq": ["$priority", "low"]}),
            }
        },
    ]


class MongoTaskRepository(TaskRepository[DocumentTask]):
    """
    Task store on MongoDB, scoped to a single owner.

    Every read and write filters on ``userId``, so a task that belongs to
    someone else behaves exactly like one that does not exist. When
    ``owner`` is given, every returned task carries that name and email.
    """

    def __init__(
        self,
        collection: Collection,
        owner_id: str,
        owner_exists: Callable[[str], bool] | None = None,
        owner: TaskOwner | None = None,
    ):
        self.collection = collection
        self.owner_id = owner_id
        self.owner_exists = owner_exists
        self.owner = owner

    def _to_task(self, document: dict[str, Any]) -> DocumentTask:
        return DocumentTask.from_document(document, owner=self.owner)

    def _owned(self, object_id: ObjectId) -> dict[str, Any]:
        return {"_id": object_id, "userId": self.owner_id}

    def _find(self, query: dict[str, Any], sort: list[tuple[str, int]]) -> list[DocumentTask]:
        return [self._to_task(doc) for doc in self.collection.find(query).sort(sort)]

    def create(self, data: DocumentTaskCreate) -> DocumentTask:
        if self.owner_exists is not None and not self.owner_exists(self.owner_id):
            raise NotFoundError("User not found")

        now = datetime.now(timezone.utc)
        document = {
            "title": data.title,
            "description": data.description,
            "completed": False,
            "priority": data.priority,
            "dueDate": data.due_date,
            "userId": self.owner_id,
            "category": data.category,
            "tags": data.tags or [],
            "attachments": [attachment.model_dump() for attachment in data.attachments or []],
            "createdAt": now,
            "updatedAt": now,
        }
        result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.debug("Created task %s for user %s", result.inserted_id, self.owner_id)
        return self._to_task(document)

    def list(self, filters: TaskFilters | None = None) -> list[DocumentTask]:
        return self._find(build_task_query(self.owner_id, filters), NEWEST_FIRST)

    def list_paginated(self, filters: TaskFilters | None, page: PageRequest) -> Page[DocumentTask]:
        query = build_task_query(self.owner_id, filters)
        total = self.collection.count_documents(query)

        direction = ASCENDING if page.ascending else DESCENDING
        cursor = (
            self.collection.find(query)
            .sort([(page.sort_by, direction), ("_id", direction)])
            .skip(page.offset)
            .limit(page.limit)
        )
        items = [self._to_task(doc) for doc in cursor]
        return Page(items=items, page=page.page, limit=page.limit, total=total)

    def get(self, task_id: str) -> DocumentTask | None:
        object_id = parse_object_id(task_id)
        if object_id is None:
            return None

        document = self.collection.find_one(self._owned(object_id))
        return self._to_task(document) if document else None

    def update(self, task_id: str, changes: dict[str, Any]) -> DocumentTask | None:
        object_id = parse_object_id(task_id)
        if object_id is None:
            return None

        update = build_update(changes, datetime.now(timezone.utc))
        if not update:
            return self.get(task_id)

        document = self.collection.find_one_and_update(
            self._owned(object_id),
            update,
            return_document=ReturnDocument.AFTER,
        )
        return self._to_task(document) if document else None

    def delete(self, task_id: str) -> bool:
        object_id = parse_object_id(task_id)
        if object_id is None:
            return False

        result = self.collection.delete_one(self._owned(object_id))
        return result.deleted_count > 0

    def by_category(self, category: str) -> list[DocumentTask]:
        return self.list(TaskFilters(category=category))

    def overdue(self) -> list[DocumentTask]:
        query = {
            "userId": self.owner_id,
            "dueDate": {"$lt": datetime.now(timezone.utc)},
            "completed": False,
        }
        return self._find(query, [("dueDate", ASCENDING)])

    def stats(self) -> TaskStats:
        pipeline = build_stats_pipeline(self.owner_id, datetime.now(timezone.utc))
        results = list(self.collection.aggregate(pipeline))
        if not results:
            return TaskStats()

        row = results[0]
        row.pop("_id", None)
        return TaskStats.model_validate(row)
