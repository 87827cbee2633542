import logging
from threading import Lock

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, TEXT, IndexModel, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from taskapi.core import config
from taskapi.core.exceptions import InternalError

logger = logging.getLogger(__name__)

TASKS_COLLECTION = "tasks"

TASK_INDEXES = [
    IndexModel([("userId", ASCENDING), ("createdAt", DESCENDING)], name="idx_tasks_user_created"),
    IndexModel([("userId", ASCENDING), ("completed", ASCENDING)], name="idx_tasks_user_completed"),
    IndexModel([("userId", ASCENDING), ("priority", ASCENDING)], name="idx_tasks_user_priority"),
    IndexModel([("userId", ASCENDING), ("dueDate", ASCENDING)], name="idx_tasks_user_due"),
    IndexModel(
        [("title", TEXT), ("description", TEXT)],
        weights={"title": 10, "description": 5},
        name="idx_tasks_text",
    ),
]

_index_lock = Lock()
_indexed_databases: set[str] = set()


def create_mongo_client(uri: str | None = None, max_pool_size: int | None = None) -> MongoClient:
    return MongoClient(
        uri or config.MONGODB_URI,
        maxPoolSize=max_pool_size or config.MONGODB_MAX_POOL_SIZE,
        serverSelectionTimeoutMS=config.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        socketTimeoutMS=config.MONGODB_SOCKET_TIMEOUT_MS,
        tz_aware=True,
    )


def ensure_task_indexes(database: Database) -> None:
    if database.name in _indexed_databases:
        return

    with _index_lock:
        if database.name in _indexed_databases:
            return

        database[TASKS_COLLECTION].create_indexes(TASK_INDEXES)
        _indexed_databases.add(database.name)
        logger.info("MongoDB task indexes ensured on %s", database.name)


def get_tasks_collection(request: Request) -> Collection:
    database = getattr(request.app.state, "mongo_db", None)
    if database is None:
        raise InternalError("Document store is not configured")
    return database[TASKS_COLLECTION]
