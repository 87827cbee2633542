from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from taskapi.auth.dependencies import CurrentUser, get_current_user
from taskapi.core.exceptions import NotFoundError
from taskapi.core.responses import success
from taskapi.database import get_db
from taskapi.mongodb import get_tasks_collection
from taskapi.repositories.base import DEFAULT_LIMIT, DEFAULT_PAGE, PageRequest, TaskFilters
from taskapi.repositories.mongo_tasks import MongoTaskRepository
from taskapi.repositories.users import UserRepository
from taskapi.schemas.task import DocumentTaskCreate, DocumentTaskUpdate, TaskOwner

router = APIRouter(tags=['tasks-v2'])


def get_document_repository(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MongoTaskRepository:
    users = UserRepository(db)
    user = users.get_by_id(current_user.id)
    return MongoTaskRepository(
        get_tasks_collection(request),
        owner_id=current_user.id,
        owner_exists=users.exists,
        owner=TaskOwner.model_validate(user) if user is not None else None,
    )


def _paginated_response(repository: MongoTaskRepository, filters: TaskFilters, page_request: PageRequest):
    page = repository.list_paginated(filters, page_request)
    return success('Tasks retrieved successfully', page.items, pagination=page.pagination())


@router.get('')
def list_tasks(
    status_filter: str | None = Query(default=None, alias='status'),
    priority: str | None = None,
    search: str | None = None,
    category: str | None = None,
    page: int | None = None,
    limit: int | None = None,
    sort_by: str = Query(default='createdAt', alias='sortBy'),
    sort_order: str = Query(default='DESC', alias='sortOrder'),
    repository: MongoTaskRepository = Depends(get_document_repository),
):
    filters = TaskFilters.from_query(status=status_filter, priority=priority, search=search, category=category)

    if page is not None or limit is not None:
        page_request = PageRequest(
            page=page or DEFAULT_PAGE,
            limit=limit or DEFAULT_LIMIT,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return _paginated_response(repository, filters, page_request)

    tasks = repository.list(filters)
    return success('Tasks retrieved successfully', tasks, count=len(tasks))


@router.get('/paginated')
def list_tasks_paginated(
    status_filter: str | None = Query(default=None, alias='status'),
    priority: str | None = None,
    search: str | None = None,
    category: str | None = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort_by: str = Query(default='createdAt', alias='sortBy'),
    sort_order: str = Query(default='DESC', alias='sortOrder'),
    repository: MongoTaskRepository = Depends(get_document_repository),
):
    filters = TaskFilters.from_query(status=status_filter, priority=priority, search=search, category=category)
    page_request = PageRequest(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    return _paginated_response(repository, filters, page_request)


@router.get('/stats')
def get_task_stats(repository: MongoTaskRepository = Depends(get_document_repository)):
    return success('Task statistics retrieved successfully', repository.stats())


@router.get('/overdue')
def get_overdue_tasks(repository: MongoTaskRepository = Depends(get_document_repository)):
    tasks = repository.overdue()
    return success('Overdue tasks retrieved successfully', tasks, count=len(tasks))


@router.get('/{task_id}')
def get_task(task_id: str, repository: MongoTaskRepository = Depends(get_document_repository)):
    task = repository.get(task_id)
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task retrieved successfully', task)


@router.post('', status_code=status.HTTP_201_CREATED)
def create_task(data: DocumentTaskCreate, repository: MongoTaskRepository = Depends(get_document_repository)):
    task = repository.create(data)
    return success('Task created successfully', task, status_code=status.HTTP_201_CREATED)


@router.put('/{task_id}')
def update_task(
    task_id: str,
    data: DocumentTaskUpdate,
    repository: MongoTaskRepository = Depends(get_document_repository),
):
    task = repository.update(task_id, data.changes())
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task updated successfully', task)


@router.delete('/{task_id}')
def delete_task(task_id: str, repository: MongoTaskRepository = Depends(get_document_repository)):
    if not repository.delete(task_id):
        raise NotFoundError('Task not found')
    return success('Task deleted successfully')


@router.patch('/{task_id}/complete')
def complete_task(task_id: str, repository: MongoTaskRepository = Depends(get_document_repository)):
    task = repository.update(task_id, {'completed': True})
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task marked as completed', task)


@router.patch('/{task_id}/uncomplete')
def uncomplete_task(task_id: str, repository: MongoTaskRepository = Depends(get_document_repository)):
    task = repository.update(task_id, {'completed': False})
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task marked as pending', task)
