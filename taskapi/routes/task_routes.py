from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from taskapi.core.exceptions import NotFoundError, ValidationError
from taskapi.core.responses import success
from taskapi.database import get_db
from taskapi.repositories.base import DEFAULT_LIMIT, DEFAULT_PAGE, PageRequest, TaskFilters
from taskapi.repositories.sql_tasks import SqlTaskRepository
from taskapi.schemas.task import TaskCreate, TaskResponse, TaskUpdate

router = APIRouter(tags=['tasks'])


def get_task_repository(db: Session = Depends(get_db)) -> SqlTaskRepository:
    return SqlTaskRepository(db)


def parse_task_id(task_id: str) -> int:
    try:
        return int(task_id)
    except (TypeError, ValueError) as exc:
        raise ValidationError('Invalid task ID') from exc


def _serialize(tasks) -> list[TaskResponse]:
    return [TaskResponse.model_validate(task) for task in tasks]


def _paginated_response(repository: SqlTaskRepository, filters: TaskFilters, page_request: PageRequest):
    page = repository.list_paginated(filters, page_request)
    return success(
        'Tasks retrieved successfully',
        _serialize(page.items),
        pagination=page.pagination(),
    )


@router.get('')
def list_tasks(
    status_filter: str | None = Query(default=None, alias='status'),
    priority: str | None = None,
    search: str | None = None,
    page: int | None = None,
    limit: int | None = None,
    sort_by: str = Query(default='createdAt', alias='sortBy'),
    sort_order: str = Query(default='DESC', alias='sortOrder'),
    repository: SqlTaskRepository = Depends(get_task_repository),
):
    filters = TaskFilters.from_query(status=status_filter, priority=priority, search=search)

    if page is not None or limit is not None:
        page_request = PageRequest(
            page=page or DEFAULT_PAGE,
            limit=limit or DEFAULT_LIMIT,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return _paginated_response(repository, filters, page_request)

    tasks = _serialize(repository.list(filters))
    return success('Tasks retrieved successfully', tasks, count=len(tasks))


@router.get('/paginated')
def list_tasks_paginated(
    status_filter: str | None = Query(default=None, alias='status'),
    priority: str | None = None,
    search: str | None = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort_by: str = Query(default='createdAt', alias='sortBy'),
    sort_order: str = Query(default='DESC', alias='sortOrder'),
    repository: SqlTaskRepository = Depends(get_task_repository),
):
    filters = TaskFilters.from_query(status=status_filter, priority=priority, search=search)
    page_request = PageRequest(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    return _paginated_response(repository, filters, page_request)


@router.get('/{task_id}')
def get_task(task_id: str, repository: SqlTaskRepository = Depends(get_task_repository)):
    task = repository.get(parse_task_id(task_id))
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task retrieved successfully', TaskResponse.model_validate(task))


@router.post('', status_code=status.HTTP_201_CREATED)
def create_task(data: TaskCreate, repository: SqlTaskRepository = Depends(get_task_repository)):
    task = repository.create(data)
    return success(
        'Task created successfully',
        TaskResponse.model_validate(task),
        status_code=status.HTTP_201_CREATED,
    )


@router.put('/{task_id}')
def update_task(task_id: str, data: TaskUpdate, repository: SqlTaskRepository = Depends(get_task_repository)):
    task = repository.update(parse_task_id(task_id), data.changes())
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task updated successfully', TaskResponse.model_validate(task))


@router.delete('/{task_id}')
def delete_task(task_id: str, repository: SqlTaskRepository = Depends(get_task_repository)):
    if not repository.delete(parse_task_id(task_id)):
        raise NotFoundError('Task not found')
    return success('Task deleted successfully')


@router.patch('/{task_id}/complete')
def complete_task(task_id: str, repository: SqlTaskRepository = Depends(get_task_repository)):
    task = repository.update(parse_task_id(task_id), {'completed': True})
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task marked as completed', TaskResponse.model_validate(task))


@router.patch('/{task_id}/uncomplete')
def uncomplete_task(task_id: str, repository: SqlTaskRepository = Depends(get_task_repository)):
    task = repository.update(parse_task_id(task_id), {'completed': False})
    if task is None:
        raise NotFoundError('Task not found')
    return success('Task marked as pending', TaskResponse.model_validate(task))
