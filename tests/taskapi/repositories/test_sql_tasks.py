from datetime import datetime, timezone

import pytest

from taskapi.repositories.base import PageRequest, TaskFilters
from taskapi.repositories.sql_tasks import SqlTaskRepository
from taskapi.schemas.task import TaskCreate


@pytest.fixture
def repository(db_session) -> SqlTaskRepository:
    return SqlTaskRepository(db_session)


def _create(repository: SqlTaskRepository, title: str, **fields):
    return repository.create(TaskCreate(title=title, **fields))


def test_create_returns_input_fields_with_defaults(repository: SqlTaskRepository) -> None:
    due = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)

    task = _create(repository, 'Buy milk', description='2 litres', priority='high', due_date=due)

    assert task.id is not None
    assert task.title == 'Buy milk'
    assert task.description == '2 litres'
    assert task.priority == 'high'
    assert task.completed is False
    assert task.due_date.replace(tzinfo=timezone.utc) == due
    assert task.created_at is not None
    assert task.updated_at is not None


def test_create_defaults_priority_to_medium(repository: SqlTaskRepository) -> None:
    assert _create(repository, 'Plain').priority == 'medium'


def test_list_is_newest_first(repository: SqlTaskRepository) -> None:
    first = _create(repository, 'first')
    second = _create(repository, 'second')
    third = _create(repository, 'third')

    assert [task.id for task in repository.list()] == [third.id, second.id, first.id]


def test_filters_compose_with_and(repository: SqlTaskRepository) -> None:
    done_high = _create(repository, 'done high', priority='high')
    _create(repository, 'done low', priority='low')
    _create(repository, 'open high', priority='high')
    repository.update(done_high.id, {'completed': True})
    repository.update(repository.list(TaskFilters(priority='low'))[0].id, {'completed': True})

    completed = repository.list(TaskFilters(completed=True))
    both = repository.list(TaskFilters(completed=True, priority='high'))

    assert {task.title for task in completed} == {'done high', 'done low'}
    assert [task.title for task in both] == ['done high']


def test_search_matches_substring_of_title_or_description(repository: SqlTaskRepository) -> None:
    _create(repository, 'Groceries', description='buy MILK and eggs')
    _create(repository, 'Milkshake recipe')
    _create(repository, 'Laundry')

    titles = {task.title for task in repository.list(TaskFilters(search='milk'))}

    assert titles == {'Groceries', 'Milkshake recipe'}


def test_search_treats_like_wildcards_literally(repository: SqlTaskRepository) -> None:
    _create(repository, 'Buy milk')
    _create(repository, 'Grow 100% faster')
    _create(repository, 'Rename file', description='use snake_case')

    def titles(term: str) -> list[str]:
        return sorted(task.title for task in repository.list(TaskFilters(search=term)))

    assert titles('%') == ['Grow 100% faster']
    assert titles('_') == ['Rename file']
    assert titles('0%') == ['Grow 100% faster']
    assert titles('m_lk') == []


def test_list_paginated_reports_page_metadata(repository: SqlTaskRepository) -> None:
    for index in range(7):
        _create(repository, f'task {index}')

    page = repository.list_paginated(None, PageRequest(page=2, limit=3))

    assert [task.title for task in page.items] == ['task 3', 'task 2', 'task 1']
    assert page.total == 7
    assert page.total_pages == 3
    assert page.has_next is True
    assert page.has_prev is True


def test_list_paginated_last_page(repository: SqlTaskRepository) -> None:
    for index in range(7):
        _create(repository, f'task {index}')

    page = repository.list_paginated(None, PageRequest(page=3, limit=3))

    assert [task.title for task in page.items] == ['task 0']
    assert page.has_next is False


def test_list_paginated_sorts_priority_by_rank(repository: SqlTaskRepository) -> None:
    _create(repository, 'h', priority='high')
    _create(repository, 'l', priority='low')
    _create(repository, 'm', priority='medium')

    ascending = repository.list_paginated(None, PageRequest(sort_by='priority', sort_order='ASC'))
    descending = repository.list_paginated(None, PageRequest(sort_by='priority', sort_order='DESC'))

    assert [task.title for task in ascending.items] == ['l', 'm', 'h']
    assert [task.title for task in descending.items] == ['h', 'm', 'l']


def test_list_paginated_applies_filters_to_total(repository: SqlTaskRepository) -> None:
    for index in range(4):
        _create(repository, f'high {index}', priority='high')
    _create(repository, 'low', priority='low')

    page = repository.list_paginated(TaskFilters(priority='high'), PageRequest(page=1, limit=3))

    assert page.total == 4
    assert page.total_pages == 2
    assert all(task.priority == 'high' for task in page.items)


def test_update_only_touches_given_fields(repository: SqlTaskRepository) -> None:
    task = _create(repository, 'Original', description='keep me', priority='low')

    updated = repository.update(task.id, {'title': 'Renamed'})

    assert updated.title == 'Renamed'
    assert updated.description == 'keep me'
    assert updated.priority == 'low'


def test_update_with_no_fields_returns_task_unchanged(repository: SqlTaskRepository) -> None:
    task = _create(repository, 'Untouched')
    before = (task.title, task.description, task.completed, task.priority, task.updated_at)

    same = repository.update(task.id, {})

    assert (same.title, same.description, same.completed, same.priority, same.updated_at) == before


def test_update_missing_task_returns_none(repository: SqlTaskRepository) -> None:
    assert repository.update(999, {'title': 'x'}) is None


def test_delete_reports_whether_a_row_was_removed(repository: SqlTaskRepository) -> None:
    task = _create(repository, 'Doomed')

    assert repository.delete(task.id) is True
    assert repository.delete(task.id) is False
    assert repository.get(task.id) is None


def test_status_and_priority_helpers(repository: SqlTaskRepository) -> None:
    done = _create(repository, 'done', priority='low')
    _create(repository, 'open', priority='high')
    repository.update(done.id, {'completed': True})

    assert [task.title for task in repository.by_status(True)] == ['done']
    assert [task.title for task in repository.by_status(False)] == ['open']
    assert [task.title for task in repository.by_priority('high')] == ['open']
