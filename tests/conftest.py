import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('MONGODB_ENABLED', 'false')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('APP_ENV', 'test')

import pytest  # noqa: E402
from fastapi import Depends  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fakes import FakeTaskStore  # noqa: E402
from taskapi.auth.dependencies import CurrentUser, get_current_user  # noqa: E402
from taskapi.database import Base, get_db, initialize_schema  # noqa: E402
from taskapi.main import create_app  # noqa: E402
from taskapi.repositories.users import UserRepository  # noqa: E402
from taskapi.routes.task_v2_routes import get_document_repository  # noqa: E402
from taskapi.schemas.task import TaskOwner  # noqa: E402

DEFAULT_PASSWORD = 'Secret1'


@pytest.fixture
def sql_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    initialize_schema(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(sql_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=sql_engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def task_store() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture
def client(sql_engine, task_store):
    app = create_app(engine=sql_engine, enable_mongo=False)

    def fake_document_repository(
        current_user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        user = UserRepository(db).get_by_id(current_user.id)
        return task_store.for_owner(current_user.id, TaskOwner.model_validate(user))

    app.dependency_overrides[get_document_repository] = fake_document_repository

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    def _register(name: str = 'A', email: str = 'a@x.com', password: str = DEFAULT_PASSWORD) -> dict:
        response = client.post('/auth/register', json={'name': name, 'email': email, 'password': password})
        assert response.status_code == 201, response.json()
        return response.json()['data']

    return _register


@pytest.fixture
def auth_headers(register_user):
    def _headers(email: str = 'owner@x.com', name: str = 'Owner') -> dict:
        session = register_user(name=name, email=email)
        return {'Authorization': f"Bearer {session['accessToken']}"}

    return _headers
