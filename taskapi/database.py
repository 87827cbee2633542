import logging
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from taskapi.core import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_sql_engine(database_url: str | None = None, pool_size: int | None = None) -> Engine:
    url = database_url or config.DATABASE_URL
    if url.startswith("sqlite"):
        # SQLite connections are shared across the FastAPI worker threads.
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=pool_size or config.DB_POOL_SIZE,
        max_overflow=0,
        pool_pre_ping=True,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def initialize_schema(engine: Engine) -> None:
    # Models register themselves on Base when imported.
    from taskapi.models import task, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def check_connection(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    logger.info("Relational database connected (%s)", engine.url.render_as_string(hide_password=True))


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
