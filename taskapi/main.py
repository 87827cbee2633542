import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from bson.errors import InvalidId
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskapi.core import config
from taskapi.core.exceptions import ApiError
from taskapi.core.logging_setup import setup_logging
from taskapi.core.responses import error
from taskapi.database import check_connection, create_session_factory, create_sql_engine, initialize_schema
from taskapi.mongodb import create_mongo_client, ensure_task_indexes
from taskapi.routes import auth_routes, task_routes, task_v2_routes

logger = logging.getLogger(__name__)


def _format_validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for item in exc.errors():
        location = [str(part) for part in item.get('loc', ()) if part not in ('body', 'query', 'path')]
        message = str(item.get('msg', 'Invalid value')).removeprefix('Value error, ')
        errors.append({'field': '.'.join(location) or 'body', 'message': message})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        return error(exc.message, exc.status_code, exc.errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = 'Route not found'
        else:
            message = str(exc.detail) if exc.detail else 'Server Error'
        return error(message, exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error('Validation errors', status.HTTP_400_BAD_REQUEST, _format_validation_errors(exc))

    @app.exception_handler(IntegrityError)
    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate(request: Request, exc: Exception):
        logger.warning('Duplicate value rejected on %s %s', request.method, request.url.path)
        return error('Duplicate field value entered', status.HTTP_409_CONFLICT)

    @app.exception_handler(InvalidId)
    async def handle_invalid_id(request: Request, exc: InvalidId):
        return error('Resource not found', status.HTTP_404_NOT_FOUND)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        extra = {}
        if config.is_development():
            extra['stack'] = ''.join(traceback.format_exception(exc))
        return error('Server Error', status.HTTP_500_INTERNAL_SERVER_ERROR, **extra)


def create_app(
    engine: Engine | None = None,
    mongo_database: Database | None = None,
    enable_mongo: bool | None = None,
) -> FastAPI:
    """
    Build the application.

    ``engine`` and ``mongo_database`` let callers (tests, scripts) supply
    their own handles; otherwise both are created from configuration at
    startup and released at shutdown.
    """
    setup_logging()
    config.validate_runtime_config()
    use_mongo = config.MONGODB_ENABLED if enable_mongo is None else enable_mongo

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sql_engine = engine or create_sql_engine()
        try:
            initialize_schema(sql_engine)
            check_connection(sql_engine)
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL and credentials.')
            raise
        app.state.session_factory = create_session_factory(sql_engine)

        mongo_client = None
        app.state.mongo_db = mongo_database
        if mongo_database is None and use_mongo:
            mongo_client = create_mongo_client()
            app.state.mongo_db = mongo_client[config.MONGODB_DB_NAME]
        if app.state.mongo_db is not None:
            try:
                ensure_task_indexes(app.state.mongo_db)
            except PyMongoError:
                logger.exception('MongoDB initialization failed. Check MONGODB_URI.')

        logger.info('Task Management API started')
        try:
            yield
        finally:
            if mongo_client is not None:
                mongo_client.close()
                logger.info('MongoDB connection closed')
            if engine is None:
                sql_engine.dispose()
                logger.info('Relational database connection pool disposed')

    app = FastAPI(title='Task Management API', lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info('%s %s %s %.1fms', request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    register_exception_handlers(app)

    @app.get('/health')
    def health():
        return {
            'status': 'OK',
            'message': 'Task Management API is running',
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(task_routes.router, prefix='/tasks')
    app.include_router(task_v2_routes.router, prefix='/v2/tasks')

    return app


app = create_app()
