import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tasks.db")
DB_POOL_SIZE = _get_int(os.getenv("DB_POOL_SIZE"), 10)

MONGODB_ENABLED = _get_bool(os.getenv("MONGODB_ENABLED"), default=True)
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "task_management")
MONGODB_MAX_POOL_SIZE = _get_int(os.getenv("MONGODB_MAX_POOL_SIZE"), 10)
MONGODB_SERVER_SELECTION_TIMEOUT_MS = _get_int(os.getenv("MONGODB_SERVER_SELECTION_TIMEOUT_MS"), 5000)
MONGODB_SOCKET_TIMEOUT_MS = _get_int(os.getenv("MONGODB_SOCKET_TIMEOUT_MS"), 45000)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ACCESS_EXPIRES_MINUTES = _get_int(os.getenv("JWT_ACCESS_EXPIRES_MINUTES"), 7 * 24 * 60)
JWT_REFRESH_EXPIRES_MINUTES = _get_int(os.getenv("JWT_REFRESH_EXPIRES_MINUTES"), 7 * 24 * 60)

BCRYPT_ROUNDS = _get_int(os.getenv("BCRYPT_ROUNDS"), 12)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:4200")


def is_development() -> bool:
    return APP_ENV.lower() == "development"


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
