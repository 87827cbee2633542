import logging
from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from taskapi.auth import jwt_handler
from taskapi.core.exceptions import ApiError, AuthenticationError, AuthorizationError
from taskapi.database import get_db
from taskapi.repositories.users import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str
    role: str


def authenticate_header(authorization: str | None, db: Session) -> CurrentUser:
    token = jwt_handler.extract_token_from_header(authorization)
    if not token:
        raise AuthenticationError("Access token is required")

    payload = jwt_handler.verify_token(token)
    if payload.get("type") != jwt_handler.ACCESS_TOKEN_TYPE:
        raise AuthenticationError("Invalid token type")

    user_id = payload.get("userId")
    if not user_id:
        raise AuthenticationError("Invalid token subject")

    user = UserRepository(db).get_active(user_id)
    if user is None:
        raise AuthenticationError("User not found or inactive")

    return CurrentUser(id=user.id, email=user.email, role=user.role)


def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> CurrentUser:
    try:
        return authenticate_header(authorization, db)
    except AuthenticationError as exc:
        logger.info("Authentication failed: %s", exc.message)
        raise


def get_optional_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> CurrentUser | None:
    if not authorization:
        return None
    try:
        return authenticate_header(authorization, db)
    except ApiError:
        return None


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "admin":
        raise AuthorizationError("Admin access required")
    return current_user
