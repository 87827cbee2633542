import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskapi.auth import jwt_handler
from taskapi.auth.dependencies import CurrentUser, get_current_user, get_optional_user, require_admin
from taskapi.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from taskapi.core.responses import success
from taskapi.database import get_db
from taskapi.models.user import User
from taskapi.repositories.users import UserRepository
from taskapi.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileResponse,
    RefreshRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


def _session_payload(user: User) -> dict:
    tokens = jwt_handler.issue_token_pair(user.id, user.email, user.role)
    return {
        'user': UserResponse.model_validate(user),
        **tokens.model_dump(by_alias=True),
    }


def _load_user(current_user: CurrentUser, db: Session) -> User:
    user = UserRepository(db).get_by_id(current_user.id)
    if user is None:
        raise NotFoundError('User not found')
    return user


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    user = UserRepository(db).create(name=data.name, email=data.email, password=data.password)
    return success(
        'User registered successfully',
        _session_payload(user),
        status_code=status.HTTP_201_CREATED,
    )


@router.post('/login')
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = UserRepository(db).authenticate(data.email, data.password)
    if user is None:
        logger.info('Failed login attempt for %s', data.email)
        raise AuthenticationError('Invalid email or password')

    return success('Login successful', _session_payload(user))


@router.post('/refresh')
def refresh_tokens(data: RefreshRequest | None = None, db: Session = Depends(get_db)):
    if data is None or not data.refresh_token:
        raise ValidationError('Refresh token is required')

    try:
        payload = jwt_handler.verify_token(data.refresh_token)
    except AuthenticationError as exc:
        raise AuthenticationError('Invalid refresh token') from exc

    if payload.get('type') != jwt_handler.REFRESH_TOKEN_TYPE:
        raise AuthenticationError('Invalid refresh token')

    user = UserRepository(db).get_active(payload.get('userId') or '')
    if user is None:
        raise AuthenticationError('User not found or inactive')

    tokens = jwt_handler.issue_token_pair(user.id, user.email, user.role)
    return success('Tokens refreshed successfully', tokens)


@router.get('/profile')
def get_profile(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    user = _load_user(current_user, db)
    return success('Profile retrieved successfully', {'user': ProfileResponse.model_validate(user)})


@router.put('/profile')
def update_profile(
    data: UpdateProfileRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repository = UserRepository(db)
    user = _load_user(current_user, db)
    user = repository.update_profile(user, data.name)
    return success('Profile updated successfully', {'user': UserResponse.model_validate(user)})


@router.put('/change-password')
def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repository = UserRepository(db)
    user = _load_user(current_user, db)
    if not repository.change_password(user, data.current_password, data.new_password):
        raise AuthenticationError('Current password is incorrect')

    return success('Password changed successfully')


@router.post('/logout')
def logout(current_user: CurrentUser = Depends(get_current_user)):
    # Tokens are not revoked server-side; the client discards them.
    logger.info('User %s logged out', current_user.id)
    return success('Logout successful')


@router.get('/me')
def me(current_user: CurrentUser | None = Depends(get_optional_user)):
    if current_user is None:
        return success('Anonymous request', {'user': None})
    return success(
        'Authenticated request',
        {'user': {'id': current_user.id, 'email': current_user.email, 'role': current_user.role}},
    )


@router.get('/users')
def list_users(_: CurrentUser = Depends(require_admin), db: Session = Depends(get_db)):
    users = [UserResponse.model_validate(user) for user in UserRepository(db).list_all()]
    return success('Users retrieved successfully', users, count=len(users))
