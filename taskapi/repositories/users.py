"""Credential store backed by the relational ``users`` table."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskapi.auth.passwords import hash_password, verify_password
from taskapi.core.exceptions import ConflictError
from taskapi.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_active(self, user_id: str) -> User | None:
        user = self.get_by_id(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def exists(self, user_id: str) -> bool:
        return self.get_by_id(user_id) is not None

    def list_all(self) -> list[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def create(self, name: str, email: str, password: str, role: str = "user") -> User:
        if self.get_by_email(email) is not None:
            raise ConflictError("User already exists with this email")

        user = User(
            name=name,
            email=email.strip().lower(),
            hashed_password=hash_password(password),
            role=role,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("User already exists with this email") from exc
        self.db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    def authenticate(self, email: str, password: str) -> User | None:
        user = self.get_by_email(email)
        if user is None or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def update_profile(self, user: User, name: str) -> User:
        user.name = name
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> bool:
        if not verify_password(current_password, user.hashed_password):
            return False
        user.hashed_password = hash_password(new_password)
        self.db.commit()
        logger.info("Password changed for user %s", user.id)
        return True
