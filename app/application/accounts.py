"""
Account use cases - registration, login, password change
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.errors import (
    Conflict,
    InvalidArgument,
    NotAuthenticated,
    NotFound,
    StorageFailure,
)
from app.auth import (
    MIN_PASSWORD_LENGTH,
    get_user_by_id,
    get_user_by_username,
    hash_password,
    verify_and_update_password,
)
from app.infrastructure.db.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublicUser:
    """User fields that may leave the service (never the password hash)"""
    id: str
    name: str
    username: str

    @classmethod
    def from_model(cls, user: User) -> "PublicUser":
        return cls(id=user.id, name=user.name, username=user.username)

    def to_wire(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "username": self.username}


class RegisterUserUseCase:
    """
    Use case: register a new member

    Handles are globally unique; a race on the same handle is resolved by
    the unique index and reported as Conflict.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, name: str | None, username: str | None, password: str | None) -> PublicUser:
        if not name or not username or not password:
            raise InvalidArgument("Data registrasi tidak lengkap")

        try:
            if get_user_by_username(self.db, username):
                raise Conflict("Username sudah digunakan")

            user = User(
                id=str(uuid.uuid4()),
                name=name,
                username=username,
                password_hash=hash_password(password),
            )
            self.db.add(user)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise Conflict("Username sudah digunakan") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Register error")
            raise StorageFailure("Gagal mendaftar") from exc

        logger.info("User registered: %s", user.id)
        return PublicUser.from_model(user)


class AuthenticateUserUseCase:
    """Use case: login by handle + password"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, username: str | None, password: str | None) -> PublicUser:
        if not username or not password:
            raise InvalidArgument("Username atau password kosong")

        try:
            user = get_user_by_username(self.db, username)
            if not user:
                raise NotAuthenticated("Username atau password salah")

            valid, new_hash = verify_and_update_password(password, user.password_hash)
            if not valid:
                raise NotAuthenticated("Username atau password salah")

            if new_hash:
                # Deprecated pbkdf2_sha256 hash: re-hash with bcrypt
                user.password_hash = new_hash
                self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Login error")
            raise StorageFailure("Gagal login") from exc

        return PublicUser.from_model(user)


class ChangePasswordUseCase:
    """Use case: replace the password after verifying the current one"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: str | None,
        current_password: str | None,
        new_password: str | None,
    ) -> None:
        if not user_id or not current_password or not new_password:
            raise InvalidArgument("Data tidak lengkap")

        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise InvalidArgument("Password baru minimal 6 karakter")

        try:
            user = get_user_by_id(self.db, user_id)
            if not user:
                raise NotFound("User tidak ditemukan")

            valid, _ = verify_and_update_password(current_password, user.password_hash)
            if not valid:
                raise NotAuthenticated("Password sekarang salah")

            user.password_hash = hash_password(new_password)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Change password error")
            raise StorageFailure("Gagal mengganti password") from exc

        logger.info("Password changed for user %s", user_id)
