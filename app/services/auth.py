"""Account registration and self-service profile operations."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from app.errors import ConflictError, InternalError, ValidationError
from app.models.user import User, UserRole
from app.services.crud import DuplicateKeyError
from app.services.identity import IdentityError, get_identity_client
from app.services.object_storage import ObjectStorageError, get_media_storage
from app.services.users import UserRepository

logger = logging.getLogger(__name__)


def generate_api_key() -> str:
    return str(uuid.uuid4())


class AuthService:
    def __init__(self) -> None:
        self.identity = None
        self.storage = None

    def _identity_client(self):
        if self.identity is None:
            self.identity = get_identity_client()
        return self.identity

    def _storage_client(self):
        if self.storage is None:
            self.storage = get_media_storage()
        return self.storage

    def _sign_up(self, email: str, password: str, name: str | None):
        try:
            return self._identity_client().sign_up(email, password, name)
        except IdentityError as exc:
            if exc.is_duplicate:
                raise ConflictError(exc.message, "Email already registered") from exc
            if exc.is_rejection:
                raise ValidationError(exc.message, "Registration failed") from exc
            logger.error("identity_signup_failed email=%s error=%s", email, exc)
            raise InternalError(
                "Identity provider unavailable", "Registration failed"
            ) from exc

    def _ensure_media_root(self, email: str) -> None:
        try:
            self._storage_client().ensure_folder(email)
        except (ObjectStorageError, ValueError) as exc:
            logger.warning("media_root_failed email=%s error=%s", email, exc)

    def register(
        self, db: Session, email: str, password: str, name: str | None = None
    ) -> dict:
        if UserRepository.by_email(db, email) is not None:
            raise ConflictError("Email already registered", "Registration failed")

        identity_user = self._sign_up(email, password, name)
        api_key = generate_api_key()
        self._ensure_media_root(email)

        try:
            user = UserRepository.create(
                db,
                {
                    "id": identity_user.id,
                    "email": email,
                    "name": name,
                    "key": api_key,
                    "avatar_url": identity_user.avatar_url,
                    "role": UserRole.USER,
                },
            )
        except DuplicateKeyError as exc:
            raise ConflictError(str(exc), "Registration failed") from exc
        logger.info("user_registered user_id=%s", user.id)
        return {"user": user, "api_key": api_key}

    @staticmethod
    def get_profile(db: Session, user_id: str) -> User:
        return UserRepository.get_or_404(db, user_id)

    @staticmethod
    def update_profile(db: Session, user_id: str, name: str | None) -> User:
        user = UserRepository.get_or_404(db, user_id)
        if name is None:
            return user
        return UserRepository.apply_changes(db, user, {"name": name})

    @staticmethod
    def get_api_key(db: Session, user_id: str) -> dict:
        user = UserRepository.get_or_404(db, user_id)
        return {"key": user.key}

    @staticmethod
    def regenerate_api_key(db: Session, user_id: str) -> dict:
        user = UserRepository.get_or_404(db, user_id)
        try:
            user = UserRepository.apply_changes(db, user, {"key": generate_api_key()})
        except DuplicateKeyError as exc:
            raise ConflictError(str(exc), "API key rotation failed") from exc
        logger.info("api_key_regenerated user_id=%s", user_id)
        return {"key": user.key}


auth_service = AuthService()
