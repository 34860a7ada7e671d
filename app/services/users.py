from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.errors import ConflictError, ValidationError
from app.models.user import User, UserRole
from app.schemas.user import UserUpdate
from app.services.common import validate_enum
from app.services.crud import CRUDManager, DuplicateKeyError

logger = logging.getLogger(__name__)

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 50
RECENT_WINDOW = timedelta(days=30)


class UserRepository(CRUDManager[User]):
    model = User
    not_found_detail = "User not found"

    @classmethod
    def list_all(cls, db: Session) -> list[User]:
        return cls.find_many(db, order_by=User.created_at.desc())

    @classmethod
    def by_role(cls, db: Session, role: UserRole) -> list[User]:
        return cls.find_many(db, {"role": role}, order_by=User.created_at.desc())

    @classmethod
    def by_email(cls, db: Session, email: str) -> User | None:
        return cls.find_unique(db, email=email)

    @classmethod
    def by_api_key(cls, db: Session, key: str) -> User | None:
        return cls.find_unique(db, key=key)

    @classmethod
    def search(cls, db: Session, term: str, limit: int = SEARCH_LIMIT) -> list[User]:
        return (
            db.query(User)
            .filter(
                or_(
                    User.email.icontains(term, autoescape=True),
                    User.name.icontains(term, autoescape=True),
                )
            )
            .order_by(User.created_at.desc())
            .limit(limit)
            .all()
        )

    @classmethod
    def count_created_since(cls, db: Session, since: datetime) -> int:
        return db.query(User).filter(User.created_at >= since).count()


class Users:
    @staticmethod
    def list_with_counts(db: Session) -> dict:
        total = UserRepository.count(db)
        active = UserRepository.count(db, {"active": True})
        return {
            "users": UserRepository.list_all(db),
            "statistics": {"total": total, "active": active, "inactive": total - active},
        }

    @staticmethod
    def get(db: Session, user_id: str) -> User:
        return UserRepository.get_or_404(db, user_id)

    @staticmethod
    def update(db: Session, user_id: str, payload: UserUpdate) -> User:
        try:
            user = UserRepository.update(db, user_id, payload)
        except DuplicateKeyError as exc:
            raise ConflictError(str(exc), "User update conflicts with an existing user") from exc
        logger.info(
            "user_updated user_id=%s fields=%s",
            user_id,
            ",".join(sorted(payload.model_dump(exclude_unset=True))),
        )
        return user

    @staticmethod
    def deactivate(db: Session, user_id: str) -> dict:
        user = UserRepository.get_or_404(db, user_id)
        if not user.active:
            raise ValidationError("User is already inactive", "Cannot deactivate user")
        UserRepository.apply_changes(db, user, {"active": False})
        logger.info("user_deactivated user_id=%s", user_id)
        return {"message": "User deactivated successfully"}

    @staticmethod
    def activate(db: Session, user_id: str) -> User:
        user = UserRepository.get_or_404(db, user_id)
        if user.active:
            raise ValidationError("User is already active", "Cannot activate user")
        user = UserRepository.apply_changes(db, user, {"active": True})
        logger.info("user_activated user_id=%s", user_id)
        return user

    @staticmethod
    def delete(db: Session, user_id: str) -> dict:
        UserRepository.delete(db, user_id)
        logger.info("user_deleted user_id=%s", user_id)
        return {"message": "User deleted permanently"}

    @staticmethod
    def search(db: Session, query: str | None) -> dict:
        term = (query or "").strip()
        if len(term) < SEARCH_MIN_LENGTH:
            raise ValidationError(
                f"Search query must be at least {SEARCH_MIN_LENGTH} characters",
                "Search query is required",
            )
        found = UserRepository.search(db, term)
        return {"users": found, "count": len(found), "query": term}

    @staticmethod
    def by_role(db: Session, role: str) -> dict:
        role_value = validate_enum(role, UserRole, "role")
        found = UserRepository.by_role(db, role_value)
        return {
            "users": found,
            "count": UserRepository.count(db, {"role": role_value}),
            "role": role_value,
        }

    @staticmethod
    def statistics(db: Session) -> dict:
        total = UserRepository.count(db)
        active = UserRepository.count(db, {"active": True})
        admins = UserRepository.count(db, {"role": UserRole.ADMIN})
        editors = UserRepository.count(db, {"role": UserRole.EDITOR})
        plain = UserRepository.count(db, {"role": UserRole.USER})
        recent = UserRepository.count_created_since(db, datetime.now(UTC) - RECENT_WINDOW)
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "recent": recent,
            "by_role": {
                "admin": admins,
                "editor": editors,
                "user": plain,
                "other": total - admins - editors - plain,
            },
        }


users = Users()
