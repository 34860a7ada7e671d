"""Generic CRUD manager utilities for service-layer boilerplate reduction."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from psycopg import errors as pg_errors
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import InternalError, NotFoundError
from app.services.common import apply_pagination

logger = logging.getLogger(__name__)

TModel = TypeVar("TModel")


class DuplicateKeyError(Exception):
    """A write violated a unique constraint."""

    def __init__(self, model_name: str, detail: str = "") -> None:
        self.model_name = model_name
        self.detail = detail
        super().__init__(f"Duplicate {model_name}: {detail}" if detail else f"Duplicate {model_name}")


def is_unique_violation(exc: IntegrityError) -> bool:
    if isinstance(exc.orig, pg_errors.UniqueViolation):
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


class CRUDManager(Generic[TModel]):
    """Reusable persistence primitives bound to one model.

    Subclasses set ``model`` and add typed, resource-specific queries on top.
    """

    model: type[TModel] | None = None
    not_found_detail: str = "Resource not found"

    @classmethod
    def _require_model(cls) -> type[TModel]:
        if cls.model is None:
            raise RuntimeError(f"{cls.__name__}.model must be set")
        return cls.model

    @classmethod
    def _payload_dict(cls, payload: Any, *, exclude_unset: bool) -> dict[str, Any]:
        if hasattr(payload, "model_dump"):
            dumped = payload.model_dump(exclude_unset=exclude_unset)
            return cast(dict[str, Any], dumped)
        if isinstance(payload, Mapping):
            return dict(payload)
        return dict(payload)

    @classmethod
    def _commit(cls, db: Session, entity=None):
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            model_name = cls._require_model().__name__
            if not is_unique_violation(exc):
                logger.error("integrity_error model=%s error=%s", model_name, exc.orig)
                raise InternalError(
                    f"Failed to save {model_name}", "Database constraint violated"
                ) from exc
            logger.info("duplicate_key model=%s error=%s", model_name, exc.orig)
            raise DuplicateKeyError(model_name, str(exc.orig)) from exc
        if entity is not None:
            db.refresh(entity)
        return entity

    @classmethod
    def query(cls, db: Session, filters: Mapping[str, Any] | None = None):
        model = cls._require_model()
        query = db.query(model)
        if filters:
            query = query.filter_by(**filters)
        return query

    @classmethod
    def find_many(
        cls,
        db: Session,
        filters: Mapping[str, Any] | None = None,
        order_by=None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[TModel]:
        query = cls.query(db, filters)
        if order_by is not None:
            clauses = order_by if isinstance(order_by, (list, tuple)) else [order_by]
            query = query.order_by(*clauses)
        return apply_pagination(query, limit, offset).all()

    @classmethod
    def find_unique(cls, db: Session, **unique_key) -> TModel | None:
        return cls.query(db, unique_key).one_or_none()

    @classmethod
    def find_by_id(cls, db: Session, entity_id) -> TModel | None:
        if entity_id is None:
            return None
        return db.get(cls._require_model(), entity_id)

    @classmethod
    def get_or_404(cls, db: Session, entity_id) -> TModel:
        entity = cls.find_by_id(db, entity_id)
        if not entity:
            raise NotFoundError(cls.not_found_detail)
        return entity

    @classmethod
    def count(cls, db: Session, filters: Mapping[str, Any] | None = None) -> int:
        return cls.query(db, filters).count()

    @classmethod
    def create(cls, db: Session, payload) -> TModel:
        model = cls._require_model()
        entity = model(**cls._payload_dict(payload, exclude_unset=False))
        db.add(entity)
        return cls._commit(db, entity)

    @classmethod
    def apply_changes(cls, db: Session, entity: TModel, payload) -> TModel:
        for key, value in cls._payload_dict(payload, exclude_unset=True).items():
            setattr(entity, key, value)
        return cls._commit(db, entity)

    @classmethod
    def update(cls, db: Session, entity_id, payload) -> TModel:
        entity = cls.get_or_404(db, entity_id)
        return cls.apply_changes(db, entity, payload)

    @classmethod
    def remove(cls, db: Session, entity: TModel) -> None:
        db.delete(entity)
        db.commit()

    @classmethod
    def delete(cls, db: Session, entity_id) -> None:
        cls.remove(db, cls.get_or_404(db, entity_id))

    @classmethod
    def upsert(
        cls,
        db: Session,
        unique_key: Mapping[str, Any],
        create_values: Mapping[str, Any],
        update_values: Mapping[str, Any],
    ) -> TModel:
        entity = cls.find_unique(db, **unique_key)
        if entity is None:
            return cls.create(db, {**unique_key, **create_values})
        return cls.apply_changes(db, entity, update_values)
