import os
import sqlite3
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base

# Register UUID adapter for SQLite - store as string
sqlite3.register_adapter(uuid.UUID, lambda u: str(u))


# Monkey-patch SQLAlchemy's UUID type for SQLite compatibility
# This must happen before any models are imported
from sqlalchemy.sql import sqltypes

_original_uuid_bind_processor = sqltypes.Uuid.bind_processor
_original_uuid_result_processor = sqltypes.Uuid.result_processor


def _sqlite_uuid_bind_processor(self, dialect):
    if dialect.name == "sqlite":
        def process(value):
            if value is not None:
                if isinstance(value, uuid.UUID):
                    return str(value)
                return str(uuid.UUID(value)) if value else None
            return None
        return process
    return _original_uuid_bind_processor(self, dialect)


def _sqlite_uuid_result_processor(self, dialect, coltype):
    if dialect.name == "sqlite":
        def process(value):
            if value is not None:
                if isinstance(value, uuid.UUID):
                    return value
                return uuid.UUID(value) if value else None
            return None
        return process
    return _original_uuid_result_processor(self, dialect, coltype)


setattr(sqltypes.Uuid, "bind_processor", _sqlite_uuid_bind_processor)
setattr(sqltypes.Uuid, "result_processor", _sqlite_uuid_result_processor)

from app.models.stored_file import StoredFile
from app.models.user import User, UserRole
from tests.mocks import FakeIdentityClient, FakeMediaStorage


@pytest.fixture(scope="session")
def engine():
    database_url = os.getenv("TEST_DATABASE_URL")
    if database_url:
        engine = create_engine(database_url)
    else:
        engine = create_engine(
            "sqlite+pysqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        # pysqlite emits its own BEGIN unless told not to, which breaks SAVEPOINT
        @event.listens_for(engine, "connect")
        def _configure_connection(dbapi_connection, _connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _emit_begin(connection):
            connection.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        autocommit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:12]}@example.com"


@pytest.fixture()
def make_user(db_session):
    def _make_user(
        email: str | None = None,
        name: str | None = "Test User",
        role: UserRole = UserRole.USER,
        active: bool = True,
    ) -> User:
        user = User(
            id=str(uuid.uuid4()),
            email=email or _unique_email(),
            name=name,
            role=role,
            active=active,
            key=str(uuid.uuid4()),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def user(make_user):
    return make_user()


@pytest.fixture()
def admin(make_user):
    return make_user(name="Admin", role=UserRole.ADMIN)


@pytest.fixture()
def make_file(db_session):
    def _make_file(
        owner: User,
        folder_name: str = "",
        original_name: str = "report.pdf",
        size: int = 1024,
        mime_type: str = "application/pdf",
    ) -> StoredFile:
        namespace = f"{owner.email}/{folder_name}" if folder_name else owner.email
        stored_name = f"{uuid.uuid4().hex[:12]}.pdf"
        record = StoredFile(
            user_id=owner.id,
            original_name=original_name,
            file_name=stored_name,
            folder_name=folder_name,
            file_type=mime_type,
            mime_type=mime_type,
            size=size,
            url=f"http://media.test/{namespace}/{stored_name}",
            public_id=f"{namespace}/{stored_name}",
            storage_folder=namespace,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make_file


@pytest.fixture()
def media_storage():
    return FakeMediaStorage()


@pytest.fixture()
def identity_client():
    return FakeIdentityClient()


@pytest.fixture()
def api_client(db_session, monkeypatch, media_storage, identity_client):
    from fastapi.testclient import TestClient

    from app.db import get_db
    from app.main import app
    from app.services.auth import auth_service
    from app.services.file_storage import file_storage
    from app.services.identity import get_identity_client

    monkeypatch.setattr(file_storage, "storage", media_storage)
    monkeypatch.setattr(auth_service, "storage", media_storage)
    monkeypatch.setattr(auth_service, "identity", identity_client)
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_identity_client] = lambda: identity_client
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
