"""Shared helpers for tests: SQLite databases and an app client wired to them."""

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portal.core.clock import utcnow
from portal.core.database import get_db, get_session_factory
from portal.core.roles import UserStatus
from portal.core.security import create_access_token
from portal.models import Base, Event, User
from portal.schemas.auth import CurrentUser


def make_session_factory(path: str | None = None) -> sessionmaker:
    """
    Fresh database with every table created: in memory on one shared
    connection, or a WAL-mode file at `path` when concurrent connections
    are needed.

    pysqlite's own transaction handling breaks SAVEPOINT, so the driver is
    put in autocommit mode and BEGIN is emitted by SQLAlchemy instead.
    """
    if path is None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, _record) -> None:
        dbapi_connection.isolation_level = None
        if path is not None:
            dbapi_connection.execute("PRAGMA journal_mode=WAL")

    @event.listens_for(engine, "begin")
    def _begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def seed_session(factory: sessionmaker) -> Session:
    """Session whose objects keep their loaded values after commit and close."""
    return factory(expire_on_commit=False)


def add_user(
    db: Session,
    email: str = "staff@example.org",
    role: str = "FACILITATOR",
    name: str = "Sam Staff",
    status: str = UserStatus.ACTIVE.value,
    password_hash: str | None = "x",
) -> User:
    user = User(email=email, role=role, name=name, status=status, password_hash=password_hash)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_event(db: Session, start_in: timedelta, duration: timedelta = timedelta(hours=2), **kwargs) -> Event:
    start = utcnow() + start_in
    values = {
        "title": "Music Afternoon",
        "status": "PUBLISHED",
        "max_attendees": 2,
        "start_at": start,
        "end_at": start + duration,
    }
    values.update(kwargs)
    event_row = Event(**values)
    db.add(event_row)
    db.commit()
    db.refresh(event_row)
    return event_row


def actor(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, name=user.name, role=user.role)


def auth_header(user: User, role: str | None = None) -> dict[str, str]:
    token = create_access_token(sub=user.id, role=role or user.role, name=user.name)
    return {"Authorization": f"Bearer {token}"}


def make_client(factory: sessionmaker) -> TestClient:
    """TestClient for the app with DB dependencies bound to `factory`."""
    from portal.main import app

    def _get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: factory
    return TestClient(app)


def clear_overrides() -> None:
    from portal.main import app

    app.dependency_overrides.clear()
