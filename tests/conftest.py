from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any

import pytest

os.environ.setdefault("CHORELY_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("CHORELY_REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("CHORELY_JWT_SECRET", "test-secret")
os.environ.setdefault("CHORELY_APP_ENV", "test")
os.environ.setdefault("CHORELY_CRON_SECRET", "cron-test-secret")
os.environ.setdefault("CHORELY_SERVICE_ROLE_KEY", "service-test-key")

from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import models  # noqa: E402,F401
from app.db.base import Base  # noqa: E402
from app.models import (  # noqa: E402
    Chore,
    ChoreInstance,
    ChoreStatus,
    ChoreType,
    Family,
    Profile,
    ProfileRole,
)

REFERENCE_NOW = datetime(2026, 3, 11, 15, 0, tzinfo=UTC)


@pytest.fixture()
def db() -> Iterator[Session]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN until the first DML; emit it ourselves so SAVEPOINT behaves.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Any) -> None:
        connection.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def make_family(db: Session) -> Callable[..., Family]:
    def factory(**overrides: Any) -> Family:
        values: dict[str, Any] = {"name": "Rivera", "timezone": "UTC", "settings": {}}
        values.update(overrides)
        family = Family(**values)
        db.add(family)
        db.commit()
        return family

    return factory


@pytest.fixture()
def make_profile(db: Session) -> Callable[..., Profile]:
    def factory(family: Family, *, role: ProfileRole = ProfileRole.CHILD, **overrides: Any) -> Profile:
        values: dict[str, Any] = {
            "family_id": family.id,
            "role": role,
            "display_name": "Parent" if role == ProfileRole.PARENT else "Kid",
        }
        values.update(overrides)
        profile = Profile(**values)
        db.add(profile)
        db.commit()
        return profile

    return factory


@pytest.fixture()
def make_chore(db: Session) -> Callable[..., Chore]:
    def factory(family: Family, **overrides: Any) -> Chore:
        values: dict[str, Any] = {
            "family_id": family.id,
            "title": "Feed the cat",
            "type": ChoreType.HOUSEHOLD,
            "base_points": 10,
            "expected_duration_min": 60,
            "created_at": datetime(2026, 3, 1, 8, 0, tzinfo=UTC),
        }
        values.update(overrides)
        chore = Chore(**values)
        db.add(chore)
        db.commit()
        return chore

    return factory


@pytest.fixture()
def make_instance(db: Session) -> Callable[..., ChoreInstance]:
    def factory(chore: Chore, **overrides: Any) -> ChoreInstance:
        values: dict[str, Any] = {
            "chore_id": chore.id,
            "family_id": chore.family_id,
            "title": chore.title,
            "type": chore.type,
            "base_points": chore.base_points,
            "expected_duration_min": chore.expected_duration_min,
            "due_at": datetime(2026, 3, 10, 12, 0, tzinfo=UTC),
            "status": ChoreStatus.SUBMITTED,
        }
        values.update(overrides)
        instance = ChoreInstance(**values)
        db.add(instance)
        db.commit()
        return instance

    return factory
