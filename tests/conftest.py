"""Shared fixtures: role registry, in-memory database, API client."""

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import hrms.models  # noqa: F401
from hrms.db.base import Base
from hrms.db.seeds.seed_roles import seed_roles
from hrms.models.user import User
from hrms.schemas.access import AccessContext
from hrms.services.role_registry import load_registry


@pytest.fixture(scope="session")
def registry():
    return load_registry()


@pytest.fixture
def make_context(registry):
    """Build an AccessContext for a registered role."""

    def _make(role_name, user_id=1, **overrides):
        role = registry.get(role_name)
        values = {
            "user_id": user_id,
            "role_name": role.name,
            "hierarchy_level": role.level,
            "permissions": role.permissions,
        }
        values.update(overrides)
        return AccessContext(**values)

    return _make


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine, registry):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    seed_roles(session, registry)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Insert a user row and return it."""
    counter = {"n": 0}

    def _make(full_name=None, department_id=None, manager_id=None, is_active=True):
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@hrms.test",
            full_name=full_name or f"User {counter['n']}",
            department_id=department_id,
            manager_id=manager_id,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make
