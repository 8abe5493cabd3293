from collections.abc import Generator
from typing import Any

import pytest
from sqlalchemy import Connection, Engine, StaticPool, create_engine
from sqlalchemy.orm import Session

from observeproxy import ActionManager, ObserveProxy, ScopeManager, observe


@pytest.fixture
def scope() -> ScopeManager:
    """Fresh dependency tracker and action log per test."""
    return ScopeManager()


@pytest.fixture
def actions(scope: ScopeManager) -> ActionManager:
    return scope.action_manager


@pytest.fixture
def raw() -> dict[str, Any]:
    """A small nested document used across tests."""
    return {
        "a": {"b": 1},
        "items": [{"x": 1}, {"x": 2}],
        "title": "doc",
    }


@pytest.fixture
def doc(raw: dict[str, Any], scope: ScopeManager) -> ObserveProxy[dict[str, Any]]:
    return observe(raw, scope)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    """Shared in-memory engine."""
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield eng
    eng.dispose()


@pytest.fixture(scope="function")
def connection(engine: Engine) -> Generator[Connection, None, None]:
    conn = engine.connect()
    trans = conn.begin()
    yield conn
    trans.rollback()
    conn.close()


@pytest.fixture(scope="function")
def session(connection: Connection) -> Generator[Session, None, None]:
    """Fresh session per test; tracked attributes must survive commit."""
    sess = Session(bind=connection, expire_on_commit=False)
    yield sess
    sess.close()
