from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from initracker.api.deps import get_rng
from initracker.api.main import app
from initracker.db.base import Base
import initracker.db.session as db_session
import initracker.db.init_db as db_init
from initracker.db.deps import get_db


class FixedRng:
    """Stand-in for random.Random: randint hands out queued values, then repeats the last one."""

    def __init__(self, *values: int) -> None:
        self.values = list(values) or [1]
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


@pytest.fixture()
def fixed_rng():
    return FixedRng


@pytest.fixture(scope="session")
def engine():
    # SQLite in-memory, one connection shared by the whole test session
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    return eng


@pytest.fixture(scope="session")
def TestingSessionLocal(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="session", autouse=True)
def _patch_db(engine, TestingSessionLocal):
    # swap the app's engine/SessionLocal for the test ones
    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    db_init.engine = engine

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_tables(engine):
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db(TestingSessionLocal):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(TestingSessionLocal):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rng] = lambda: FixedRng(10)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
