import os

os.environ.setdefault("CREATE_TABLES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from consignment.db import Base, get_db
from consignment.main import app

from .factories import create_session


@pytest.fixture()
def db():
    session = create_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def api():
    """A TestClient bound to a fresh in-memory database, plus a session factory for seeding."""
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(engine)

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.pop(get_db, None)
