from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from freelancehub.db.base import Base
from freelancehub.db.dependencies import get_db_session
import freelancehub.models.entities  # noqa: F401
from freelancehub.main import create_app
from freelancehub.models.entities import (
    BrandingSettings,
    Client,
    Payment,
    Project,
    Task,
    User,
    Worker,
)

TEST_TABLES = [
    User.__table__,
    Client.__table__,
    Project.__table__,
    Worker.__table__,
    Task.__table__,
    Payment.__table__,
    BrandingSettings.__table__,
]


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(
    *,
    subject: str = "subject-owner",
    email: str = "owner@test.local",
    display_name: str = "Owner",
) -> dict[str, str]:
    return {
        "X-AUTH-SUBJECT": subject,
        "X-AUTH-EMAIL": email,
        "X-AUTH-DISPLAY-NAME": display_name,
    }


@pytest.fixture()
def headers() -> dict[str, str]:
    return auth_headers()
