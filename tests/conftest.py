from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hrdesk import models
from hrdesk.database import Base
from hrdesk.services.storage import LocalObjectStorage

TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def db_session() -> Session:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(
        str(tmp_path / "storage"),
        "http://testserver/api/v1/storage",
        "test-secret",
        signed_url_expire_seconds=60,
    )


@pytest.fixture
def make_employee(db_session: Session):
    def _make(name: str, email: str, role: str = "Staff") -> models.Employee:
        employee = models.Employee(name=name, email=email, role=role)
        db_session.add(employee)
        db_session.commit()
        db_session.refresh(employee)
        return employee

    return _make


@pytest.fixture
def make_task(db_session: Session):
    """Insert a task row directly, without the assignment notification."""

    def _make(title: str, creator: str, assignee=None, created_at: datetime = None, **fields) -> models.Task:
        task = models.Task(
            title=title,
            creator=creator,
            assignee=assignee,
            due_date=fields.pop("due_date", date(2025, 3, 1)),
            **fields,
        )
        if created_at is not None:
            task.created_at = created_at
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task

    return _make


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from hrdesk.database import get_db
    from hrdesk.main import app

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    return TestingSessionLocal
