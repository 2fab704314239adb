"""
Pytest configuration and fixtures for testing the project tracker backend.
"""
import sys
import os
from typing import Callable, Dict, Generator

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tracker.main import app
from tracker.db.session import Base, get_db
import tracker.models  # noqa: F401  registers every table
from tracker.models.department_history import DepartmentHistory
from tracker.models.project import Project
from tracker.models.user import User, UserRole
from tracker.services.project_service import ProjectService
from tracker.utils.hash import hash_password


SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "TestPassword123!"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Create a fresh database for each test function.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client bound to the test database.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.reset()

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_user(db: Session, email: str, role: UserRole, full_name: str) -> User:
    user = User(
        full_name=full_name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def manager_user(db: Session) -> User:
    """Project manager: may create projects, move them and configure categories."""
    return _create_user(db, "pm@test.com", UserRole.PROJECT_MANAGER, "Test Manager")


@pytest.fixture
def qa_user(db: Session) -> User:
    return _create_user(db, "qa@test.com", UserRole.QA_TESTER, "Test QA")


@pytest.fixture
def developer_user(db: Session) -> User:
    return _create_user(db, "dev@test.com", UserRole.DEVELOPER, "Test Developer")


def _login(client: TestClient, user: User) -> Dict[str, str]:
    response = client.post(
        "/auth/token",
        data={"username": user.email, "password": TEST_PASSWORD},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def manager_headers(client: TestClient, manager_user: User) -> Dict[str, str]:
    return _login(client, manager_user)


@pytest.fixture
def qa_headers(client: TestClient, qa_user: User) -> Dict[str, str]:
    return _login(client, qa_user)


@pytest.fixture
def developer_headers(client: TestClient, developer_user: User) -> Dict[str, str]:
    return _login(client, developer_user)


@pytest.fixture
def make_project(db: Session, manager_user: User) -> Callable[..., Project]:
    """
    Factory for projects placed directly in a department.

    With no history argument the project is created normally (PMO,
    NOT_STARTED). Otherwise history is a list of (to_department, work_status)
    pairs, oldest first, written as the project's visits; the project's
    current department follows the last pair.
    """
    def _make(history=None, category_id=None, name="Website Rebuild") -> Project:
        project = ProjectService.create_project(
            db, name=name, actor_id=manager_user.id, category_id=category_id
        )
        if not history:
            return project

        db.query(DepartmentHistory).filter(DepartmentHistory.project_id == project.id).delete()
        previous = None
        for to_department, work_status in history:
            db.add(
                DepartmentHistory(
                    project_id=project.id,
                    from_department=previous,
                    to_department=to_department,
                    work_status=work_status,
                    moved_by=manager_user.id,
                )
            )
            db.flush()
            previous = to_department
        project.current_department = previous
        db.commit()
        db.refresh(project)
        return project

    return _make


@pytest.fixture
def latest_entry(db: Session) -> Callable[[int], DepartmentHistory]:
    """Latest visit of a project, read fresh from the database."""
    def _latest(project_id: int) -> DepartmentHistory:
        db.expire_all()
        return (
            db.query(DepartmentHistory)
            .filter(DepartmentHistory.project_id == project_id)
            .order_by(DepartmentHistory.created_at.desc(), DepartmentHistory.id.desc())
            .first()
        )
    return _latest


@pytest.fixture
def workflow_state(db: Session) -> Callable[[int], tuple]:
    """Comparable view of a project's workflow state, for unchanged-state checks."""
    def _state(project_id: int) -> tuple:
        db.expire_all()
        project = db.get(Project, project_id)
        entries = (
            db.query(DepartmentHistory)
            .filter(DepartmentHistory.project_id == project_id)
            .order_by(DepartmentHistory.id)
            .all()
        )
        return (
            project.current_department,
            project.workflow_version,
            project.project_code,
            [(e.id, e.to_department, e.work_status, e.work_end_date) for e in entries],
        )
    return _state
