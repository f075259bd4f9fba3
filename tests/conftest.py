"""
Pytest fixtures for the test suite.

The app is pointed at a throwaway SQLite file before anything from
``mutabaah`` is imported (the engine is built at import time). Demo seeding is
off and bcrypt runs with the minimum cost so API tests stay fast.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other.
"""
from __future__ import annotations

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="mutabaah-tests-")
os.environ["APP_ENVIRONMENT"] = "test"
os.environ["APP_DB_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["APP_SEED_DEMO_DATA"] = "false"
os.environ["APP_BCRYPT_ROUNDS"] = "4"
os.environ["APP_JWT_SECRET"] = "test-signing-secret-0123456789-abcdefghij"
os.environ["APP_LOG_LEVEL"] = "DEBUG"
os.environ["APP_UPSTREAM_BACKOFF_SECONDS"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from mutabaah.db.base import Base  # noqa: E402
from mutabaah.db.session import SessionLocal  # noqa: E402
from mutabaah.db.session import engine as app_engine  # noqa: E402
from mutabaah.models import activity as _activity  # noqa: E402,F401
from mutabaah.models import mentoring as _mentoring  # noqa: E402,F401
from mutabaah.models import messaging as _messaging  # noqa: E402,F401
from mutabaah.models.security import Employee, Hospital  # noqa: E402
from mutabaah.security.passwords import hash_password  # noqa: E402
from mutabaah.services.employees import claims_for  # noqa: E402


TEST_DB_URL = "sqlite:///:memory:"
DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    The transaction is rolled back so the next test gets a clean state.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app_db():
    """Empty application database; yields a service-level session for arranging data."""
    Base.metadata.drop_all(bind=app_engine)
    Base.metadata.create_all(bind=app_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(app_db):
    from mutabaah.main import create_app

    with TestClient(create_app()) as c:
        yield c


def _add_hospital(db: Session, hospital_id: str, name: str | None = None) -> Hospital:
    hospital = Hospital(id=hospital_id, brand=hospital_id, name=name or f"Hospital {hospital_id}")
    db.add(hospital)
    db.commit()
    return hospital


def _add_employee(
    db: Session,
    employee_id: str,
    *,
    role: str = "user",
    hospital_id: str | None = None,
    managed: list[str] | None = None,
    is_active: bool = True,
    password: str = DEFAULT_PASSWORD,
    email: str | None = None,
    name: str | None = None,
    **columns,
) -> Employee:
    employee = Employee(
        id=employee_id,
        email=email or f"{employee_id}@example.com",
        name=name or f"Employee {employee_id}",
        password_hash=hash_password(password),
        role=role,
        hospital_id=hospital_id,
        managed_hospital_ids=managed or [],
        is_active=is_active,
        **columns,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def _login_as(client: TestClient, employee: Employee) -> str:
    """Mint a session token for ``employee`` and install it as the client's cookie."""
    token = client.app.state.token_codec.issue(claims_for(employee))
    client.cookies.set("session", token)
    return token


@pytest.fixture
def org(app_db):
    """
    Two hospitals and one account per role:

    - root: super-admin
    - admin_h1: admin managing H1
    - admin_empty: admin managing nothing
    - user_h1, user_h2: plain users in H1 / H2
    """
    _add_hospital(app_db, "H1")
    _add_hospital(app_db, "H2")
    return {
        "root": _add_employee(app_db, "root", role="super-admin", hospital_id="H1"),
        "admin_h1": _add_employee(app_db, "admin1", role="admin", hospital_id="H1", managed=["H1"]),
        "admin_empty": _add_employee(app_db, "admin0", role="admin", hospital_id="H2", managed=[]),
        "user_h1": _add_employee(app_db, "user1", hospital_id="H1"),
        "user_h2": _add_employee(app_db, "user2", hospital_id="H2"),
    }


@pytest.fixture
def make_hospital(app_db):
    def _make(hospital_id: str, name: str | None = None) -> Hospital:
        return _add_hospital(app_db, hospital_id, name)

    return _make


@pytest.fixture
def make_employee(app_db):
    def _make(employee_id: str, **kwargs) -> Employee:
        return _add_employee(app_db, employee_id, **kwargs)

    return _make


@pytest.fixture
def login(client):
    def _login(employee: Employee) -> str:
        return _login_as(client, employee)

    return _login


@pytest.fixture
def default_password() -> str:
    """Password given to every employee created by ``org`` / ``make_employee``."""
    return DEFAULT_PASSWORD
