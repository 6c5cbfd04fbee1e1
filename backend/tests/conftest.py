"""Shared test fixtures for all test modules."""

import contextlib
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import database as db_module
from app.core.auth import create_access_token
from app.core.database import Base, get_db
from app.main import app

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

ADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-00000000a000")
CUSTOMER_USER_ID = uuid.UUID("00000000-0000-0000-0000-00000000c000")


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct service and repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def admin_headers():
    """Authorization header for an admin user."""
    return {"Authorization": f"Bearer {create_access_token(ADMIN_USER_ID, role='admin')}"}


@pytest.fixture
def customer_headers():
    """Authorization header for a regular storefront customer."""
    return {"Authorization": f"Bearer {create_access_token(CUSTOMER_USER_ID)}"}


@pytest.fixture
def customer_id():
    """User ID carried by customer_headers."""
    return CUSTOMER_USER_ID


@pytest.fixture
def admin_id():
    """User ID carried by admin_headers."""
    return ADMIN_USER_ID
