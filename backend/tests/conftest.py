"""
Shared test fixtures for PlantOps tests

Provides database setup, client creation and MRP service fixtures
"""
import os

# Point the application at SQLite before app.* is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.api.v1.deps import get_mrp_service
from app.services.mrp import MRPService
from app.services.mrp_data import SqlMRPDataAccess

from tests.factories import make_settings, reset_sequences


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine):
    """Create all tables for testing using SQLAlchemy metadata"""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine):
    """Drop all tables after testing"""
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _reset_factory_sequences():
    reset_sequences()
    yield


@pytest.fixture
def db_session():
    """Create a fresh database session for each test"""
    create_tables(engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables(engine)


@pytest.fixture
def mrp_settings():
    """Settings with MRP defaults, independent of any local .env"""
    return make_settings()


@pytest.fixture
def sql_mrp_service(db_session, mrp_settings):
    """MRPService over the SQLAlchemy data access layer"""
    return MRPService(SqlMRPDataAccess(db_session), settings=mrp_settings)


@pytest.fixture
def client(db_session, mrp_settings):
    """Create a test client with database override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_get_mrp_service():
        return MRPService(SqlMRPDataAccess(db_session), settings=mrp_settings)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mrp_service] = override_get_mrp_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
