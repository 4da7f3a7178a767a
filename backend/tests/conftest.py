"""
Test configuration and fixtures.
Environment overrides are applied before any contractflow import so the
module-level settings, engine and rate limiter pick them up.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from contractflow.db import Base, get_db
from contractflow.enums import FieldType
from contractflow.schemas import BlueprintCreate, BlueprintFieldInput, ContractCreate
from contractflow.services import blueprint_service, contract_service

# Test database URL (in-memory SQLite)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# Create test engine
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database session override."""
    from fastapi.testclient import TestClient
    from contractflow.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def nda_blueprint(db_session):
    """NDA blueprint: a text, a date, a signature and a checkbox field."""
    return blueprint_service.create_blueprint(
        db_session,
        BlueprintCreate(
            name="NDA",
            description="Mutual non-disclosure agreement",
            fields=[
                BlueprintFieldInput(type=FieldType.TEXT, label="Party Name"),
                BlueprintFieldInput(type=FieldType.DATE, label="Effective Date"),
                BlueprintFieldInput(type=FieldType.SIGNATURE, label="Signature"),
                BlueprintFieldInput(type=FieldType.CHECKBOX, label="Agree"),
            ],
        ),
    )


@pytest.fixture
def nda_fields(nda_blueprint):
    """Field ids of the NDA blueprint keyed by label."""
    return {field.label: field.id for field in nda_blueprint.fields}


@pytest.fixture
def make_contract(db_session, nda_blueprint):
    """Factory for contracts instantiated from the NDA blueprint."""
    def _make(name="Acme NDA", field_values=None, blueprint=None):
        return contract_service.create_contract(
            db_session,
            ContractCreate(
                blueprint_id=(blueprint or nda_blueprint).id,
                name=name,
                field_values=field_values,
            ),
        )
    return _make
