import os

# Cheap bcrypt rounds for the test run; must be set before app.core.config loads
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from typing import Generator  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.main import app  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.api.deps import get_db  # noqa: E402
from tests.utils.utils import (  # noqa: E402
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    get_user_token_headers,
    register_user,
)

from sqlalchemy.pool import StaticPool  # noqa: E402

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session")
def db() -> Generator:
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    # Create an admin account
    from app import crud, schemas
    from app.models.user import UserRole

    user = crud.user.get_by_email(session, email=ADMIN_EMAIL)
    if not user:
        user_in = schemas.UserCreate(
            name="Admin", email=ADMIN_EMAIL, password=ADMIN_PASSWORD
        )
        user = crud.user.create(session, obj_in=user_in)
        crud.user.update(session, db_obj=user, obj_in={"role": UserRole.ADMIN.value})

    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session")
def client(db: Generator) -> Generator:
    def override_get_db() -> Generator:
        try:
            db = TestingSessionLocal()
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c


@pytest.fixture
def fresh_client(client: TestClient) -> Generator:
    """A client with its own, empty cookie jar."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def superuser_token_headers(client: TestClient) -> dict:
    return get_user_token_headers(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture(scope="session")
def normal_user(client: TestClient) -> dict:
    """Register a normal user; returns the created user plus its password."""
    password = "normalpassword123"
    user = register_user(client, email="normal@example.com", password=password)
    return {**user, "password": password}


@pytest.fixture(scope="session")
def normal_user_token_headers(client: TestClient, normal_user: dict) -> dict:
    return get_user_token_headers(client, normal_user["email"], normal_user["password"])
