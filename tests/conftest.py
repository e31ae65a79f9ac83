import os
import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set required environment variables for testing
os.environ["API_V1_STR"] = "/api/v1"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TMDB_API_KEY"] = "test-tmdb-key"
os.environ["FRONTEND_URL"] = "http://testserver"

from app.main import app
from app.database import build_engine, get_db, init_db
from app.models.base import Base
from app.models.account import Account
from app.security import create_access_token

TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """
    Fresh in-memory database per test.

    Services commit and roll back on their own, so tests cannot share one
    outer transaction; a new engine keeps them isolated instead.
    """
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create a new database session for each test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine
    )
    session = TestingSessionLocal()

    def override_get_db():
        try:
            yield session
        finally:
            pass  # Closed after the test

    app.dependency_overrides[get_db] = override_get_db
    yield session

    session.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(db_session):
    """Create a FastAPI TestClient with database session override."""
    with TestClient(app) as c:
        yield c


def make_account(db_session, account_id: str, display_name: str, email: str) -> Account:
    account = Account(id=account_id, display_name=display_name, email=email)
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


def auth_headers_for(account_id: str, email: str = None) -> dict:
    claims = {"sub": account_id}
    if email:
        claims["email"] = email
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
def alice(db_session):
    """Household creator in most tests."""
    return make_account(db_session, "user-alice", "Alice", "alice@example.com")


@pytest.fixture
def bob(db_session):
    return make_account(db_session, "user-bob", "Bob", "bob@example.com")


@pytest.fixture
def carol(db_session):
    return make_account(db_session, "user-carol", "Carol", "carol@example.com")


@pytest.fixture
def auth_headers(alice):
    """Get authorization headers with bearer token for alice."""
    return auth_headers_for(alice.id, alice.email)


@pytest.fixture
def bob_headers(bob):
    return auth_headers_for(bob.id, bob.email)


@pytest.fixture
def carol_headers(carol):
    return auth_headers_for(carol.id, carol.email)


@pytest.fixture
def make_auth_headers():
    """Headers for an arbitrary identity, with or without a profile row."""
    return auth_headers_for
