from library_api.database import Base, get_db
from library_api.endpoints import app

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient


@pytest.fixture(scope="session")
def engine(tmp_path_factory):
    """
    Engine for a throwaway SQLite file shared by the whole test run.

    A file rather than an in-memory database, so the sessions opened by
    the app and by the tests see each other's committed writes.
    """
    db_path = tmp_path_factory.mktemp("db") / "test_library.db"
    engine = create_engine(
        f"sqlite:///{db_path}", connect_args={"check_same_thread": False}
    )
    yield engine
    engine.dispose()


@pytest.fixture(scope="session")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database(engine):
    """
    Create all tables before each test and drop them afterwards.

    This ensures complete test isolation - each test starts with a fresh database.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Session for tests that talk to the services or the tables directly."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """
    TestClient whose requests use the test database.

    get_db is overridden for the duration of the test. The client is not
    entered as a context manager, so the app's startup hook never touches
    the configured database.
    """

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
