import pytest
from fastapi.testclient import TestClient

from officehours.api.dependencies.database import get_db
from officehours.main import app


@pytest.fixture
def client(db):
    """TestClient whose requests share the test's database session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_db, None)
