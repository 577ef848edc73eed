from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from squadlink.api.deps import get_current_user_id, get_store
from squadlink.main import app


@pytest.fixture
def login_as():
    def _login_as(user_id: str) -> None:
        app.dependency_overrides[get_current_user_id] = lambda: user_id

    return _login_as


@pytest.fixture
def client(store, login_as) -> Generator[TestClient, None, None]:
    async def override_get_store():
        yield store

    app.dependency_overrides[get_store] = override_get_store
    login_as("alice")
    yield TestClient(app)
    app.dependency_overrides.clear()
