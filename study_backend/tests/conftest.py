from datetime import date

import pytest
from fastapi.testclient import TestClient

from studyhub.api.dependencies import get_repositories, get_store, get_today
from studyhub.api.main import create_app
from studyhub.config import Settings
from studyhub.storage.cache import CoalescingCache
from studyhub.storage.json_store import StudyJsonStore
from studyhub.storage.repository import build_repositories

# A Wednesday; its week runs 2026-10-19 .. 2026-10-25
TODAY = date(2026, 10, 21)


@pytest.fixture
def store(tmp_path):
    return StudyJsonStore(path=str(tmp_path / "study.json"))


@pytest.fixture
def repos(store):
    return build_repositories(store, CoalescingCache(max_size=100, default_ttl=60))


@pytest.fixture
def client(tmp_path, store, repos):
    app = create_app(Settings(data_file=store.path, log_level="WARNING"))
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_repositories] = lambda: repos
    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def alice():
    return {"X-User-Id": "alice"}


@pytest.fixture
def bob():
    return {"X-User-Id": "bob"}
