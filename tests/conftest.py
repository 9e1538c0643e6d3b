import os

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-service-key")
os.environ.setdefault("BROADCAST_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ENABLE_DEBUG_ROUTES", "true")

import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.dependencies import get_push_service, get_supabase_client
from tests.fakes import FakeSupabaseClient, RecordingPush


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def db() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def push() -> RecordingPush:
    return RecordingPush()


@pytest.fixture
def client(db: FakeSupabaseClient, push: RecordingPush):
    from app.main import app

    app.dependency_overrides[get_supabase_client] = lambda: db
    app.dependency_overrides[get_push_service] = lambda: push
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
