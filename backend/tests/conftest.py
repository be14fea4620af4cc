import os

import pytest
from fastapi.testclient import TestClient

# main builds its app at import time and exits without a valid key
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-key-000000")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key-000000")

from config import Settings  # noqa: E402
from main import create_app  # noqa: E402

TEST_API_KEY = "sk-ant-test-key-123456"


@pytest.fixture(autouse=True)
def mock_settings(monkeypatch):
    """Set mock environment variables for all tests."""
    monkeypatch.setenv("LLM_PROVIDER", "anthropic")
    monkeypatch.setenv("ANTHROPIC_API_KEY", TEST_API_KEY)
    for name in (
        "LLM_MODEL",
        "LLM_BASE_URL",
        "LLM_MAX_TOKENS",
        "UPSTREAM_TIMEOUT",
        "PORT",
        "ALLOWED_ORIGIN",
        "STATIC_DIR",
        "TRUST_PROXY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def static_dir(tmp_path):
    (tmp_path / "index.html").write_text(
        "<html><body>Moodverse</body></html>", encoding="utf-8"
    )
    (tmp_path / "app.js").write_text("console.log('hi');", encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(static_dir):
    return Settings(
        api_key=TEST_API_KEY,
        base_url="https://upstream.test",
        static_dir=static_dir,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
