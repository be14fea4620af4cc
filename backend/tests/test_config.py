import os
import subprocess
import sys
from pathlib import Path

import pytest

from config import ConfigError, load_settings

BACKEND_DIR = Path(__file__).resolve().parent.parent


def test_defaults(monkeypatch):
    settings = load_settings()
    assert settings.provider == "anthropic"
    assert settings.model == "claude-sonnet-4-20250514"
    assert settings.base_url == "https://api.anthropic.com"
    assert settings.max_tokens == 1000
    assert settings.upstream_timeout == 30.0
    assert settings.port == 3000
    assert settings.allowed_origin == "*"
    assert settings.trust_proxy is True
    assert settings.masked_key == "sk-ant-test-..."


def test_missing_key_is_fatal(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY")
    with pytest.raises(ConfigError):
        load_settings()


def test_key_without_prefix_is_fatal(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "not-a-key")
    with pytest.raises(ConfigError):
        load_settings()


def test_unknown_provider(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "carrier-pigeon")
    with pytest.raises(ConfigError):
        load_settings()


def test_openai_provider(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai-key")
    settings = load_settings()
    assert settings.api_key == "sk-openai-key"
    assert settings.model == "gpt-4o-mini"
    assert settings.base_url == "https://api.openai.com"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("LLM_MODEL", "claude-other")
    monkeypatch.setenv("LLM_BASE_URL", "http://proxy.local")
    monkeypatch.setenv("LLM_MAX_TOKENS", "400")
    monkeypatch.setenv("UPSTREAM_TIMEOUT", "7.5")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("ALLOWED_ORIGIN", "https://moodverse.app")
    monkeypatch.setenv("STATIC_DIR", str(tmp_path))
    monkeypatch.setenv("TRUST_PROXY", "false")

    settings = load_settings()
    assert settings.model == "claude-other"
    assert settings.base_url == "http://proxy.local"
    assert settings.max_tokens == 400
    assert settings.upstream_timeout == 7.5
    assert settings.port == 8080
    assert settings.allowed_origin == "https://moodverse.app"
    assert settings.static_dir == Path(tmp_path)
    assert settings.trust_proxy is False


def test_non_numeric_port(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ConfigError):
        load_settings()


def _import_main(**env_overrides):
    env = dict(os.environ)
    env.update(env_overrides)
    return subprocess.run(
        [sys.executable, "-c", "import main"],
        cwd=BACKEND_DIR,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )


def test_import_exits_without_key():
    # an empty value also keeps a local .env from supplying one
    result = _import_main(LLM_PROVIDER="anthropic", ANTHROPIC_API_KEY="")
    assert result.returncode == 1
    assert "Missing or invalid ANTHROPIC_API_KEY" in result.stderr


def test_import_exits_with_malformed_key_without_echoing_it():
    bad_key = "bad-key-do-not-log-4242"
    result = _import_main(LLM_PROVIDER="anthropic", ANTHROPIC_API_KEY=bad_key)
    assert result.returncode == 1
    assert "Missing or invalid ANTHROPIC_API_KEY" in result.stderr
    assert bad_key not in result.stderr
    assert bad_key not in result.stdout
