import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

SERVICE_NAME = "Moodverse API"
VERSION = "1.0.0"

PROVIDER_DEFAULTS = {
    "anthropic": {
        "key_env": "ANTHROPIC_API_KEY",
        "model": "claude-sonnet-4-20250514",
        "base_url": "https://api.anthropic.com",
    },
    "openai": {
        "key_env": "OPENAI_API_KEY",
        "model": "gpt-4o-mini",
        "base_url": "https://api.openai.com",
    },
}

API_KEY_PREFIX = "sk-"
DEFAULT_STATIC_DIR = Path(__file__).resolve().parent / "public"


class ConfigError(Exception):
    """Raised when the process cannot start with the current environment."""


class Settings(BaseModel):
    api_key: str
    provider: str = "anthropic"
    model: str = PROVIDER_DEFAULTS["anthropic"]["model"]
    base_url: str = PROVIDER_DEFAULTS["anthropic"]["base_url"]
    max_tokens: int = 1000
    upstream_timeout: float = 30.0
    port: int = 3000
    allowed_origin: str = "*"
    static_dir: Path = DEFAULT_STATIC_DIR
    trust_proxy: bool = True

    @property
    def masked_key(self) -> str:
        return f"{self.api_key[:12]}..."


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(provider: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    The API key for the selected provider is mandatory and must carry the
    provider key prefix; anything else falls back to its default.
    """
    provider = (provider or os.getenv("LLM_PROVIDER") or "anthropic").lower()
    defaults = PROVIDER_DEFAULTS.get(provider)
    if defaults is None:
        raise ConfigError(
            f"Unknown LLM_PROVIDER {provider!r} (expected one of: {', '.join(PROVIDER_DEFAULTS)})"
        )

    key_env = defaults["key_env"]
    api_key = os.getenv(key_env)
    if not api_key or not api_key.startswith(API_KEY_PREFIX):
        raise ConfigError(f"Missing or invalid {key_env} in environment")

    return Settings(
        api_key=api_key,
        provider=provider,
        model=os.getenv("LLM_MODEL") or defaults["model"],
        base_url=os.getenv("LLM_BASE_URL") or defaults["base_url"],
        max_tokens=_env_number("LLM_MAX_TOKENS", 1000, int),
        upstream_timeout=_env_number("UPSTREAM_TIMEOUT", 30.0, float),
        port=_env_number("PORT", 3000, int),
        allowed_origin=os.getenv("ALLOWED_ORIGIN") or "*",
        static_dir=Path(os.getenv("STATIC_DIR") or DEFAULT_STATIC_DIR),
        trust_proxy=_env_flag("TRUST_PROXY", True),
    )
