"""
Environment-driven settings for the BizPulse pipeline and its collaborators.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

PROJECT_DIR = Path(__file__).resolve().parent

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_NARRATIVE_TIMEOUT = 8.0
DEFAULT_ALERT_TIMEOUT = 5.0
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _load_env_from_project(project_dir: str | Path = PROJECT_DIR) -> None:
    for d in [Path(project_dir), Path.cwd()]:
        env_file = d / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


def _get_api_key() -> str | None:
    key = os.getenv("OPENAI_API_KEY")
    if key and key.strip() and not key.strip().startswith("sk-your"):
        return key.strip()
    return None


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_MODEL
    narrative_timeout: float = DEFAULT_NARRATIVE_TIMEOUT
    slack_webhook: str | None = None
    alert_timeout: float = DEFAULT_ALERT_TIMEOUT
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment (after loading a project .env)."""
    _load_env_from_project()
    webhook = (os.getenv("SLACK_WEBHOOK") or "").strip()
    return Settings(
        openai_api_key=_get_api_key(),
        openai_model=(os.getenv("OPENAI_MODEL") or "").strip() or DEFAULT_MODEL,
        narrative_timeout=_get_float_env("NARRATIVE_TIMEOUT_SECONDS", DEFAULT_NARRATIVE_TIMEOUT),
        slack_webhook=webhook or None,
        alert_timeout=_get_float_env("ALERT_TIMEOUT_SECONDS", DEFAULT_ALERT_TIMEOUT),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging once for a CLI or dashboard process."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )
