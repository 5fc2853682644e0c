from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from soda_import.errors import ConfigError

DEFAULT_CONFIG_PATH = "config/soda.yaml"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 200
DEFAULT_RETRY_DELAY = 4.0
DEFAULT_GEOCODING_INTERVAL = 10.0
USER_AGENT = "soda-import/0.1 (+python-requests)"


@dataclass(frozen=True)
class Settings:
    domain: str
    username: str | None = None
    password: str | None = None
    app_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    geocoding_interval: float = DEFAULT_GEOCODING_INTERVAL
    log_level: str = "INFO"

    @property
    def root_url(self) -> str:
        domain = self.domain.rstrip("/")
        if not domain.startswith(("http://", "https://")):
            domain = f"https://{domain}"
        return domain

    @property
    def base_url(self) -> str:
        return f"{self.root_url}/api"


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        payload = yaml.safe_load(fh) or {}
    if not isinstance(payload, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return payload


def load_settings(path: str | Path | None = None) -> Settings:
    """Read settings from YAML, then let environment variables override them.

    ``path`` defaults to ``SODA_CONFIG`` or ``config/soda.yaml``; a missing
    default file is fine, a missing explicit one is not.
    """
    explicit = path is not None or bool(os.getenv("SODA_CONFIG"))
    config_path = Path(path or os.getenv("SODA_CONFIG") or DEFAULT_CONFIG_PATH)

    payload: Dict[str, Any] = {}
    if config_path.exists():
        payload = _read_yaml(config_path)
    elif explicit:
        raise ConfigError(f"config file not found: {config_path}")

    domain = os.getenv("SODA_DOMAIN") or payload.get("domain")
    if not domain:
        raise ConfigError("no service domain configured (set `domain` or SODA_DOMAIN)")

    password_env = payload.get("password_env", "SODA_PASSWORD")
    app_token_env = payload.get("app_token_env", "SODA_APP_TOKEN")

    try:
        settings = Settings(
            domain=str(domain),
            username=os.getenv("SODA_USERNAME") or payload.get("username"),
            password=os.getenv(password_env),
            app_token=os.getenv(app_token_env),
            timeout=float(payload.get("timeout", DEFAULT_TIMEOUT)),
            max_retries=int(payload.get("max_retries", DEFAULT_MAX_RETRIES)),
            retry_delay=float(payload.get("retry_delay", DEFAULT_RETRY_DELAY)),
            geocoding_interval=float(payload.get("geocoding_interval", DEFAULT_GEOCODING_INTERVAL)),
            log_level=str(os.getenv("LOG_LEVEL") or payload.get("log_level", "INFO")).upper(),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value in {config_path}: {exc}") from exc

    if settings.max_retries < 1:
        raise ConfigError("max_retries must be at least 1")
    if settings.retry_delay < 0 or settings.geocoding_interval < 0:
        raise ConfigError("retry_delay and geocoding_interval cannot be negative")
    return settings
