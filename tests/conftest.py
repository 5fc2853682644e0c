"""Common test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

from soda_import.api.base import AsyncTicket, Failed, Pending, Ready
from soda_import.api.resolver import LongRunningResolver
from soda_import.config import Settings

DOMAIN = "https://data.example.gov"
BASE = f"{DOMAIN}/api"


class FakeTransport:
    """Replays scripted outcomes; bodies are decoded with the caller's decoder."""

    def __init__(self, settings: Settings, script: List[Any] | None = None) -> None:
        self.settings = settings
        self.script = list(script or [])
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def queue(self, *items: Any) -> None:
        self.script.extend(items)

    def _next(self, method: str, url: str, decode, **details: Any):
        self.calls.append((method, url, details))
        if not self.script:
            raise AssertionError(f"unexpected {method} {url}")
        item = self.script.pop(0)
        if isinstance(item, (Pending, Failed)):
            return item
        if isinstance(item, Ready):
            return Ready(decode(item.value))
        return Ready(decode(item))

    def get(self, url, decode, params=None):
        return self._next("GET", url, decode, params=params)

    def post_json(self, url, payload, decode):
        return self._next("POST", url, decode, json=payload)

    def put_json(self, url, payload, decode):
        return self._next("PUT", url, decode, json=payload)

    def delete(self, url, decode):
        return self._next("DELETE", url, decode)

    def post_form(self, url, fields, decode):
        return self._next("POST", url, decode, data=fields)

    def post_file(self, url, path, decode, content_type="text/csv"):
        return self._next("POST", url, decode, file=Path(path).name, content_type=content_type)


def pending(location: str = f"{BASE}/imports2?ticket=abc", delay: float = 2.0) -> Pending:
    return Pending(AsyncTicket(poll_location=location, retry_delay=delay))


@pytest.fixture
def settings() -> Settings:
    return Settings(domain=DOMAIN, username="user", password="secret", app_token="token", retry_delay=4.0)


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def transport(settings: Settings) -> FakeTransport:
    return FakeTransport(settings)


@pytest.fixture
def resolver(transport: FakeTransport, sleeps: List[float]) -> LongRunningResolver:
    return LongRunningResolver(transport, default_attempts=5, sleep=sleeps.append)


@pytest.fixture
def crimes_csv(tmp_path: Path) -> Path:
    path = tmp_path / "crimes.csv"
    path.write_text(
        "ID,Case Number,Primary Type\n"
        "1,HX100,THEFT\n"
        "2,HX101,BATTERY\n"
        "3,HX102,ROBBERY\n",
        encoding="utf-8",
    )
    return path
