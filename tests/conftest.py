"""Shared test fixtures for the distribution cache."""

from __future__ import annotations

import json
import threading
import time
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from ota.client import DistributionClient

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

ENDPOINT = "https://distributions.example.com/abc123"
MESSAGES_FILE = "/app/lang/messages.yml"
HELP_FILE = "/app/lang/help.yml"
TIMESTAMP = 1700000000


def make_manifest(timestamp: int = TIMESTAMP) -> dict[str, Any]:
    return {
        "timestamp": timestamp,
        "files": [MESSAGES_FILE, HELP_FILE],
        "content": {
            "en": ["/content/en/messages.yml", "/content/en/help.yml"],
            "tr": ["/content/tr/messages.yml", "/content/tr/help.yml"],
            "uk": ["/content/uk/messages.yml", "/content/uk/help.yml"],
            # Only translated the first file
            "zh-CN": ["/content/zh-CN/messages.yml"],
        },
        "language_mapping": {
            "tr": {"locale": "tr-TR", "android_code": "tr-rTR"},
            "uk": {"locale": "uk-UA"},
            "zh-CN": {"locale": "zh-CN"},
        },
    }


class FakeDistribution:
    """In-memory distribution server served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.manifest: dict[str, Any] | str = make_manifest()
        self.manifest_status = 200
        self.failing: set[str] = set()
        self.broken: set[str] = set()
        self.delay = 0.0
        self.requests: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def body_for(self, path: str) -> str:
        return f"# {path}\ngreeting: hello\n"

    @property
    def file_requests(self) -> list[str]:
        return [r for r in self.requests if not r.endswith("/manifest.json")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/abc123")
        with self._lock:
            self.requests.append(path)
        if path == "/manifest.json":
            body = self.manifest if isinstance(self.manifest, str) else json.dumps(self.manifest)
            return httpx.Response(self.manifest_status, text=body)
        if path in self.broken:
            raise httpx.ConnectError("connection refused", request=request)
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if path in self.failing:
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, text=self.body_for(path))
        finally:
            with self._lock:
                self.in_flight -= 1

    def bump_version(self, timestamp: int) -> None:
        assert isinstance(self.manifest, dict)
        self.manifest["timestamp"] = timestamp


@pytest.fixture
def distribution() -> FakeDistribution:
    return FakeDistribution()


@pytest.fixture
def http_client(distribution: FakeDistribution) -> Iterator[httpx.Client]:
    client = httpx.Client(transport=httpx.MockTransport(distribution.handler))
    yield client
    client.close()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def make_client(
    http_client: httpx.Client, cache_dir: Path
) -> Callable[..., DistributionClient]:
    def _make(**kwargs: Any) -> DistributionClient:
        kwargs.setdefault("http_client", http_client)
        return DistributionClient(ENDPOINT, cache_dir, **kwargs)

    return _make
