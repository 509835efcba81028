"""Shared fixtures for content gallery tests."""

import os
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

from content_gallery.config.settings import Settings


GALLERY_ENV_VARS = (
    "SERVER_URL",
    "API_VERSION",
    "CHANNEL_TOKEN",
    "PREVIEW",
    "AUTH",
    "CLIENT_ID",
    "CLIENT_SECRET",
    "CLIENT_SCOPE_URL",
    "IDCS_URL",
    "PUBLIC_URL",
    "CONFIG_FILE",
    "CONTENT_GALLERY_CONFIG_OVERRIDES",
)

NESTED_ENV_PREFIXES = ("SERVER__", "PROXY__", "UPSTREAM__", "GALLERY__")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """Keep the developer's environment and .env files out of the tests."""
    for name in GALLERY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.upper().startswith(NESTED_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings pointing at a fake content server."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "server_url": "https://content.example.com",
            "channel_token": "chan-123",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def recording_transport() -> Callable[..., RecordingTransport]:
    return RecordingTransport


class StreamedBody(httpx.AsyncByteStream):
    """Response body that is only produced when iterated, like a real socket."""

    def __init__(self, data: bytes, chunk_size: int = 4096) -> None:
        self._data = data
        self._chunk_size = chunk_size

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for start in range(0, len(self._data), self._chunk_size):
            yield self._data[start : start + self._chunk_size]


@pytest.fixture
def streamed_response() -> Callable[..., httpx.Response]:
    """Build an upstream response whose body is streamed, not preloaded."""

    def _make(
        status_code: int = 200,
        data: bytes = b"",
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return httpx.Response(status_code, stream=StreamedBody(data), headers=headers)

    return _make
