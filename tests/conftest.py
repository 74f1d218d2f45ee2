from __future__ import annotations

import types
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from transcript_harvester.dependencies import reset_cached_dependencies
from transcript_harvester.main import create_app
from transcript_harvester.services.credentials import ApiKeyConfig

_HARVESTER_ENV_VARS: tuple[str, ...] = (
    "HARVESTER_YOUTUBE_API_KEY",
    "HARVESTER_TRANSCRIPT_SERVICE_API_KEY",
    "HARVESTER_SYNTHETIC_FALLBACK_ENABLED",
    "HARVESTER_BATCH_CONCURRENCY",
    "HARVESTER_TELEMETRY_SINK",
)


class MemoryStore:
    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})

    def get_value(self, key: str) -> str | None:
        return self.values.get(key)

    def set_value(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete_value(self, key: str) -> None:
        self.values.pop(key, None)


class _FakeRequest:
    def __init__(self, client: FakeYouTubeClient, resource: str, kwargs: dict[str, Any]) -> None:
        self._client = client
        self._resource = resource
        self._kwargs = kwargs

    def execute(self) -> dict[str, Any]:
        return self._client.respond(self._resource, self._kwargs)


class _FakeResource:
    def __init__(self, client: FakeYouTubeClient, resource: str) -> None:
        self._client = client
        self._resource = resource

    def list(self, **kwargs: Any) -> _FakeRequest:
        self._client.calls.append((self._resource, kwargs))
        return _FakeRequest(self._client, self._resource, kwargs)


class FakeYouTubeClient:
    """Duck-typed stand-in for the discovery-built YouTube Data API client."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.search_items: list[dict[str, Any]] = []
        self.video_items: list[dict[str, Any]] = []
        self.caption_items: dict[str, list[dict[str, Any]]] = {}
        self.next_page_token: str | None = None
        self.failing_resources: set[str] = set()
        self.build_calls: list[dict[str, Any]] = []

    def search(self) -> _FakeResource:
        return _FakeResource(self, "search")

    def videos(self) -> _FakeResource:
        return _FakeResource(self, "videos")

    def captions(self) -> _FakeResource:
        return _FakeResource(self, "captions")

    def calls_to(self, resource: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == resource]

    def add_video(
        self,
        video_id: str,
        title: str,
        *,
        description: str = "",
        channel_title: str = "Test Channel",
        duration: str | None = "PT4M13S",
        view_count: str | None = "1200",
        in_search: bool = True,
        with_details: bool = True,
    ) -> None:
        snippet = {
            "title": title,
            "description": description,
            "channelTitle": channel_title,
            "publishedAt": "2026-09-01T12:00:00Z",
            "thumbnails": {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            },
        }
        if in_search:
            self.search_items.append(
                {"id": {"kind": "youtube#video", "videoId": video_id}, "snippet": snippet}
            )
        if with_details:
            item: dict[str, Any] = {"id": video_id, "snippet": snippet}
            if duration is not None:
                item["contentDetails"] = {"duration": duration}
            if view_count is not None:
                item["statistics"] = {"viewCount": view_count}
            self.video_items.append(item)

    def respond(self, resource: str, kwargs: dict[str, Any]) -> dict[str, Any]:
        if resource in self.failing_resources:
            raise RuntimeError(f"{resource} quotaExceeded")
        if resource == "search":
            response: dict[str, Any] = {"items": list(self.search_items)}
            if self.next_page_token is not None:
                response["nextPageToken"] = self.next_page_token
            return response
        if resource == "videos":
            requested = set(str(kwargs.get("id", "")).split(","))
            return {"items": [item for item in self.video_items if item["id"] in requested]}
        if resource == "captions":
            return {"items": list(self.caption_items.get(str(kwargs.get("videoId")), []))}
        raise AssertionError(f"Unexpected resource: {resource}")


@pytest.fixture
def fake_youtube(monkeypatch: pytest.MonkeyPatch) -> FakeYouTubeClient:
    fake_client = FakeYouTubeClient()

    def _build(*args: object, **kwargs: object) -> FakeYouTubeClient:
        fake_client.build_calls.append({"args": args, **kwargs})
        return fake_client

    def fake_import_module(name: str) -> object:
        if name == "googleapiclient.discovery":
            return types.SimpleNamespace(build=_build)
        raise AssertionError(f"Unexpected module import: {name}")

    monkeypatch.setattr(
        "transcript_harvester.services.youtube_client.import_module",
        fake_import_module,
    )
    return fake_client


@pytest.fixture
def make_credentials() -> Callable[..., ApiKeyConfig]:
    def _make(api_key: str | None = "test-youtube-key") -> ApiKeyConfig:
        return ApiKeyConfig(MemoryStore(), seed_value=api_key)

    return _make


@pytest.fixture
def harvester_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    data_dir = tmp_path / "runtime-data"
    data_dir.mkdir(parents=True, exist_ok=True)
    for name in _HARVESTER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HARVESTER_DATA_DIR", str(data_dir))
    reset_cached_dependencies()
    yield data_dir
    reset_cached_dependencies()


@pytest.fixture
def client(harvester_env: Path) -> Iterator[TestClient]:
    _ = harvester_env
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
