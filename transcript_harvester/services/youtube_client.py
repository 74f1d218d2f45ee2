from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any, cast
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from transcript_harvester.services.errors import UpstreamError
from transcript_harvester.services.payloads import as_dict, as_list

LOGGER = logging.getLogger("transcript_harvester.youtube")

USER_AGENT = "transcript-harvester/0.1"
VIDEOS_LIST_MAX_IDS = 50

YouTubeClientFactory = Callable[[str], Any]


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: str
    headers: Any = None


def build_youtube_client(api_key: str) -> Any:
    try:
        discovery_module = import_module("googleapiclient.discovery")
    except ImportError as exc:  # pragma: no cover - dependency controlled at runtime
        raise UpstreamError(
            "YouTube Data API access requires the google-api-python-client dependency"
        ) from exc

    build_fn: Any = discovery_module.build
    return build_fn("youtube", "v3", developerKey=api_key, cache_discovery=False)


def list_videos_by_id(
    client: Any,
    video_ids: Sequence[str],
    *,
    part: str,
) -> dict[str, dict[str, Any]]:
    """Look up `videos.list` items for the given ids, keyed by id.

    Ids are sent comma-joined, 50 per call (the API maximum). Ids the API
    does not return are simply absent from the mapping.
    """
    items_by_id: dict[str, dict[str, Any]] = {}
    unique_ids = list(dict.fromkeys(video_ids))
    for index in range(0, len(unique_ids), VIDEOS_LIST_MAX_IDS):
        chunk = unique_ids[index : index + VIDEOS_LIST_MAX_IDS]
        response = cast(
            dict[str, Any],
            client.videos()
            .list(part=part, id=",".join(chunk), maxResults=len(chunk))
            .execute(),
        )
        for item in as_list(response.get("items")):
            item_dict = as_dict(item)
            raw_video_id = item_dict.get("id")
            if isinstance(raw_video_id, str) and raw_video_id:
                items_by_id[raw_video_id] = item_dict
    return items_by_id


def fetch_url(
    url: str,
    *,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float,
) -> HttpResponse:
    query = urlencode(params or {})
    request_url = f"{url}?{query}" if query else url
    request_headers = {"user-agent": USER_AGENT, **(headers or {})}
    request = Request(request_url, headers=request_headers, method="GET")

    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            return HttpResponse(
                status_code=int(response.getcode() or 0),
                body=response.read().decode("utf-8", errors="replace"),
                headers=response.headers,
            )
    except HTTPError as exc:
        return HttpResponse(
            status_code=int(exc.code),
            body=exc.read().decode("utf-8", errors="replace"),
            headers=exc.headers,
        )
    except (URLError, TimeoutError, OSError) as exc:
        raise UpstreamError(f"Request to {url} failed: {exc}") from exc


def extract_request_id(headers: Any) -> str | None:
    if headers is None or not hasattr(headers, "get"):
        return None

    for key in ("x-request-id", "X-Request-Id", "request-id", "Request-Id"):
        raw_value = headers.get(key)
        if isinstance(raw_value, str) and raw_value.strip():
            return raw_value.strip()
    return None
