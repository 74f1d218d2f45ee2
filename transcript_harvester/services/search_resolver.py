from __future__ import annotations

import html
import logging
from typing import Any, cast

from transcript_harvester.services.credentials import ApiKeyConfig
from transcript_harvester.services.errors import UpstreamError
from transcript_harvester.services.payloads import (
    as_dict,
    as_list,
    coerce_nonempty_string,
    summarize_exception_message,
)
from transcript_harvester.services.types import (
    SearchFilters,
    SearchResult,
    VideoSummary,
)
from transcript_harvester.services.youtube_client import (
    YouTubeClientFactory,
    build_youtube_client,
    list_videos_by_id,
)

LOGGER = logging.getLogger("transcript_harvester.search")

SEARCH_MAX_RESULTS_LIMIT = 50
CAPTION_FILTER = "closedCaption"
RELEVANCE_LANGUAGE = "en"
DEFAULT_DURATION = "PT0S"
DEFAULT_VIEW_COUNT = "0"
_THUMBNAIL_PREFERENCE: tuple[str, ...] = ("high", "medium", "default")

MISSING_CREDENTIAL_MESSAGE = "Set a YouTube Data API key before searching."
EMPTY_QUERY_MESSAGE = "Enter a search query."
UPSTREAM_FAILURE_MESSAGE = "Video search failed. Please try again later."


class SearchResolver:
    def __init__(
        self,
        credentials: ApiKeyConfig,
        *,
        client_factory: YouTubeClientFactory = build_youtube_client,
    ) -> None:
        self._credentials = credentials
        self._client_factory = client_factory

    def search(self, query: str, filters: SearchFilters | None = None) -> SearchResult:
        resolved_filters = filters or SearchFilters()
        api_key = self._credentials.get_api_key()
        if api_key is None:
            LOGGER.info("youtube search skipped reason=missing_credential")
            return SearchResult(
                error_kind="missing_credential",
                message=MISSING_CREDENTIAL_MESSAGE,
            )

        normalized_query = query.strip()
        if not normalized_query:
            LOGGER.info("youtube search skipped reason=empty_query")
            return SearchResult(error_kind="empty_input", message=EMPTY_QUERY_MESSAGE)

        try:
            videos, next_page_token = self._search_and_merge(
                api_key, normalized_query, resolved_filters
            )
        except UpstreamError as exc:
            LOGGER.warning(
                "youtube search failed query=%s error=%s",
                normalized_query,
                summarize_exception_message(exc),
            )
            return SearchResult(error_kind="upstream_error", message=UPSTREAM_FAILURE_MESSAGE)

        LOGGER.info(
            "youtube search completed query=%s results=%s has_next_page=%s",
            normalized_query,
            len(videos),
            next_page_token is not None,
        )
        return SearchResult(videos=videos, next_page_token=next_page_token)

    def _search_and_merge(
        self,
        api_key: str,
        query: str,
        filters: SearchFilters,
    ) -> tuple[list[VideoSummary], str | None]:
        try:
            client = self._client_factory(api_key)
            search_response = cast(
                dict[str, Any],
                client.search().list(**build_search_params(query, filters)).execute(),
            )
            hits = _extract_search_hits(search_response)
            hit_ids = [video_id for video_id, _ in hits]
            details_by_id = (
                list_videos_by_id(client, hit_ids, part="contentDetails,statistics")
                if hit_ids
                else {}
            )
        except UpstreamError:
            raise
        except Exception as exc:
            raise UpstreamError(f"YouTube search request failed: {exc}") from exc

        videos = merge_search_hits(hits, details_by_id)
        next_page_token = coerce_nonempty_string(search_response.get("nextPageToken"))
        return videos, next_page_token


def build_search_params(query: str, filters: SearchFilters) -> dict[str, Any]:
    params: dict[str, Any] = {
        "part": "snippet",
        "type": "video",
        "maxResults": max(1, min(SEARCH_MAX_RESULTS_LIMIT, filters.max_results)),
        "videoCaption": CAPTION_FILTER,
        "relevanceLanguage": RELEVANCE_LANGUAGE,
    }
    if filters.scope_to_channel:
        params["channelId"] = query
    else:
        params["q"] = query
    if filters.order != "relevance":
        params["order"] = filters.order
    if filters.duration_bucket != "any":
        params["videoDuration"] = filters.duration_bucket
    if filters.page_token:
        params["pageToken"] = filters.page_token
    return params


def merge_search_hits(
    hits: list[tuple[str, dict[str, Any]]],
    details_by_id: dict[str, dict[str, Any]],
) -> list[VideoSummary]:
    """Left join of search hits onto detail records; detail-only ids are ignored."""
    videos: list[VideoSummary] = []
    for video_id, snippet in hits:
        details = details_by_id.get(video_id, {})
        content_details = as_dict(details.get("contentDetails"))
        statistics = as_dict(details.get("statistics"))
        videos.append(
            VideoSummary(
                video_id=video_id,
                title=_string_field(snippet, "title"),
                description=_string_field(snippet, "description"),
                thumbnail_url=_extract_thumbnail_url(snippet),
                channel_title=_string_field(snippet, "channelTitle"),
                published_at=_string_field(snippet, "publishedAt"),
                duration=coerce_nonempty_string(content_details.get("duration"))
                or DEFAULT_DURATION,
                view_count=_view_count(statistics.get("viewCount")),
            )
        )
    return videos


def _extract_search_hits(response: dict[str, Any]) -> list[tuple[str, dict[str, Any]]]:
    hits: list[tuple[str, dict[str, Any]]] = []
    seen: set[str] = set()
    for item in as_list(response.get("items")):
        item_dict = as_dict(item)
        raw_id = item_dict.get("id")
        # search.list nests the id ({"kind": ..., "videoId": ...}); tolerate a bare string too.
        video_id = (
            coerce_nonempty_string(raw_id)
            if isinstance(raw_id, str)
            else coerce_nonempty_string(as_dict(raw_id).get("videoId"))
        )
        if video_id is None or video_id in seen:
            continue
        seen.add(video_id)
        hits.append((video_id, as_dict(item_dict.get("snippet"))))
    return hits


def _extract_thumbnail_url(snippet: dict[str, Any]) -> str:
    thumbnails = as_dict(snippet.get("thumbnails"))
    for quality in _THUMBNAIL_PREFERENCE:
        url = coerce_nonempty_string(as_dict(thumbnails.get(quality)).get("url"))
        if url is not None:
            return url
    return ""


def _string_field(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if isinstance(value, str):
        # search.list snippets arrive HTML-escaped ("Q&amp;A").
        return html.unescape(value)
    return ""


def _view_count(raw_value: object) -> str:
    if isinstance(raw_value, bool):
        return DEFAULT_VIEW_COUNT
    if isinstance(raw_value, int):
        return str(raw_value)
    if isinstance(raw_value, str) and raw_value.strip().isdigit():
        return raw_value.strip()
    return DEFAULT_VIEW_COUNT
