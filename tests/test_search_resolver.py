from __future__ import annotations

from collections.abc import Callable

import pytest

from conftest import FakeYouTubeClient
from transcript_harvester.services.credentials import ApiKeyConfig
from transcript_harvester.services.search_resolver import (
    SearchResolver,
    build_search_params,
    merge_search_hits,
)
from transcript_harvester.services.types import SearchFilters


def test_search_merges_details_and_reports_next_page(
    fake_youtube: FakeYouTubeClient,
    make_credentials: Callable[..., ApiKeyConfig],
) -> None:
    fake_youtube.add_video("vid_001", "Apple Keynote Q&amp;A", duration="PT1H2M", view_count="42")
    fake_youtube.add_video("vid_002", "Keynote recap")
    fake_youtube.next_page_token = "page-2"

    result = SearchResolver(make_credentials()).search("apple keynote")

    assert result.ok
    assert [video.video_id for video in result.videos] == ["vid_001", "vid_002"]
    first = result.videos[0]
    assert first.title == "Apple Keynote Q&A"
    assert first.duration == "PT1H2M"
    assert first.view_count == "42"
    assert first.thumbnail_url == "https://i.ytimg.com/vi/vid_001/hqdefault.jpg"
    assert first.watch_url == "https://www.youtube.com/watch?v=vid_001"
    assert result.next_page_token == "page-2"

    assert fake_youtube.build_calls[0]["developerKey"] == "test-youtube-key"
    videos_calls = fake_youtube.calls_to("videos")
    assert len(videos_calls) == 1
    assert videos_calls[0]["id"] == "vid_001,vid_002"
    assert videos_calls[0]["part"] == "contentDetails,statistics"


def test_search_left_join_defaults_missing_details(
    fake_youtube: FakeYouTubeClient,
    make_credentials: Callable[..., ApiKeyConfig],
) -> None:
    fake_youtube.add_video("vid_001", "Has details")
    fake_youtube.add_video("vid_002", "No details", with_details=False)
    fake_youtube.add_video("vid_003", "Partial details", duration=None, view_count=None)
    fake_youtube.add_video("vid_extra", "Detail only", in_search=False)

    result = SearchResolver(make_credentials()).search("anything")

    by_id = {video.video_id: video for video in result.videos}
    assert set(by_id) == {"vid_001", "vid_002", "vid_003"}
    assert by_id["vid_002"].duration == "PT0S"
    assert by_id["vid_002"].view_count == "0"
    assert by_id["vid_003"].duration == "PT0S"
    assert by_id["vid_003"].view_count == "0"


def test_search_without_credential_makes_no_request(
    fake_youtube: FakeYouTubeClient,
    make_credentials: Callable[..., ApiKeyConfig],
) -> None:
    result = SearchResolver(make_credentials(None)).search("apple keynote")

    assert result.videos == []
    assert result.error_kind == "missing_credential"
    assert result.message
    assert fake_youtube.calls == []
    assert fake_youtube.build_calls == []


def test_search_with_blank_query_makes_no_request(
    fake_youtube: FakeYouTubeClient,
    make_credentials: Callable[..., ApiKeyConfig],
) -> None:
    result = SearchResolver(make_credentials()).search("   ")

    assert result.videos == []
    assert result.error_kind == "empty_input"
    assert fake_youtube.calls == []


@pytest.mark.parametrize("failing_resource", ["search", "videos"])
def test_search_upstream_failure_becomes_soft_error(
    fake_youtube: FakeYouTubeClient,
    make_credentials: Callable[..., ApiKeyConfig],
    failing_resource: str,
) -> None:
    fake_youtube.add_video("vid_001", "Some video")
    fake_youtube.failing_resources.add(failing_resource)

    result = SearchResolver(make_credentials()).search("apple keynote")

    assert result.videos == []
    assert result.error_kind == "upstream_error"
    assert not result.ok
    assert result.message


def test_search_with_no_hits_skips_detail_request(
    fake_youtube: FakeYouTubeClient,
    make_credentials: Callable[..., ApiKeyConfig],
) -> None:
    result = SearchResolver(make_credentials()).search("nothing matches")

    assert result.ok
    assert result.videos == []
    assert fake_youtube.calls_to("videos") == []


def test_build_search_params_omits_order_for_relevance() -> None:
    params = build_search_params("q", SearchFilters(order="relevance"))

    assert "order" not in params
    assert "videoDuration" not in params
    assert "pageToken" not in params
    assert params["q"] == "q"
    assert params["type"] == "video"
    assert params["videoCaption"] == "closedCaption"
    assert params["relevanceLanguage"] == "en"
    assert params["maxResults"] == 25


@pytest.mark.parametrize("order", ["date", "rating", "viewCount"])
def test_build_search_params_sets_order_when_not_relevance(order: str) -> None:
    params = build_search_params("q", SearchFilters(order=order))  # type: ignore[arg-type]
    assert params["order"] == order


def test_build_search_params_channel_scope_duration_and_paging() -> None:
    params = build_search_params(
        "UC123",
        SearchFilters(
            max_results=80,
            duration_bucket="long",
            scope_to_channel=True,
            page_token="next-token",
        ),
    )

    assert params["channelId"] == "UC123"
    assert "q" not in params
    assert params["videoDuration"] == "long"
    assert params["pageToken"] == "next-token"
    assert params["maxResults"] == 50


def test_search_filters_reject_invalid_values() -> None:
    with pytest.raises(ValueError):
        SearchFilters(max_results=0)
    with pytest.raises(ValueError):
        SearchFilters(order="popularity")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        SearchFilters(duration_bucket="epic")  # type: ignore[arg-type]


def test_merge_search_hits_keeps_hit_order() -> None:
    hits = [("b", {"title": "B"}), ("a", {"title": "A"})]
    details = {"a": {"contentDetails": {"duration": "PT1M"}, "statistics": {"viewCount": 7}}}

    videos = merge_search_hits(hits, details)

    assert [video.video_id for video in videos] == ["b", "a"]
    assert videos[0].duration == "PT0S"
    assert videos[1].duration == "PT1M"
    assert videos[1].view_count == "7"
