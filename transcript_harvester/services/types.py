from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

SearchOrder = Literal["relevance", "date", "rating", "viewCount"]
DurationBucket = Literal["any", "short", "medium", "long"]
SearchErrorKind = Literal["missing_credential", "empty_input", "upstream_error"]

SEARCH_ORDERS: frozenset[str] = frozenset({"relevance", "date", "rating", "viewCount"})
DURATION_BUCKETS: frozenset[str] = frozenset({"any", "short", "medium", "long"})
DEFAULT_MAX_RESULTS = 25
WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


def watch_url(video_id: str) -> str:
    return WATCH_URL_TEMPLATE.format(video_id=video_id)


@dataclass(frozen=True)
class VideoSummary:
    video_id: str
    title: str
    description: str
    thumbnail_url: str
    channel_title: str
    published_at: str
    duration: str = "PT0S"
    view_count: str = "0"

    @property
    def watch_url(self) -> str:
        return watch_url(self.video_id)


@dataclass(frozen=True)
class SearchFilters:
    max_results: int = DEFAULT_MAX_RESULTS
    order: SearchOrder = "relevance"
    duration_bucket: DurationBucket = "any"
    scope_to_channel: bool = False
    page_token: str | None = None

    def __post_init__(self) -> None:
        if self.max_results < 1:
            raise ValueError("max_results must be a positive integer")
        if self.order not in SEARCH_ORDERS:
            raise ValueError(f"Unsupported search order: {self.order}")
        if self.duration_bucket not in DURATION_BUCKETS:
            raise ValueError(f"Unsupported duration bucket: {self.duration_bucket}")


@dataclass(frozen=True)
class SearchResult:
    videos: list[VideoSummary] = field(default_factory=list)
    next_page_token: str | None = None
    error_kind: SearchErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


@dataclass(frozen=True)
class TranscriptItem:
    text: str
    start_ms: int = 0
    duration_ms: int = 0


@dataclass(frozen=True)
class VideoContext:
    """What the batch already knows about a video before transcript lookup."""

    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class TranscriptResolution:
    text: str
    source: str
    is_synthetic: bool = False


@dataclass(frozen=True)
class TranscriptRecord:
    video_id: str
    title: str
    filename: str
    path: str
    success: bool
    transcript: str | None = None
    source: str | None = None
    is_synthetic: bool = False
    error: str | None = None

    @property
    def watch_url(self) -> str:
        return watch_url(self.video_id)


@dataclass(frozen=True)
class BatchResult:
    folder_name: str
    records: list[TranscriptRecord]

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def success_count(self) -> int:
        return sum(1 for record in self.records if record.success)

    @property
    def failure_count(self) -> int:
        return self.total - self.success_count
