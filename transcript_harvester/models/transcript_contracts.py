from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from transcript_harvester.services.types import (
    DEFAULT_MAX_RESULTS,
    BatchResult,
    DurationBucket,
    SearchErrorKind,
    SearchFilters,
    SearchOrder,
    SearchResult,
    TranscriptRecord,
    VideoSummary,
)


class ApiKeyUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_key: str = Field(min_length=1)


class CredentialStatusResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    configured: bool


class VideoSearchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1)
    order: SearchOrder = "relevance"
    duration: DurationBucket = "any"
    scope_to_channel: bool = False
    page_token: str | None = None

    def to_filters(self) -> SearchFilters:
        return SearchFilters(
            max_results=self.max_results,
            order=self.order,
            duration_bucket=self.duration,
            scope_to_channel=self.scope_to_channel,
            page_token=self.page_token,
        )


class VideoSummaryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_id: str
    title: str
    description: str
    thumbnail_url: str
    channel_title: str
    published_at: str
    duration: str
    view_count: str
    watch_url: str

    @classmethod
    def from_summary(cls, summary: VideoSummary) -> VideoSummaryModel:
        return cls(
            video_id=summary.video_id,
            title=summary.title,
            description=summary.description,
            thumbnail_url=summary.thumbnail_url,
            channel_title=summary.channel_title,
            published_at=summary.published_at,
            duration=summary.duration,
            view_count=summary.view_count,
            watch_url=summary.watch_url,
        )


class VideoSearchResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ok: bool
    videos: list[VideoSummaryModel]
    next_page_token: str | None = None
    error_kind: SearchErrorKind | None = None
    message: str | None = None

    @classmethod
    def from_result(cls, result: SearchResult) -> VideoSearchResponse:
        return cls(
            ok=result.ok,
            videos=[VideoSummaryModel.from_summary(video) for video in result.videos],
            next_page_token=result.next_page_token,
            error_kind=result.error_kind,
            message=result.message,
        )


class TranscriptBatchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_ids: list[str]
    query: str = ""


class TranscriptRecordModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_id: str
    title: str
    filename: str
    path: str
    success: bool
    watch_url: str
    transcript: str | None = None
    source: str | None = None
    is_synthetic: bool = False
    error: str | None = None

    @classmethod
    def from_record(cls, record: TranscriptRecord) -> TranscriptRecordModel:
        return cls(
            video_id=record.video_id,
            title=record.title,
            filename=record.filename,
            path=record.path,
            success=record.success,
            watch_url=record.watch_url,
            transcript=record.transcript,
            source=record.source,
            is_synthetic=record.is_synthetic,
            error=record.error,
        )


class TranscriptBatchResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    folder_name: str
    total: int
    success_count: int
    failure_count: int
    records: list[TranscriptRecordModel]

    @classmethod
    def from_result(cls, result: BatchResult) -> TranscriptBatchResponse:
        return cls(
            folder_name=result.folder_name,
            total=result.total,
            success_count=result.success_count,
            failure_count=result.failure_count,
            records=[TranscriptRecordModel.from_record(record) for record in result.records],
        )
