from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from time import perf_counter
from typing import Any

from transcript_harvester.services.credentials import ApiKeyConfig
from transcript_harvester.services.errors import EmptyInputError, MissingCredentialError
from transcript_harvester.services.filename_sanitizer import sanitize, transcript_filename
from transcript_harvester.services.payloads import (
    as_dict,
    coerce_nonempty_string,
    summarize_exception_message,
)
from transcript_harvester.services.text_normalizer import is_placeholder, normalize
from transcript_harvester.services.transcript_strategies import TranscriptStrategyChain
from transcript_harvester.services.types import BatchResult, TranscriptRecord, VideoContext
from transcript_harvester.services.youtube_client import (
    YouTubeClientFactory,
    build_youtube_client,
    list_videos_by_id,
)
from transcript_harvester.telemetry import TelemetryClient

LOGGER = logging.getLogger("transcript_harvester.batch")

DEFAULT_FOLDER_STEM = "youtube_transcripts"
FOLDER_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
DEFAULT_BATCH_CONCURRENCY = 4
NO_TRANSCRIPT_ERROR = "No transcript source returned text"


def fallback_title(video_id: str) -> str:
    return f"Video {video_id}"


def build_folder_name(query: str, *, now: datetime) -> str:
    stem = sanitize(query) if query.strip() else DEFAULT_FOLDER_STEM
    return f"{stem}_{now.astimezone(UTC).strftime(FOLDER_TIMESTAMP_FORMAT)}"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class BatchDownloadOrchestrator:
    """
    Fetches transcripts for a set of videos and reports one record per video.

    Work fans out with `asyncio.gather`, bounded by a semaphore. The blocking
    title lookup and strategy chain run in worker threads. A failure for one
    video becomes a `success=False` record and never affects the others.
    """

    def __init__(
        self,
        credentials: ApiKeyConfig,
        chain: TranscriptStrategyChain,
        *,
        client_factory: YouTubeClientFactory = build_youtube_client,
        telemetry: TelemetryClient | None = None,
        concurrency: int = DEFAULT_BATCH_CONCURRENCY,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._credentials = credentials
        self._chain = chain
        self._client_factory = client_factory
        self._telemetry = telemetry or TelemetryClient.disabled()
        self._concurrency = max(1, concurrency)
        self._clock = clock

    async def download_all(self, video_ids: Sequence[str], query: str) -> BatchResult:
        api_key = self._credentials.get_api_key()
        if api_key is None:
            raise MissingCredentialError("A YouTube Data API key must be configured first")

        unique_ids = list(
            dict.fromkeys(video_id.strip() for video_id in video_ids if video_id.strip())
        )
        if not unique_ids:
            raise EmptyInputError("Select at least one video to download")

        folder_name = build_folder_name(query, now=self._clock())
        started_at = perf_counter()
        self._telemetry.emit(
            "batch.start",
            folder_name=folder_name,
            video_count=len(unique_ids),
            concurrency=self._concurrency,
        )
        LOGGER.info(
            "batch start folder=%s videos=%s concurrency=%s",
            folder_name,
            len(unique_ids),
            self._concurrency,
        )

        contexts = await asyncio.to_thread(self._lookup_contexts, api_key, unique_ids)
        semaphore = asyncio.Semaphore(self._concurrency)
        records = await asyncio.gather(
            *(
                self._download_one(
                    video_id,
                    contexts.get(video_id, VideoContext()),
                    folder_name=folder_name,
                    semaphore=semaphore,
                )
                for video_id in unique_ids
            )
        )

        result = BatchResult(folder_name=folder_name, records=list(records))
        self._telemetry.emit(
            "batch.finish",
            folder_name=folder_name,
            total=result.total,
            success_count=result.success_count,
            failure_count=result.failure_count,
            synthetic_count=sum(1 for record in result.records if record.is_synthetic),
            duration_ms=int((perf_counter() - started_at) * 1000),
        )
        LOGGER.info(
            "batch finish folder=%s total=%s succeeded=%s failed=%s",
            folder_name,
            result.total,
            result.success_count,
            result.failure_count,
        )
        return result

    def _lookup_contexts(self, api_key: str, video_ids: list[str]) -> dict[str, VideoContext]:
        try:
            client = self._client_factory(api_key)
            items_by_id = list_videos_by_id(client, video_ids, part="snippet")
        except Exception as exc:
            LOGGER.warning(
                "batch title_lookup_failed videos=%s error=%s",
                len(video_ids),
                summarize_exception_message(exc),
            )
            return {}

        contexts: dict[str, VideoContext] = {}
        for video_id, item in items_by_id.items():
            contexts[video_id] = _context_from_item(item)
        return contexts

    async def _download_one(
        self,
        video_id: str,
        context: VideoContext,
        *,
        folder_name: str,
        semaphore: asyncio.Semaphore,
    ) -> TranscriptRecord:
        title = context.title or fallback_title(video_id)
        filename = transcript_filename(title, video_id)
        path = f"/{folder_name}/{filename}"

        async with semaphore:
            try:
                resolution = await asyncio.to_thread(
                    self._chain.resolve, video_id, context=context
                )
            except Exception as exc:
                LOGGER.warning(
                    "batch record_failed video_id=%s error=%s",
                    video_id,
                    summarize_exception_message(exc),
                    exc_info=True,
                )
                return TranscriptRecord(
                    video_id=video_id,
                    title=title,
                    filename=filename,
                    path=path,
                    success=False,
                    error=summarize_exception_message(exc),
                )

        transcript = normalize(resolution.text) if resolution is not None else None
        if resolution is None or transcript is None or is_placeholder(transcript):
            LOGGER.info("batch record_missing video_id=%s", video_id)
            return TranscriptRecord(
                video_id=video_id,
                title=title,
                filename=filename,
                path=path,
                success=False,
                error=NO_TRANSCRIPT_ERROR,
            )

        LOGGER.info(
            "batch record_saved video_id=%s source=%s synthetic=%s",
            video_id,
            resolution.source,
            resolution.is_synthetic,
        )
        return TranscriptRecord(
            video_id=video_id,
            title=title,
            filename=filename,
            path=path,
            success=True,
            transcript=transcript,
            source=resolution.source,
            is_synthetic=resolution.is_synthetic,
        )


def _context_from_item(item: dict[str, Any]) -> VideoContext:
    snippet = as_dict(item.get("snippet"))
    return VideoContext(
        title=coerce_nonempty_string(snippet.get("title")),
        description=coerce_nonempty_string(snippet.get("description")),
    )
