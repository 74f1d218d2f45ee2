from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from transcript_harvester.config import load_settings
from transcript_harvester.dependencies import build_transcript_chain
from transcript_harvester.repositories.database import Database
from transcript_harvester.repositories.state_repository import StateRepository
from transcript_harvester.services.batch_download import BatchDownloadOrchestrator
from transcript_harvester.services.credentials import ApiKeyConfig
from transcript_harvester.services.errors import BatchPreconditionError
from transcript_harvester.services.search_resolver import SearchResolver
from transcript_harvester.services.types import (
    DEFAULT_MAX_RESULTS,
    DURATION_BUCKETS,
    SEARCH_ORDERS,
    BatchResult,
    SearchFilters,
    VideoSummary,
)
from transcript_harvester.telemetry import build_telemetry_client

SYNTHETIC_FILE_HEADER = "[synthetic placeholder: no real transcript was found for this video]"


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Search YouTube and save transcripts of the matching videos as text files.",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default="",
        help="Search query, or a channel id with --channel. Also names the output folder.",
    )
    parser.add_argument(
        "--video-id",
        action="append",
        default=[],
        dest="video_ids",
        help="Download this video directly instead of searching. Repeatable.",
    )
    parser.add_argument(
        "--max-results",
        type=int,
        default=DEFAULT_MAX_RESULTS,
        help=f"Number of search results to request (default: {DEFAULT_MAX_RESULTS}, max 50).",
    )
    parser.add_argument("--order", choices=sorted(SEARCH_ORDERS), default="relevance")
    parser.add_argument("--duration", choices=sorted(DURATION_BUCKETS), default="any")
    parser.add_argument(
        "--channel",
        action="store_true",
        help="Treat the query as a channel id and list that channel's videos.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Only download the first N search results.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory under which the batch folder is created (default: current directory).",
    )
    parser.add_argument(
        "--search-only",
        action="store_true",
        help="Print the search results without downloading transcripts.",
    )
    return parser.parse_args(argv)


def _print_videos(videos: Sequence[VideoSummary]) -> None:
    print("#\tvideo_id\tduration\tviews\tchannel\ttitle")
    for index, video in enumerate(videos, start=1):
        print(
            "\t".join(
                [
                    str(index),
                    video.video_id,
                    video.duration,
                    video.view_count,
                    video.channel_title or "-",
                    video.title,
                ]
            )
        )


def write_batch(result: BatchResult, output_dir: Path) -> list[Path]:
    """Write every successful record to `<output_dir>/<folder_name>/<filename>`."""
    written: list[Path] = []
    successful = [record for record in result.records if record.success]
    if not successful:
        return written

    folder = output_dir / result.folder_name
    folder.mkdir(parents=True, exist_ok=True)
    for record in successful:
        body = record.transcript or ""
        if record.is_synthetic:
            body = f"{SYNTHETIC_FILE_HEADER}\n{body}"
        target = folder / record.filename
        target.write_text(f"{body}\n", encoding="utf-8")
        written.append(target)
    return written


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = load_settings()
    database = Database(settings.db_path)
    database.initialize()
    credentials = ApiKeyConfig(StateRepository(database), seed_value=settings.youtube_api_key)

    video_ids: list[str] = list(args.video_ids)
    if not video_ids:
        result = SearchResolver(credentials).search(
            args.query,
            SearchFilters(
                max_results=max(1, args.max_results),
                order=args.order,
                duration_bucket=args.duration,
                scope_to_channel=args.channel,
            ),
        )
        if not result.ok:
            print(f"Search failed: {result.message}")
            return 1
        if not result.videos:
            print("No videos found.")
            return 0

        videos = result.videos if args.limit is None else result.videos[: max(0, args.limit)]
        _print_videos(videos)
        if args.search_only:
            return 0
        video_ids = [video.video_id for video in videos]

    orchestrator = BatchDownloadOrchestrator(
        credentials,
        build_transcript_chain(settings, credentials),
        telemetry=build_telemetry_client(
            enabled=settings.telemetry_enabled,
            sink=settings.telemetry_sink,
        ),
        concurrency=settings.batch_concurrency,
    )
    try:
        batch = asyncio.run(orchestrator.download_all(video_ids, args.query))
    except BatchPreconditionError as exc:
        print(f"Download failed: {exc}")
        return 1

    written = write_batch(batch, args.output_dir)
    print(
        f"Downloaded {batch.success_count} of {batch.total} transcripts "
        f"into {args.output_dir / batch.folder_name}"
    )
    for path in written:
        print(f"  {path}")
    for record in batch.records:
        if not record.success:
            print(f"  failed: {record.video_id} ({record.error or 'unknown error'})")
        elif record.is_synthetic:
            print(f"  synthetic: {record.video_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
