from __future__ import annotations

import logging
import random
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, cast

from transcript_harvester.services.credentials import ApiKeyConfig
from transcript_harvester.services.errors import TranscriptStrategyError, UpstreamError
from transcript_harvester.services.payloads import (
    as_dict,
    as_list,
    coerce_nonempty_string,
    coerce_seconds,
    parse_json_payload,
    summarize_exception_message,
)
from transcript_harvester.services.text_normalizer import is_placeholder, normalize
from transcript_harvester.services.types import (
    TranscriptItem,
    TranscriptResolution,
    VideoContext,
    watch_url,
)
from transcript_harvester.services.youtube_client import (
    HttpResponse,
    YouTubeClientFactory,
    build_youtube_client,
    extract_request_id,
    fetch_url,
)

LOGGER = logging.getLogger("transcript_harvester.transcripts")

PREFERRED_CAPTION_LANGUAGES: tuple[str, ...] = ("en", "en-US")
TIMED_TEXT_URL = "https://www.youtube.com/api/timedtext"
_TIMED_TEXT_NODE_TAGS: frozenset[str] = frozenset({"text", "p"})

UrlFetcher = Callable[..., HttpResponse]


class TranscriptStrategy(Protocol):
    name: str
    synthetic: bool

    def attempt(self, video_id: str, context: VideoContext) -> str | None:
        ...


@dataclass(frozen=True)
class CaptionTrack:
    track_id: str
    language: str
    name: str = ""
    kind: str = ""


class TranscriptStrategyChain:
    """Ordered transcript sources; the first non-empty answer wins."""

    def __init__(self, strategies: Sequence[TranscriptStrategy]) -> None:
        self._strategies = tuple(strategies)

    @property
    def strategy_names(self) -> tuple[str, ...]:
        return tuple(strategy.name for strategy in self._strategies)

    def resolve(
        self,
        video_id: str,
        *,
        context: VideoContext | None = None,
    ) -> TranscriptResolution | None:
        resolved_context = context or VideoContext()
        for strategy in self._strategies:
            try:
                text = strategy.attempt(video_id, resolved_context)
            except Exception:
                LOGGER.warning(
                    "transcript strategy_error video_id=%s strategy=%s",
                    video_id,
                    strategy.name,
                    exc_info=True,
                )
                continue

            if text is None or not text.strip():
                LOGGER.debug(
                    "transcript strategy_miss video_id=%s strategy=%s",
                    video_id,
                    strategy.name,
                )
                continue

            LOGGER.info(
                "transcript resolved video_id=%s strategy=%s synthetic=%s chars=%s",
                video_id,
                strategy.name,
                strategy.synthetic,
                len(text),
            )
            return TranscriptResolution(
                text=text,
                source=strategy.name,
                is_synthetic=strategy.synthetic,
            )

        LOGGER.info(
            "transcript exhausted video_id=%s strategies=%s",
            video_id,
            ",".join(self.strategy_names),
        )
        return None


class CaptionListingStrategy:
    """
    Confirms caption tracks exist through the Data API `captions.list`.

    Downloading a track body requires OAuth scopes an API-key client does not
    hold, so this source never yields text. It keeps the preferred-track choice
    in one place for when an authorized client is available.
    """

    name: ClassVar[str] = "caption_listing"
    synthetic: ClassVar[bool] = False

    def __init__(
        self,
        credentials: ApiKeyConfig,
        *,
        client_factory: YouTubeClientFactory = build_youtube_client,
    ) -> None:
        self._credentials = credentials
        self._client_factory = client_factory

    def attempt(self, video_id: str, context: VideoContext) -> str | None:
        _ = context
        api_key = self._credentials.get_api_key()
        if api_key is None:
            return None

        try:
            client = self._client_factory(api_key)
            response = cast(
                dict[str, Any],
                client.captions().list(part="snippet", videoId=video_id).execute(),
            )
        except Exception as exc:
            LOGGER.info(
                "transcript caption_listing failed video_id=%s error=%s",
                video_id,
                summarize_exception_message(exc),
            )
            return None

        tracks = extract_caption_tracks(response)
        preferred = select_preferred_track(tracks)
        if preferred is None:
            LOGGER.debug("transcript caption_listing no_tracks video_id=%s", video_id)
            return None

        LOGGER.info(
            "transcript caption_listing tracks_found video_id=%s tracks=%s preferred_language=%s",
            video_id,
            len(tracks),
            preferred.language,
        )
        return None


def extract_caption_tracks(response: dict[str, Any]) -> list[CaptionTrack]:
    tracks: list[CaptionTrack] = []
    for item in as_list(response.get("items")):
        item_dict = as_dict(item)
        snippet = as_dict(item_dict.get("snippet"))
        track_id = coerce_nonempty_string(item_dict.get("id"))
        if track_id is None:
            continue
        tracks.append(
            CaptionTrack(
                track_id=track_id,
                language=str(snippet.get("language") or ""),
                name=str(snippet.get("name") or ""),
                kind=str(snippet.get("trackKind") or ""),
            )
        )
    return tracks


def select_preferred_track(tracks: Sequence[CaptionTrack]) -> CaptionTrack | None:
    if not tracks:
        return None
    for track in tracks:
        if track.language in PREFERRED_CAPTION_LANGUAGES:
            return track
    return tracks[0]


class TranscriptServiceStrategy:
    """Supadata-compatible third-party transcript service, keyed by watch URL."""

    name: ClassVar[str] = "transcript_service"
    synthetic: ClassVar[bool] = False

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        mode: str = "native",
        language: str = "en",
        timeout_seconds: float = 15.0,
        fetch: UrlFetcher = fetch_url,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._mode = mode
        self._language = language
        self._timeout_seconds = timeout_seconds
        self._fetch = fetch

    @property
    def configured(self) -> bool:
        return self._api_key is not None

    def attempt(self, video_id: str, context: VideoContext) -> str | None:
        _ = context
        if self._api_key is None:
            return None

        try:
            items = self._fetch_items(video_id, self._api_key)
        except (UpstreamError, TranscriptStrategyError) as exc:
            LOGGER.info(
                "transcript transcript_service failed video_id=%s error=%s",
                video_id,
                summarize_exception_message(exc),
            )
            return None

        if not items:
            return None
        text = normalize(items)
        if is_placeholder(text):
            return None
        return text

    def _fetch_items(self, video_id: str, api_key: str) -> list[TranscriptItem]:
        response = self._fetch(
            f"{self._base_url}/transcript",
            params={
                "url": watch_url(video_id),
                "text": "false",
                "mode": self._mode,
                "lang": self._language,
            },
            headers={"x-api-key": api_key, "accept": "application/json"},
            timeout_seconds=self._timeout_seconds,
        )
        request_id = extract_request_id(response.headers)
        if response.status_code == 202:
            # Asynchronous generation job; results are not polled within a batch.
            LOGGER.info(
                "transcript transcript_service job_accepted video_id=%s request_id=%s",
                video_id,
                request_id,
            )
            return []
        if response.status_code >= 400:
            raise TranscriptStrategyError(
                f"Transcript service returned HTTP {response.status_code} "
                f"(request_id={request_id})"
            )
        return extract_transcript_items(parse_json_payload(response.body))


def extract_transcript_items(payload: Any) -> list[TranscriptItem]:
    """Timed items from a bare JSON array or from `content`/`segments` wrappers."""
    if isinstance(payload, list):
        return _items_from_segments(payload)

    root = as_dict(payload)
    for container in (root, as_dict(root.get("data")), as_dict(root.get("result"))):
        for key in ("content", "segments", "transcript"):
            items = _items_from_segments(container.get(key))
            if items:
                return items
    return []


def _items_from_segments(raw_segments: object) -> list[TranscriptItem]:
    items: list[TranscriptItem] = []
    for raw_segment in as_list(raw_segments):
        segment = as_dict(raw_segment)
        text = coerce_nonempty_string(segment.get("text")) or coerce_nonempty_string(
            segment.get("content")
        )
        if text is None:
            continue

        # `start`/`duration` are seconds; the `offset` shape reports milliseconds.
        if "start" in segment:
            start = coerce_seconds(segment.get("start"), milliseconds=False)
            duration = coerce_seconds(segment.get("duration"), milliseconds=False)
        else:
            start = coerce_seconds(segment.get("offset"), milliseconds=True)
            duration = coerce_seconds(segment.get("duration"), milliseconds=True)
        items.append(
            TranscriptItem(
                text=text,
                start_ms=_to_milliseconds(start),
                duration_ms=_to_milliseconds(duration),
            )
        )
    return items


class TimedTextStrategy:
    """Unauthenticated timed-text endpoint for one fixed language."""

    name: ClassVar[str] = "timed_text"
    synthetic: ClassVar[bool] = False

    def __init__(
        self,
        *,
        language: str = "en",
        timeout_seconds: float = 15.0,
        fetch: UrlFetcher = fetch_url,
        url: str = TIMED_TEXT_URL,
    ) -> None:
        self._language = language
        self._timeout_seconds = timeout_seconds
        self._fetch = fetch
        self._url = url

    def attempt(self, video_id: str, context: VideoContext) -> str | None:
        _ = context
        try:
            response = self._fetch(
                self._url,
                params={"v": video_id, "lang": self._language},
                timeout_seconds=self._timeout_seconds,
            )
            if response.status_code != 200 or not response.body.strip():
                LOGGER.debug(
                    "transcript timed_text empty video_id=%s status=%s",
                    video_id,
                    response.status_code,
                )
                return None
            items = parse_timed_text(response.body)
        except (UpstreamError, TranscriptStrategyError) as exc:
            LOGGER.info(
                "transcript timed_text failed video_id=%s error=%s",
                video_id,
                summarize_exception_message(exc),
            )
            return None

        text = normalize(items)
        if is_placeholder(text):
            return None
        return text


def parse_timed_text(document: str) -> list[TranscriptItem]:
    """Text-bearing nodes of a timed-text document, in document order.

    Handles the legacy format (`<text start= dur=>`, seconds) and srv3
    (`<p t= d=>` with nested `<s>` spans, milliseconds). Node text is kept
    entity-encoded where the endpoint double-escapes it; `normalize` decodes it.
    """
    try:
        root = ET.fromstring(document.strip().encode("utf-8"))
    except ET.ParseError as exc:
        raise TranscriptStrategyError(f"Timed-text document is not valid XML: {exc}") from exc

    items: list[TranscriptItem] = []
    for element in root.iter():
        if _local_tag(element.tag) not in _TIMED_TEXT_NODE_TAGS:
            continue
        text = "".join(element.itertext())
        if not text.strip():
            continue
        if "start" in element.attrib:
            start = coerce_seconds(element.attrib.get("start"), milliseconds=False)
            duration = coerce_seconds(element.attrib.get("dur"), milliseconds=False)
        else:
            start = coerce_seconds(element.attrib.get("t"), milliseconds=True)
            duration = coerce_seconds(element.attrib.get("d"), milliseconds=True)
        items.append(
            TranscriptItem(
                text=text,
                start_ms=_to_milliseconds(start),
                duration_ms=_to_milliseconds(duration),
            )
        )
    return items


def _local_tag(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _to_milliseconds(seconds: float | None) -> int:
    if seconds is None:
        return 0
    return int(round(seconds * 1000))


_KEYWORD_PATTERN = re.compile(r"[A-Za-z][A-Za-z'-]{3,}")
_SYNTHETIC_STOPWORDS: frozenset[str] = frozenset(
    {
        "about",
        "after",
        "also",
        "best",
        "from",
        "have",
        "here",
        "into",
        "just",
        "more",
        "most",
        "only",
        "over",
        "that",
        "their",
        "them",
        "then",
        "there",
        "these",
        "they",
        "this",
        "video",
        "videos",
        "what",
        "when",
        "where",
        "which",
        "will",
        "with",
        "your",
    }
)
_SYNTHETIC_SENTENCES: tuple[str, ...] = (
    "Today we are talking about {keyword}.",
    "Let's take a closer look at {keyword}.",
    "This is where {keyword} really matters.",
    "A lot of people ask about {keyword}.",
    "Here is what you need to know about {keyword}.",
    "Keep {keyword} in mind for the next part.",
    "That brings us back to {keyword}.",
    "So how does {keyword} fit in?",
)
_SYNTHETIC_FALLBACK_KEYWORDS: tuple[str, ...] = ("this topic",)


class SyntheticPlaceholderStrategy:
    """
    Last-resort filler text built from the video's own title and description.

    The output is fabricated; resolutions from this source are flagged
    `is_synthetic=True` so callers can tell it apart from a real transcript.
    """

    name: ClassVar[str] = "synthetic"
    synthetic: ClassVar[bool] = True

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        segment_count: int = 12,
    ) -> None:
        self._rng = rng or random.Random()
        self._segment_count = max(1, segment_count)

    def attempt(self, video_id: str, context: VideoContext) -> str | None:
        keywords = extract_keywords(f"{context.title or ''} {context.description or ''}")
        if not keywords:
            keywords = list(_SYNTHETIC_FALLBACK_KEYWORDS)

        segments: list[TranscriptItem] = []
        offset_ms = 0
        for _ in range(self._segment_count):
            sentence = self._rng.choice(_SYNTHETIC_SENTENCES).format(
                keyword=self._rng.choice(keywords)
            )
            duration_ms = self._rng.randint(4, 12) * 1000
            segments.append(
                TranscriptItem(text=sentence, start_ms=offset_ms, duration_ms=duration_ms)
            )
            offset_ms += duration_ms

        LOGGER.warning(
            "transcript synthetic_placeholder_generated video_id=%s keywords=%s",
            video_id,
            len(keywords),
        )
        return normalize(segments)


def extract_keywords(text: str, *, limit: int = 8) -> list[str]:
    keywords: list[str] = []
    for match in _KEYWORD_PATTERN.finditer(text):
        word = match.group(0).lower()
        if word in _SYNTHETIC_STOPWORDS or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords
