from __future__ import annotations

from functools import lru_cache

from transcript_harvester.config import AppSettings, load_settings
from transcript_harvester.repositories.database import Database
from transcript_harvester.repositories.state_repository import StateRepository
from transcript_harvester.services.batch_download import BatchDownloadOrchestrator
from transcript_harvester.services.credentials import ApiKeyConfig
from transcript_harvester.services.search_resolver import SearchResolver
from transcript_harvester.services.transcript_strategies import (
    CaptionListingStrategy,
    SyntheticPlaceholderStrategy,
    TimedTextStrategy,
    TranscriptServiceStrategy,
    TranscriptStrategy,
    TranscriptStrategyChain,
)
from transcript_harvester.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_database() -> Database:
    database = Database(get_settings().db_path)
    database.initialize()
    return database


@lru_cache(maxsize=1)
def get_credentials() -> ApiKeyConfig:
    return ApiKeyConfig(
        StateRepository(get_database()),
        seed_value=get_settings().youtube_api_key,
    )


@lru_cache(maxsize=1)
def get_search_resolver() -> SearchResolver:
    return SearchResolver(get_credentials())


@lru_cache(maxsize=1)
def get_transcript_chain() -> TranscriptStrategyChain:
    return build_transcript_chain(get_settings(), get_credentials())


@lru_cache(maxsize=1)
def get_batch_orchestrator() -> BatchDownloadOrchestrator:
    return BatchDownloadOrchestrator(
        get_credentials(),
        get_transcript_chain(),
        telemetry=get_telemetry(),
        concurrency=get_settings().batch_concurrency,
    )


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


def build_transcript_chain(
    settings: AppSettings,
    credentials: ApiKeyConfig,
) -> TranscriptStrategyChain:
    strategies: list[TranscriptStrategy] = [
        CaptionListingStrategy(credentials),
        TranscriptServiceStrategy(
            api_key=settings.transcript_service_api_key,
            base_url=settings.transcript_service_base_url,
            mode=settings.transcript_service_mode,
            language=settings.transcript_language,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        TimedTextStrategy(
            language=settings.transcript_language,
            timeout_seconds=settings.http_timeout_seconds,
        ),
    ]
    if settings.synthetic_fallback_enabled:
        strategies.append(SyntheticPlaceholderStrategy())
    return TranscriptStrategyChain(strategies)


def reset_cached_dependencies() -> None:
    get_batch_orchestrator.cache_clear()
    get_transcript_chain.cache_clear()
    get_search_resolver.cache_clear()
    get_credentials.cache_clear()
    get_database.cache_clear()
    get_telemetry.cache_clear()
    get_settings.cache_clear()
