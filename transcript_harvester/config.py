from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = ".transcript-harvester"
DEFAULT_TRANSCRIPT_SERVICE_BASE_URL = "https://api.supadata.ai/v1"
TRANSCRIPT_SERVICE_MODES: frozenset[str] = frozenset({"native", "auto", "generate"})
_DATA_DIR_RELATIVE_DEFAULTS: tuple[tuple[str, Path], ...] = (
    ("db_path", Path("state.db")),
    ("log_dir", Path("logs")),
)
_PATH_FIELDS: tuple[str, ...] = (
    "data_dir",
    *(field_name for field_name, _ in _DATA_DIR_RELATIVE_DEFAULTS),
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = (
    "synthetic_fallback_enabled",
    "telemetry_enabled",
)


def _default_in_data_dir(relative_path: Path) -> Path:
    return Path(DEFAULT_DATA_DIR) / relative_path


def _data_dir_default_note(relative_path: Path) -> str:
    return f"Defaults to `${{HARVESTER_DATA_DIR}}/{relative_path}` when not explicitly set."


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized:
        return normalized
    return None


class AppSettings(BaseSettings):
    """
    Canonical runtime configuration.

    Every option is read from a `HARVESTER_*` environment variable (or `.env`)
    and documented here together with its default.
    """

    model_config = SettingsConfigDict(
        env_prefix="HARVESTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Core paths.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory for the state database and logs.",
    )
    db_path: Path = Field(
        default=_default_in_data_dir(Path("state.db")),
        description=f"SQLite state database path. {_data_dir_default_note(Path('state.db'))}",
    )
    log_dir: Path = Field(
        default=_default_in_data_dir(Path("logs")),
        description=f"Directory for log files. {_data_dir_default_note(Path('logs'))}",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    # YouTube Data API.
    youtube_api_key: str | None = Field(
        default=None,
        description=(
            "Seed value for the YouTube Data API key. Used only when no key has been "
            "stored through the credentials endpoint or script."
        ),
    )
    http_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout applied to every outbound HTTP request.",
    )
    batch_concurrency: int = Field(
        default=4,
        description="Maximum number of videos resolved concurrently within one batch.",
    )

    # Transcript acquisition chain.
    transcript_service_api_key: str | None = Field(
        default=None,
        description="API key for the third-party transcript service. Unset skips that source.",
    )
    transcript_service_base_url: str = Field(
        default=DEFAULT_TRANSCRIPT_SERVICE_BASE_URL,
        description="Base URL of the Supadata-compatible transcript service.",
    )
    transcript_service_mode: str = Field(
        default="native",
        description="Transcript service mode: native, auto, or generate.",
    )
    transcript_language: str = Field(
        default="en",
        description="Language code requested from the transcript service and timed-text endpoint.",
    )
    synthetic_fallback_enabled: bool = Field(
        default=True,
        description=(
            "Append the synthetic placeholder source as the last resort. Synthetic "
            "transcripts are always flagged with is_synthetic=true."
        ),
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight internal telemetry events.",
    )
    telemetry_sink: Literal["none", "log"] = Field(
        default="log",
        description=(
            "Telemetry sink backend. `log` emits structured telemetry locally; "
            "`none` disables sink output."
        ),
    )

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("HARVESTER_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log"}:
            return normalized
        raise ValueError("HARVESTER_TELEMETRY_SINK must be set to: none, log.")

    @field_validator("transcript_service_mode", mode="before")
    @classmethod
    def _normalize_transcript_service_mode(cls, value: Any) -> str:
        if not isinstance(value, str):
            return "native"
        normalized = value.strip().lower()
        if normalized in TRANSCRIPT_SERVICE_MODES:
            return normalized
        return "native"

    @field_validator("transcript_service_base_url", mode="before")
    @classmethod
    def _normalize_transcript_service_base_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("HARVESTER_TRANSCRIPT_SERVICE_BASE_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            return DEFAULT_TRANSCRIPT_SERVICE_BASE_URL
        return normalized

    @field_validator("transcript_language", mode="before")
    @classmethod
    def _normalize_transcript_language(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return "en"
        return value.strip()

    @field_validator("batch_concurrency", mode="after")
    @classmethod
    def _clamp_batch_concurrency(cls, value: int) -> int:
        return max(1, value)

    @field_validator("http_timeout_seconds", mode="after")
    @classmethod
    def _clamp_http_timeout(cls, value: float) -> float:
        return max(1.0, value)

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)

    @field_validator("youtube_api_key", "transcript_service_api_key", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)


def _apply_path_defaults(settings: AppSettings) -> AppSettings:
    updates: dict[str, Path] = {}
    for field_name, relative_default in _DATA_DIR_RELATIVE_DEFAULTS:
        if field_name in settings.model_fields_set:
            continue
        updates[field_name] = settings.data_dir / relative_default
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def _resolve_path_fields(settings: AppSettings) -> AppSettings:
    resolved_updates = {
        field_name: _resolve_path(getattr(settings, field_name))
        for field_name in _PATH_FIELDS
    }
    return settings.model_copy(update=resolved_updates)


def load_settings() -> AppSettings:
    settings = AppSettings()
    settings = _apply_path_defaults(settings)
    return _resolve_path_fields(settings)
