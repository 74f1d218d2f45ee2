from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Protocol

import structlog

# Substring match: "youtube_api_key", "page_token" and "transcript_chars" are redacted.
_REDACTED_KEY_FRAGMENTS: tuple[str, ...] = ("api_key", "token", "transcript")
_REDACTED = "[redacted]"
_MAX_STRING_LENGTH = 160


class TelemetrySink(Protocol):
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        ...


class NoOpTelemetrySink:
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        _ = (event_name, attributes)


class StructuredLogTelemetrySink:
    def __init__(self) -> None:
        self._logger = structlog.get_logger("transcript_harvester.telemetry")

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self._logger.info("telemetry", telemetry_event=event_name, **dict(attributes))


@dataclass(frozen=True)
class TelemetryClient:
    enabled: bool
    sink: TelemetrySink

    @classmethod
    def disabled(cls) -> TelemetryClient:
        return cls(enabled=False, sink=NoOpTelemetrySink())

    def emit(self, event_name: str, **attributes: Any) -> None:
        if not self.enabled:
            return
        self.sink.emit(event_name=event_name, attributes=_sanitize_attributes(attributes))


def build_telemetry_client(*, enabled: bool, sink: Literal["none", "log"]) -> TelemetryClient:
    if not enabled or sink == "none":
        return TelemetryClient.disabled()
    if sink == "log":
        return TelemetryClient(enabled=True, sink=StructuredLogTelemetrySink())

    logging.getLogger("transcript_harvester.telemetry").warning(
        "unsupported telemetry sink requested; disabling telemetry sink=%s",
        sink,
    )
    return TelemetryClient.disabled()


TelemetryValue = bool | int | float | str | None


def _sanitize_attributes(attributes: Mapping[str, Any]) -> dict[str, TelemetryValue]:
    return {
        key: _REDACTED if _is_redacted_key(key) else _compact_value(value)
        for key, value in (
            (str(raw_key).strip().lower(), raw_value) for raw_key, raw_value in attributes.items()
        )
        if key
    }


def _is_redacted_key(key: str) -> bool:
    return any(fragment in key for fragment in _REDACTED_KEY_FRAGMENTS)


def _compact_value(value: Any) -> TelemetryValue:
    """Reduce an attribute to a scalar: id lists become counts, long queries are cut."""
    if value is None or isinstance(value, bool | int | float):
        return value
    if isinstance(value, str):
        compact = " ".join(value.split())
        if len(compact) > _MAX_STRING_LENGTH:
            return f"{compact[:_MAX_STRING_LENGTH]}..."
        return compact
    if isinstance(value, list | tuple | set | frozenset):
        return len(value)
    return type(value).__name__
