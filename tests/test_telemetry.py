from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from transcript_harvester.telemetry import (
    StructuredLogTelemetrySink,
    TelemetryClient,
    build_telemetry_client,
)


class _CaptureSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self.events.append((event_name, dict(attributes)))


def test_telemetry_client_redacts_sensitive_fields() -> None:
    sink = _CaptureSink()
    client = TelemetryClient(enabled=True, sink=sink)

    client.emit(
        "batch.finish",
        folder_name="apple_keynote_20261019_083005",
        transcript="very long transcript text",
        youtube_api_key="secret",
        page_token="CAUQAA",
        video_ids=["a", "b", "c"],
        total=3,
    )

    assert len(sink.events) == 1
    event_name, attributes = sink.events[0]
    assert event_name == "batch.finish"
    assert attributes["folder_name"] == "apple_keynote_20261019_083005"
    assert attributes["total"] == 3
    assert attributes["video_ids"] == 3
    assert attributes["transcript"] == "[redacted]"
    assert attributes["youtube_api_key"] == "[redacted]"
    assert attributes["page_token"] == "[redacted]"


def test_telemetry_client_truncates_long_strings() -> None:
    sink = _CaptureSink()
    TelemetryClient(enabled=True, sink=sink).emit("search.finish", query="word " * 100)

    query = sink.events[0][1]["query"]
    assert isinstance(query, str)
    assert query.endswith("...")
    assert len(query) <= 163


def test_disabled_telemetry_client_does_not_emit() -> None:
    sink = _CaptureSink()
    client = TelemetryClient(enabled=False, sink=sink)

    client.emit("batch.start", video_count=1)
    assert sink.events == []


def test_build_telemetry_client_respects_sink_and_flag() -> None:
    assert build_telemetry_client(enabled=True, sink="none").enabled is False
    assert build_telemetry_client(enabled=False, sink="log").enabled is False

    client = build_telemetry_client(enabled=True, sink="log")
    assert client.enabled is True
    assert isinstance(client.sink, StructuredLogTelemetrySink)


def test_telemetry_client_keeps_request_attributes() -> None:
    sink = _CaptureSink()
    TelemetryClient(enabled=True, sink=sink).emit(
        "http.request.finish",
        request_id="req-abc",
        method="POST",
        path="/transcripts/batch",
        status_code=200,
        error_type=None,
    )

    assert sink.events[0][1] == {
        "request_id": "req-abc",
        "method": "POST",
        "path": "/transcripts/batch",
        "status_code": 200,
        "error_type": None,
    }
