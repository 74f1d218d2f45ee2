from __future__ import annotations

from transcript_harvester.services.text_normalizer import (
    NO_TRANSCRIPT_PLACEHOLDER,
    clean_fragment,
    is_placeholder,
    normalize,
)
from transcript_harvester.services.types import TranscriptItem


def test_normalize_joins_fragments_and_decodes_entities() -> None:
    assert normalize([{"text": "a  b"}, {"text": "&amp;c"}]) == "a b &c"


def test_normalize_empty_inputs_return_exact_placeholder() -> None:
    assert normalize("") == "No transcript available"
    assert normalize("   \n\t ") == NO_TRANSCRIPT_PLACEHOLDER
    assert normalize([]) == NO_TRANSCRIPT_PLACEHOLDER
    assert normalize(None) == NO_TRANSCRIPT_PLACEHOLDER
    assert normalize([{"text": "<br/>"}, {"start": 1.0}]) == NO_TRANSCRIPT_PLACEHOLDER
    assert normalize([{"text": "   "}]) == "No transcript available"


def test_normalize_strips_markup_and_collapses_newlines() -> None:
    raw = "<font color=\"#fff\">Hello</font>\n\nthere &#39;friend&#39;"
    assert normalize(raw) == "Hello there 'friend'"


def test_normalize_accepts_items_and_plain_strings() -> None:
    raw = [
        TranscriptItem(text="first line", start_ms=0, duration_ms=1500),
        " second ",
        {"text": "third", "start": 3.0},
    ]
    assert normalize(raw) == "first line second third"


def test_clean_fragment_decodes_double_escaped_entities_once() -> None:
    assert clean_fragment("Q&amp;amp;A") == "Q&amp;A"
    assert clean_fragment("rock &amp; roll") == "rock & roll"


def test_is_placeholder_only_matches_literal() -> None:
    assert is_placeholder(normalize(""))
    assert not is_placeholder("No transcript available yet")
