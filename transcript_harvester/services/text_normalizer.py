from __future__ import annotations

import html
import re
from collections.abc import Mapping, Sequence
from typing import Any

from transcript_harvester.services.types import TranscriptItem

NO_TRANSCRIPT_PLACEHOLDER = "No transcript available"
_MARKUP_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")

RawTranscript = str | Sequence[TranscriptItem | Mapping[str, Any] | str]


def normalize(raw: RawTranscript | None) -> str:
    """Flatten a transcript payload into one line of plain text.

    Accepts a string or a sequence of timed items (``TranscriptItem``, mappings
    with a ``text`` key, or bare strings). Timing is dropped. Every fragment is
    entity-decoded and stripped of markup before the fragments are joined.
    """
    if raw is None:
        return NO_TRANSCRIPT_PLACEHOLDER
    if isinstance(raw, str):
        fragments = [clean_fragment(raw)]
    else:
        fragments = [clean_fragment(_fragment_text(item)) for item in raw]

    joined = " ".join(fragment for fragment in fragments if fragment)
    collapsed = _WHITESPACE_PATTERN.sub(" ", joined).strip()
    if not collapsed:
        return NO_TRANSCRIPT_PLACEHOLDER
    return collapsed


def clean_fragment(raw_text: str) -> str:
    decoded = html.unescape(raw_text)
    without_markup = _MARKUP_TAG_PATTERN.sub(" ", decoded)
    return _WHITESPACE_PATTERN.sub(" ", without_markup).strip()


def is_placeholder(text: str) -> bool:
    return text == NO_TRANSCRIPT_PLACEHOLDER


def _fragment_text(item: TranscriptItem | Mapping[str, Any] | str) -> str:
    if isinstance(item, TranscriptItem):
        return item.text
    if isinstance(item, str):
        return item
    if isinstance(item, Mapping):
        value = item.get("text")
        if isinstance(value, str):
            return value
    return ""
