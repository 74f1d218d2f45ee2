from __future__ import annotations

import re

MAX_FILENAME_STEM_LENGTH = 50
EMPTY_TITLE_STEM = "untitled"
# Reserved on Windows, macOS or common Linux filesystems, plus ASCII control characters.
_RESERVED_CHARACTER_PATTERN = re.compile(r'[/\\:*?"<>|\x00-\x1f\x7f]')
_WHITESPACE_PATTERN = re.compile(r"\s+")


def sanitize(title: str) -> str:
    replaced = _WHITESPACE_PATTERN.sub("_", title)
    replaced = _RESERVED_CHARACTER_PATTERN.sub("_", replaced)
    truncated = replaced[:MAX_FILENAME_STEM_LENGTH]
    if not truncated:
        return EMPTY_TITLE_STEM
    return truncated


def transcript_filename(title: str, video_id: str) -> str:
    # Ids come from user input on the CLI and API, so they get the same substitution.
    safe_id = _RESERVED_CHARACTER_PATTERN.sub("_", _WHITESPACE_PATTERN.sub("_", video_id))
    return f"{sanitize(title)}_{safe_id}.txt"
