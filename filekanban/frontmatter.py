"""Front matter codec for card files.

A card file is a ``---`` delimited block of ``key: value`` lines followed
by a free-text body. Parsing is permissive: a file without a well-formed
block is read as pure body, never as an error, so hand-written markdown
files still load.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping, Optional, Tuple

DELIMITER = "---"
KNOWN_KEYS = ("id", "title", "due", "createdAt", "updatedAt")

_LINE_BREAK = re.compile(r"\r?\n")

Metadata = Dict[str, Optional[str]]


def parse_front_matter(content: str) -> Tuple[Metadata, str]:
    """Split ``content`` into its metadata mapping and body.

    Values that are empty or the literal ``null`` decode to None. If the
    text does not open with the delimiter, or the block is never closed,
    the metadata is empty and the body is ``content`` unchanged.
    """
    lines = _LINE_BREAK.split(content)
    if lines[0] != DELIMITER:
        return {}, content
    try:
        end_index = lines.index(DELIMITER, 1)
    except ValueError:
        return {}, content

    meta: Metadata = {}
    for line in lines[1:end_index]:
        if not line.strip():
            continue
        key, separator, value = line.partition(":")
        if not separator:
            continue
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        meta[key] = None if value in ("", "null") else value
    body = "\n".join(lines[end_index + 1:])
    return meta, body


def serialize_front_matter(meta: Mapping[str, Optional[str]], body: str) -> str:
    """Render ``meta`` and ``body`` as a card file.

    Known keys come first in a fixed order, then any extra keys in mapping
    order. None renders as ``null``.
    """
    lines = [DELIMITER]
    for key in KNOWN_KEYS:
        if key in meta:
            lines.append(_render_line(key, meta[key]))
    for key, value in meta.items():
        if key not in KNOWN_KEYS:
            lines.append(_render_line(key, value))
    lines.append(DELIMITER)
    lines.append(body)
    return "\n".join(lines)


def first_non_empty_line(text: str) -> Optional[str]:
    """Return the first non-blank line of ``text``, stripped, or None."""
    for line in _LINE_BREAK.split(text):
        stripped = line.strip()
        if stripped:
            return stripped
    return None


def _render_line(key: str, value: Optional[str]) -> str:
    return f"{key}: {'null' if value is None else value}"
