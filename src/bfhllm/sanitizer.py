"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Validation and length-bounded sanitization of provider output.

Responses are rendered directly in end-user UI, so the output of
`ResponseSanitizer.validate` always ends on a complete sentence (or, when
the text has no sentence terminator before the limit, on a whole word) and
never carries an unmatched `*` emphasis marker.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

logger = logging.getLogger("bfhllm.sanitizer")

DEFAULT_MAX_CHARS = 350

_HTML_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
# Terminator, optional bold closer, then whitespace or end of text. The
# lookahead keeps decimals and thousands separators ("35.000") intact.
_SENTENCE_END = re.compile(r"[.!?](?:\*\*)?(?=\s|$)")


def truncate_to_limit(text: str, max_chars: int) -> str:
    """Cut `text` to at most `max_chars` on a sentence or word boundary."""
    cut: int | None = None
    for match in _SENTENCE_END.finditer(text):
        if match.end() > max_chars:
            break
        cut = match.end()

    if cut is not None:
        head = text[:cut]
    else:
        # Include the char at the limit so a space there keeps the last word.
        boundary = text[: max_chars + 1].rfind(" ")
        head = text[:boundary] if boundary > 0 else text[:max_chars]

    return balance_emphasis(head.rstrip())


def balance_emphasis(text: str) -> str:
    """Drop the last `*` when the marker count is odd."""
    if text.count("*") % 2 == 0:
        return text
    idx = text.rfind("*")
    return (text[:idx] + text[idx + 1 :]).strip()


class ResponseSanitizer:
    """Turns raw provider text into a bounded, well-formed string."""

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS) -> None:
        self.max_chars = max_chars

    def validate(self, text: Any, max_chars: int | None = None) -> str | None:
        """
        Sanitize `text` or return `None` when it is unusable.

        Steps: reject missing/non-string input (a sequence of strings is
        joined with spaces), strip HTML tags, collapse whitespace, reject if
        empty, then truncate to `max_chars` when longer.
        """
        limit = self.max_chars if max_chars is None else max_chars

        if text is None:
            logger.warning("Empty or invalid response: None")
            return None
        if not isinstance(text, str):
            if (
                isinstance(text, Sequence)
                and len(text) > 0
                and all(isinstance(part, str) for part in text)
            ):
                text = " ".join(text)
            else:
                logger.warning("Empty or invalid response: %s", type(text).__name__)
                return None

        if not text:
            logger.warning("Empty response text")
            return None

        text = _HTML_TAG.sub("", text)
        text = _WHITESPACE.sub(" ", text).strip()

        if not text:
            logger.warning("Response empty after sanitization")
            return None

        if len(text) <= limit:
            return text

        truncated = truncate_to_limit(text, limit)
        if not truncated:
            logger.warning("Response empty after truncation to %d chars", limit)
            return None
        return truncated

    def validate_length(self, text: Any, max_chars: int | None = None) -> bool:
        """Return whether `text` is a string within the character limit."""
        if not isinstance(text, str):
            return False
        limit = self.max_chars if max_chars is None else max_chars
        return len(text) <= limit
