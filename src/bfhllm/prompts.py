"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Prompt template utilities.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from jinja2 import DebugUndefined, Environment, Template, TemplateError

_JINJA = Environment(undefined=DebugUndefined, autoescape=False, keep_trailing_newline=True)
_TEMPLATE_CACHE: dict[str, Template] = {}
_TEMPLATE_LOCK = threading.Lock()


def interpolate(template: str, data: Mapping[str, Any]) -> str:
    """
    Render `{{ name }}` placeholders in `template` from `data`.

    Placeholders missing from `data` are left in the output unchanged.
    `None` renders as an empty string; other values via `str()`.
    """
    if not isinstance(template, str) or not template:
        raise ValueError("template must be a non-empty character string")
    if not isinstance(data, Mapping):
        raise ValueError("data must be a mapping")

    context = {
        str(key): ("" if value is None else str(value))
        for key, value in data.items()
    }
    try:
        return _compile(template).render(context)
    except TemplateError as exc:
        raise ValueError(f"failed to render prompt template: {exc}") from exc


def build_prompt(*components: Any, sep: str = "\n\n") -> str:
    """
    Join prompt components, skipping `None` and blank entries.

    Lists and tuples are flattened one level, so a component list built up
    conditionally can be passed as a single argument.
    """
    parts: list[str] = []
    for component in _flatten(components):
        if component is None:
            continue
        text = str(component).strip()
        if text:
            parts.append(text)
    return sep.join(parts)


def create_structured_prompt(
    question: str,
    context: str | None = None,
    system: str | None = None,
    format: str | None = None,
) -> str:
    """Build a prompt with `System:`, `Context:`, `Question:` and `Format:` sections."""
    components: list[str] = []
    if system is not None:
        components.append(f"System: {system}")
    if context is not None:
        components.append(f"Context: {context}")
    components.append(f"Question: {question}")
    if format is not None:
        components.append(f"Format: {format}")
    return build_prompt(components)


def _compile(template: str) -> Template:
    with _TEMPLATE_LOCK:
        compiled = _TEMPLATE_CACHE.get(template)
    if compiled is not None:
        return compiled
    try:
        compiled = _JINJA.from_string(template)
    except TemplateError as exc:
        raise ValueError(f"invalid prompt template syntax: {exc}") from exc
    with _TEMPLATE_LOCK:
        return _TEMPLATE_CACHE.setdefault(template, compiled)


def _flatten(items: Iterable[Any]) -> Iterable[Any]:
    for item in items:
        if isinstance(item, (list, tuple)):
            yield from item
        else:
            yield item
