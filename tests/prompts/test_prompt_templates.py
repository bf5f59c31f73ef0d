from __future__ import annotations

import pytest

from bfhllm.prompts import build_prompt, create_structured_prompt, interpolate


def test_interpolate_replaces_known_placeholders():
    result = interpolate("Hej {{ name }}, du har {{ count }} beskeder.", {"name": "Anna", "count": 3})

    assert result == "Hej Anna, du har 3 beskeder."


def test_interpolate_leaves_missing_placeholders():
    result = interpolate("Enhed: {{ unit }} / {{ missing }}", {"unit": "dage"})

    assert result == "Enhed: dage / {{ missing }}"


def test_interpolate_renders_none_as_empty():
    assert interpolate("[{{ value }}]", {"value": None}) == "[]"


def test_interpolate_does_not_escape_html():
    assert interpolate("{{ v }}", {"v": "<b>&</b>"}) == "<b>&</b>"


@pytest.mark.parametrize(
    ("template", "data"),
    [("", {}), (None, {}), ("{{ x }}", None), ("{% if %}", {})],
)
def test_interpolate_rejects_bad_input(template, data):
    with pytest.raises(ValueError):
        interpolate(template, data)


def test_build_prompt_skips_empty_components():
    result = build_prompt("System", None, "  ", ["Context", None, "Question"])

    assert result == "System\n\nContext\n\nQuestion"


def test_build_prompt_custom_separator():
    assert build_prompt("a", "b", sep=" | ") == "a | b"


def test_structured_prompt_sections_in_order():
    result = create_structured_prompt(
        question="Hvad nu?",
        context="Data",
        system="Du er ekspert.",
        format="Kort svar",
    )

    assert result == (
        "System: Du er ekspert.\n\nContext: Data\n\nQuestion: Hvad nu?\n\nFormat: Kort svar"
    )


def test_structured_prompt_with_question_only():
    assert create_structured_prompt("Hvorfor?") == "Question: Hvorfor?"
