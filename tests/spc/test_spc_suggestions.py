from __future__ import annotations

import asyncio
import math

import pytest

from bfhllm import (
    ChatOrchestrator,
    FailureReason,
    LLMConfigurationError,
    LLMSettings,
    ProcessCache,
    ProviderRegistry,
)
from bfhllm.rag import RetrievedChunk
from bfhllm.spc import (
    CHART_TYPE_DANISH,
    SpcContext,
    determine_target_comparison,
    extract_spc_metadata,
    map_chart_type_danish,
    spc_suggestion,
)

SUGGESTION = (
    "Mere end 35.000 gange om måneden administreres medicin ikke korrekt. "
    "Processen varierer ikke naturligt. Forslag: **Identificér årsager bag afvigelserne**."
)


class _Provider:
    provider_id = "fake"

    def __init__(self, result: str = SUGGESTION) -> None:
        self.result = result
        self.prompts: list[str] = []

    def validate_setup(self) -> bool:
        return True

    async def call_api(self, prompt, model, timeout_s):
        _ = (model, timeout_s)
        self.prompts.append(prompt)
        return {"text": self.result}

    def extract_text(self, raw):
        return raw["text"]


class _Retriever:
    def __init__(self, rows=None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.queries = []

    def query(self, text, top_k, method):
        self.queries.append((text, top_k, method))
        if self.error is not None:
            raise self.error
        return self.rows


def run_async(coro):
    return asyncio.run(coro)


def _spc_result(signals: int = 2) -> dict:
    return {
        "metadata": {
            "chart_type": "run",
            "n_points": 24,
            "signals_detected": signals,
            "anhoej_rules": {"longest_run": 8, "n_crossings": 6, "n_crossings_min": 8},
        },
        "qic_data": [
            {"x": "2024-01-01", "y": 40, "cl": 44.0},
            {"x": "2024-06-01", "y": 46, "cl": 45.0},
            {"x": "2024-12-01", "y": 48, "cl": 46.333},
        ],
    }


def _context(**overrides) -> dict:
    context = {
        "data_definition": "Ventetid til operation",
        "chart_title": "Ventetid ortopædkirurgi 2024",
        "y_axis_unit": "dage",
        "target_value": 30,
    }
    context.update(overrides)
    return context


def _orchestrator(provider: _Provider) -> ChatOrchestrator:
    return ChatOrchestrator(
        config=LLMSettings(provider="fake"),
        providers=ProviderRegistry([provider]),
    )


def test_chart_type_mapping():
    assert len(CHART_TYPE_DANISH) == 12
    assert map_chart_type_danish("run") == "serieplot (run chart)"
    assert map_chart_type_danish("P") == "P-chart (andel)"
    assert map_chart_type_danish("unknown") == "unknown"


def test_extract_metadata_from_result():
    metadata = extract_spc_metadata(_spc_result())

    assert metadata is not None
    assert metadata.chart_type_dansk == "serieplot (run chart)"
    assert metadata.n_points == 24
    assert metadata.longest_run == 8
    assert metadata.n_crossings_min == 8
    assert metadata.centerline == 45.11
    assert metadata.start_date == "2024-01-01"
    assert metadata.end_date == "2024-12-01"
    assert metadata.process_variation == "ikke naturligt"


def test_extract_metadata_defaults_for_sparse_result():
    metadata = extract_spc_metadata({"metadata": {}, "qic_data": []})

    assert metadata is not None
    assert metadata.chart_type == "unknown"
    assert metadata.signals_detected == 0
    assert metadata.longest_run == 0
    assert metadata.centerline is None
    assert metadata.start_date == "Ikke angivet"
    assert metadata.process_variation == "naturligt"


@pytest.mark.parametrize("value", [None, [], "run", {"qic_data": []}])
def test_extract_metadata_rejects_invalid_result(value):
    assert extract_spc_metadata(value) is None


@pytest.mark.parametrize(
    ("centerline", "target", "expected"),
    [
        (30.0, 30, "ved målet"),
        (31.4, 30, "ved målet"),
        (28.6, "30", "ved målet"),
        (32.0, 30, "over målet"),
        (27.0, 30, "under målet"),
        (30.0, None, "ikke angivet"),
        (30.0, "", "ikke angivet"),
        (30.0, "n/a", "ikke angivet"),
        (None, 30, "ikke angivet"),
        (math.nan, 30, "ikke angivet"),
    ],
)
def test_target_comparison(centerline, target, expected):
    assert determine_target_comparison(centerline, target) == expected


def test_suggestion_prompt_contains_chart_facts_and_rag_reference():
    provider = _Provider()
    retriever = _Retriever(rows=[RetrievedChunk("Anhøj-reglerne beskriver serielængde.")])

    result = run_async(
        spc_suggestion(_orchestrator(provider), _spc_result(), _context(), retriever=retriever)
    )

    assert result.ok
    assert result.text == SUGGESTION
    prompt = provider.prompts[0]
    assert "- Indikator: Ventetid til operation" in prompt
    assert "- Chart type: serieplot (run chart)" in prompt
    assert "- Periode: 2024-01-01 til 2024-12-01" in prompt
    assert "- Niveau vs. mål: over målet" in prompt
    assert "(mellem 300 og 375 tegn)" in prompt
    assert "{{" not in prompt
    assert "## SPC Metodologi Reference" in prompt
    assert "[1] Anhøj-reglerne beskriver serielængde." in prompt
    assert retriever.queries == [
        ("run chart with ikke naturligt variation, 2 signals detected, level over målet target", 3, "hybrid")
    ]


def test_suggestion_without_rag_skips_retrieval():
    provider = _Provider()
    retriever = _Retriever(rows=[RetrievedChunk("unused")])

    run_async(
        spc_suggestion(_orchestrator(provider), _spc_result(), _context(), use_rag=False, retriever=retriever)
    )

    assert retriever.queries == []
    assert "SPC Metodologi Reference" not in provider.prompts[0]


def test_retrieval_failure_falls_back_to_plain_prompt():
    provider = _Provider()
    retriever = _Retriever(error=RuntimeError("index corrupt"))

    result = run_async(spc_suggestion(_orchestrator(provider), _spc_result(), _context(), retriever=retriever))

    assert result.ok
    assert "SPC Metodologi Reference" not in provider.prompts[0]


def test_missing_target_renders_as_not_specified():
    provider = _Provider()

    run_async(
        spc_suggestion(_orchestrator(provider), _spc_result(), _context(target_value=None), use_rag=False)
    )

    assert "- Target: Ikke angivet" in provider.prompts[0]
    assert "- Niveau vs. mål: ikke angivet" in provider.prompts[0]


def test_suggestion_is_cached_by_chart_and_context():
    provider = _Provider()
    orchestrator = _orchestrator(provider)
    cache = ProcessCache()

    first = run_async(spc_suggestion(orchestrator, _spc_result(), _context(), use_rag=False, cache=cache))
    second = run_async(spc_suggestion(orchestrator, _spc_result(), _context(), use_rag=False, cache=cache))
    other = run_async(
        spc_suggestion(orchestrator, _spc_result(), _context(chart_title="Andet"), use_rag=False, cache=cache)
    )

    assert first.text == second.text
    assert second.cached is True
    assert other.cached is False
    assert len(provider.prompts) == 2


def test_failed_suggestion_is_not_cached():
    provider = _Provider(result="<p> </p>")
    cache = ProcessCache()

    result = run_async(
        spc_suggestion(_orchestrator(provider), _spc_result(), _context(), use_rag=False, cache=cache)
    )

    assert result.reason is FailureReason.VALIDATION_FAILED
    assert cache.stats().entries == 0


def test_invalid_inputs_fail_without_provider_call():
    provider = _Provider()
    orchestrator = _orchestrator(provider)

    for spc_result, context in ((None, _context()), (_spc_result(), None), ({"qic_data": []}, _context())):
        result = run_async(spc_suggestion(orchestrator, spc_result, context))
        assert result.reason is FailureReason.INVALID_INPUT

    assert provider.prompts == []


def test_context_model_keeps_extra_fields():
    context = SpcContext.model_validate({"chart_title": "T", "department": "Ortopædi"})

    assert context.model_dump()["department"] == "Ortopædi"
    assert context.target_value is None


def test_validate_override_is_a_configuration_error():
    provider = _Provider()

    with pytest.raises(LLMConfigurationError, match="validate"):
        run_async(
            spc_suggestion(_orchestrator(provider), _spc_result(), {}, use_rag=False, validate=False)
        )

    assert provider.prompts == []
