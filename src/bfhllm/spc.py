"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

SPC (statistical process control) improvement suggestions.

Turns a control-chart result plus user context into a short Danish
analysis generated through `ChatOrchestrator`. Charts are evaluated with
the Anhøj rules; the chart result is expected as a mapping with a
`metadata` block and `qic_data` rows (`x`, `y`, `cl`, ...).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from .cache.base import ResponseCache
from .cache.keys import generate_cache_key
from .errors import FailureReason, LLMConfigurationError
from .prompts import interpolate
from .rag import KnowledgeRetriever, format_rag_context, query_knowledge
from .types import ChatResult

if TYPE_CHECKING:
    from .chat import ChatOrchestrator

logger = logging.getLogger("bfhllm.spc")

NOT_SPECIFIED = "Ikke angivet"
TARGET_TOLERANCE = 0.05
RAG_TOP_K = 3

CHART_TYPE_DANISH: dict[str, str] = {
    "run": "serieplot (run chart)",
    "i": "I-chart (individuelle værdier)",
    "mr": "MR-chart (moving range)",
    "xbar": "X-bar chart (gennemsnit)",
    "s": "S-chart (standardafvigelse)",
    "t": "T-chart (tid mellem events)",
    "p": "P-chart (andel)",
    "pp": "PP-chart (andel per periode)",
    "c": "C-chart (antal events)",
    "u": "U-chart (rate per enhed)",
    "g": "G-chart (events mellem)",
    "prime": "Prime chart",
}

SPC_PROMPT_TEMPLATE = """
Du er en ekspert i Statistical Process Control (SPC) og klinisk kvalitetsforbedring. Du vurderer SPC-processer efter Anhøj-reglerne.

Baseret på følgende SPC-data, skal du generere en kort positivt og handlingsorienteret analyse af et seriediagram (mellem {{ min_chars }} og {{ max_chars }} tegn) på dansk. Formater target_values i samme enhed som {{ y_axis_unit }}.

KONTEKST:
- Indikator: {{ data_definition }}
- Titel: {{ chart_title }}
- Enhed: {{ y_axis_unit }}
- Chart type: {{ chart_type_dansk }}
- Antal observationer: {{ n_points }}
- Periode: {{ start_date }} til {{ end_date }}
- Target: {{ target_value }}
- Centerline: {{ centerline }}

SPC ANALYSE:
- Proces varierer {{ process_variation }}
- Antal særligt afvigende punkter: {{ signals_detected }}
- Længste serie: {{ longest_run }} punkter
- Antal krydsninger: {{ n_crossings }} (forventet: {{ n_crossings_min }})
- Niveau vs. mål: {{ target_comparison }}

STRUKTUR (følg dette format):
1. Start med kontekst (fx "Mere end X gange om måneden...")
2. Beskriv processens variation (naturlig/ikke-naturlig, særlige punkter)
3. Forhold til mål (over/under/ved)
4. Konkret forslag markeret med **fed** (fx "**Identificér årsager...**")

EKSEMPEL:
"Mere end 35.000 gange om måneden administreres medicin ikke korrekt. Processen varierer ikke naturligt, og indeholder 3 særligt afvigende målepunkter. Niveauet er under målet. Forslag: **Identificér årsager bag de afvigende målepunkter**, og understøt faktorer der kan forbedre målopfyldelsen. Stabilisér processen når niveauet er tilfredsstillende."

VIGTIGE REGLER:
- KRITISK: Svaret SKAL være mellem {{ min_chars }} og {{ max_chars }} tegn. Tæl tegnene nøje!
- Afslut ALTID med en komplet sætning - aldrig med '...' eller afbrudte ord
- Planlæg din tekst så den passer inden for grænsen og slutter naturligt
- Dansk sprog
- Konkret og handlingsorienteret
- Brug fed (**tekst**) til forslag, men vær selektiv - kun 1-2 forslag, max 3 i sjældnere tilfælde.
- Fokusér på forbedringsmuligheder
- Undgå teknisk jargon - men hold professionel distance
"""

RAG_SECTION_TEMPLATE = (
    "\n\n## SPC Metodologi Reference\n\n"
    "Brug følgende autoritativ SPC metodologi som reference til at grunde dit svar:"
    "\n\n%s\n"
)


class SpcContext(BaseModel):
    """User-supplied chart context. Extra keys are kept and reach the prompt."""

    model_config = ConfigDict(extra="allow")

    data_definition: str = ""
    chart_title: str = ""
    y_axis_unit: str = ""
    target_value: float | str | None = None


@dataclass(frozen=True, slots=True)
class SpcMetadata:
    """Chart facts extracted from an SPC result."""

    chart_type: str
    chart_type_dansk: str
    n_points: int
    signals_detected: int
    longest_run: int
    n_crossings: int
    n_crossings_min: int
    centerline: float | None
    start_date: str
    end_date: str
    process_variation: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def map_chart_type_danish(chart_type: str) -> str:
    """Translate a chart type code to its Danish display name."""
    danish = CHART_TYPE_DANISH.get(str(chart_type).lower())
    if danish is None:
        logger.warning("Unknown chart type: %s. Using English name as fallback.", chart_type)
        return chart_type
    return danish


def extract_spc_metadata(spc_result: Any) -> SpcMetadata | None:
    """
    Pull prompt-relevant facts out of an SPC chart result.

    Returns `None` when `spc_result` is not a mapping or lacks its
    `metadata` block. Missing or empty `qic_data` is tolerated: the
    centerline becomes `None` and the period is reported as not specified.
    """
    if not isinstance(spc_result, Mapping):
        logger.warning("Invalid spc_result: not a mapping")
        return None

    meta = spc_result.get("metadata")
    if not isinstance(meta, Mapping):
        logger.warning("Missing metadata component in spc_result")
        return None

    chart_type = str(meta.get("chart_type") or "unknown")
    signals = _as_int(meta.get("signals_detected"))
    rules = meta.get("anhoej_rules")
    if not isinstance(rules, Mapping):
        rules = {}

    centerline: float | None = None
    start_date = end_date = NOT_SPECIFIED
    rows = spc_result.get("qic_data")
    if isinstance(rows, Sequence) and not isinstance(rows, str) and len(rows) > 0:
        centerline = _mean_centerline(rows)
        first, last = rows[0], rows[-1]
        if isinstance(first, Mapping) and "x" in first and isinstance(last, Mapping):
            start_date = str(first["x"])
            end_date = str(last.get("x", NOT_SPECIFIED))
    else:
        logger.warning("Missing or empty qic_data in spc_result")

    return SpcMetadata(
        chart_type=chart_type,
        chart_type_dansk=map_chart_type_danish(chart_type),
        n_points=_as_int(meta.get("n_points")),
        signals_detected=signals,
        longest_run=_as_int(rules.get("longest_run")),
        n_crossings=_as_int(rules.get("n_crossings")),
        n_crossings_min=_as_int(rules.get("n_crossings_min")),
        centerline=centerline,
        start_date=start_date,
        end_date=end_date,
        process_variation="ikke naturligt" if signals > 0 else "naturligt",
    )


def determine_target_comparison(centerline: float | None, target_value: Any) -> str:
    """Classify the centerline against a target with a 5% tolerance band."""
    if target_value is None or target_value == "" or isinstance(target_value, bool):
        return "ikke angivet"
    try:
        target = float(target_value)
    except (TypeError, ValueError):
        return "ikke angivet"
    if math.isnan(target) or centerline is None or math.isnan(centerline):
        return "ikke angivet"

    tolerance = abs(target * TARGET_TOLERANCE)
    if abs(centerline - target) <= tolerance:
        return "ved målet"
    if centerline > target:
        return "over målet"
    return "under målet"


async def spc_suggestion(
    orchestrator: "ChatOrchestrator",
    spc_result: Any,
    context: SpcContext | Mapping[str, Any] | None,
    *,
    min_chars: int = 300,
    max_chars: int = 375,
    use_rag: bool = True,
    retriever: KnowledgeRetriever | None = None,
    cache: ResponseCache | None = None,
    **chat_kwargs: Any,
) -> ChatResult:
    """
    Generate a Danish improvement suggestion for an SPC chart.

    The cache key covers the extracted metadata, the user context and the
    length bounds. Retrieval failures fall back to a prompt without the
    methodology reference section.
    """
    if "validate" in chat_kwargs:
        raise LLMConfigurationError("spc_suggestion always validates responses; drop validate=")
    if spc_result is None:
        return _invalid("spc_result is None")
    if context is None:
        return _invalid("context is None")

    try:
        ctx = context if isinstance(context, SpcContext) else SpcContext.model_validate(dict(context))
    except (TypeError, ValueError) as exc:
        return _invalid(f"invalid context: {exc}")

    metadata = extract_spc_metadata(spc_result)
    if metadata is None:
        return _invalid("Failed to extract SPC metadata")

    context_data = ctx.model_dump()
    cache_key: str | None = None
    if cache is not None:
        cache_key = generate_cache_key(
            {
                **metadata.to_dict(),
                **context_data,
                "min_chars": min_chars,
                "max_chars": max_chars,
            }
        )
        cached = cache.get(cache_key)
        if cached is not None:
            return ChatResult.success(cached, cached=True)

    target_comparison = determine_target_comparison(metadata.centerline, ctx.target_value)

    rag_context: str | None = None
    if use_rag:
        rag_query = "%s chart with %s variation, %d signals detected, level %s target" % (
            metadata.chart_type,
            metadata.process_variation,
            metadata.signals_detected,
            target_comparison,
        )
        rows = query_knowledge(retriever, rag_query, top_k=RAG_TOP_K, method="hybrid")
        rag_context = format_rag_context(rows, max_chunks=RAG_TOP_K)

    prompt_data = {
        **metadata.to_dict(),
        **context_data,
        "centerline": NOT_SPECIFIED if metadata.centerline is None else metadata.centerline,
        "target_value": NOT_SPECIFIED if ctx.target_value is None else ctx.target_value,
        "target_comparison": target_comparison,
        "min_chars": min_chars,
        "max_chars": max_chars,
    }
    prompt = interpolate(SPC_PROMPT_TEMPLATE, prompt_data)
    if rag_context is not None:
        prompt += RAG_SECTION_TEMPLATE % rag_context

    result = await orchestrator.chat(prompt, max_chars=max_chars, validate=True, **chat_kwargs)

    if cache_key is not None and cache is not None and result.ok and result.text is not None:
        cache.set(cache_key, result.text)
    return result


def _invalid(detail: str) -> ChatResult:
    logger.warning("spc suggestion skipped: %s", detail)
    return ChatResult.failure(FailureReason.INVALID_INPUT, detail)


def _mean_centerline(rows: Sequence[Any]) -> float | None:
    values: list[float] = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        value = row.get("cl")
        if value is None or isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if not math.isnan(number):
            values.append(number)
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
