"""
spc_suggestion.py: Danish improvement suggestion for a run chart.

Builds a control-chart result by hand, then asks the model for a short
analysis. A retriever is optional; without one the prompt is sent without
the methodology reference section.

Usage:
    pip install 'bfhllm[gemini]'
    export GOOGLE_API_KEY=...
    python examples/spc_suggestion.py
"""

import asyncio

from bfhllm import ChatOrchestrator, RetrievedChunk, SpcContext, spc_suggestion


class StaticRetriever:
    """Stands in for a real knowledge store."""

    def query(self, text, top_k, method):
        _ = (text, method)
        rows = [
            RetrievedChunk(
                "Anhøj-reglerne: en serie på 8 eller flere punkter på samme side "
                "af centerlinjen indikerer et skift i processen.",
                0.82,
            ),
            RetrievedChunk(
                "For få krydsninger af centerlinjen tyder på ikke-naturlig variation.",
                0.77,
            ),
        ]
        return rows[:top_k]


SPC_RESULT = {
    "metadata": {
        "chart_type": "run",
        "n_points": 24,
        "signals_detected": 2,
        "anhoej_rules": {"longest_run": 9, "n_crossings": 5, "n_crossings_min": 8},
    },
    "qic_data": [
        {"x": f"2024-{month:02d}-01", "y": 38 + month, "cl": 44.5}
        for month in range(1, 13)
    ],
}


async def main() -> None:
    orchestrator = ChatOrchestrator()
    context = SpcContext(
        data_definition="Ventetid til operation",
        chart_title="Ventetid ortopædkirurgi 2024",
        y_axis_unit="dage",
        target_value=30,
    )

    result = await spc_suggestion(
        orchestrator,
        SPC_RESULT,
        context,
        retriever=StaticRetriever(),
        cache=orchestrator.process_cache(),
    )
    print(result.text if result.ok else f"No suggestion: {result.reason.value}")


if __name__ == "__main__":
    asyncio.run(main())
