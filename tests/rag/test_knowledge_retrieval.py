from __future__ import annotations

import asyncio

from bfhllm import ChatOrchestrator, LLMSettings, ProviderRegistry
from bfhllm.rag import (
    KnowledgeStoreLoader,
    RetrievedChunk,
    chat_with_rag,
    format_rag_context,
    query_knowledge,
)


class _Retriever:
    def __init__(self, rows=None, error: Exception | None = None) -> None:
        self.rows = rows if rows is not None else []
        self.error = error
        self.queries = []

    def query(self, text, top_k, method):
        self.queries.append((text, top_k, method))
        if self.error is not None:
            raise self.error
        return self.rows[:top_k]


class _Provider:
    provider_id = "fake"

    def __init__(self) -> None:
        self.prompts = []

    def validate_setup(self) -> bool:
        return True

    async def call_api(self, prompt, model, timeout_s):
        _ = (model, timeout_s)
        self.prompts.append(prompt)
        return "Svar."

    def extract_text(self, raw):
        return raw


def run_async(coro):
    return asyncio.run(coro)


def test_query_knowledge_normalizes_rows():
    retriever = _Retriever(
        rows=[{"text": "Anhøj rules", "score": "0.9"}, RetrievedChunk("Run charts")]
    )

    rows = query_knowledge(retriever, "run chart", top_k=2, method="bm25")

    assert rows == [RetrievedChunk("Anhøj rules", 0.9), RetrievedChunk("Run charts")]
    assert retriever.queries == [("run chart", 2, "bm25")]


def test_query_knowledge_swallows_retriever_errors():
    retriever = _Retriever(error=ConnectionError("store offline"))

    assert query_knowledge(retriever, "q") is None


def test_query_knowledge_rejects_invalid_arguments():
    retriever = _Retriever(rows=[RetrievedChunk("x")])

    assert query_knowledge(retriever, "") is None
    assert query_knowledge(retriever, "q", method="fuzzy") is None
    assert query_knowledge(None, "q") is None
    assert retriever.queries == []


def test_format_rag_context_numbers_chunks():
    rows = [RetrievedChunk("Første", 0.91234), RetrievedChunk("Anden"), RetrievedChunk("Tredje")]

    assert format_rag_context(rows, max_chunks=2) == (
        "Context from knowledge base:\n\n[1] Første\n\n[2] Anden"
    )
    assert format_rag_context(rows[:1], include_scores=True) == (
        "Context from knowledge base:\n\n[1] (score: 0.912)\nFørste"
    )
    assert format_rag_context([]) is None
    assert format_rag_context(None) is None


def test_chat_with_rag_injects_context():
    provider = _Provider()
    orchestrator = ChatOrchestrator(
        config=LLMSettings(provider="fake"),
        providers=ProviderRegistry([provider]),
    )
    retriever = _Retriever(rows=[RetrievedChunk("Serieplot viser data over tid.")])

    result = run_async(
        chat_with_rag(orchestrator, "Hvad er et serieplot?", context="Brugerdata", retriever=retriever)
    )

    assert result.text == "Svar."
    assert provider.prompts == [
        "Context: Context from knowledge base:\n\n[1] Serieplot viser data over tid."
        "\n\nBrugerdata\n\nQuestion: Hvad er et serieplot?"
    ]


def test_chat_with_rag_degrades_without_retriever():
    provider = _Provider()
    orchestrator = ChatOrchestrator(
        config=LLMSettings(provider="fake"),
        providers=ProviderRegistry([provider]),
    )

    result = run_async(chat_with_rag(orchestrator, "Hvorfor?"))

    assert result.ok
    assert provider.prompts == ["Question: Hvorfor?"]


def test_loader_connects_once_and_does_not_retry_failures():
    attempts = []

    def _connect():
        attempts.append(1)
        raise FileNotFoundError("no store")

    loader = KnowledgeStoreLoader(_connect)

    assert loader.load() is None
    assert loader.load() is None
    assert len(attempts) == 1

    loader.reset()
    assert loader.load() is None
    assert len(attempts) == 2


def test_loader_caches_successful_store():
    store = _Retriever()
    attempts = []

    def _connect():
        attempts.append(1)
        return store

    loader = KnowledgeStoreLoader(_connect)

    assert loader.load() is store
    assert loader.load() is store
    assert len(attempts) == 1
