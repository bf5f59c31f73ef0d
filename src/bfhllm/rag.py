"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Retrieval-augmented chat glue around an external knowledge retriever.

Retrieval is best-effort: any retriever failure is logged and treated as
"no context available", never propagated.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol

from .prompts import create_structured_prompt
from .types import ChatResult

if TYPE_CHECKING:
    from .chat import ChatOrchestrator

logger = logging.getLogger("bfhllm.rag")

SearchMethod = Literal["hybrid", "semantic", "bm25"]
SEARCH_METHODS: tuple[str, ...] = ("hybrid", "semantic", "bm25")


@dataclass(frozen=True, slots=True)
class RetrievedChunk:
    """One knowledge chunk returned by a retriever."""

    text: str
    score: float | None = None


class KnowledgeRetriever(Protocol):
    """Search surface of the knowledge store collaborator."""

    def query(
        self, text: str, top_k: int, method: SearchMethod
    ) -> Iterable[RetrievedChunk | Mapping[str, Any]] | None: ...


def query_knowledge(
    retriever: KnowledgeRetriever | None,
    query: str,
    *,
    top_k: int = 5,
    method: str = "hybrid",
) -> list[RetrievedChunk] | None:
    """Run one retrieval and normalize rows, returning `None` when unavailable."""
    if not isinstance(query, str) or not query:
        logger.warning("query must be a non-empty character string")
        return None
    if method not in SEARCH_METHODS:
        logger.warning("method must be one of %s, got %r", ", ".join(SEARCH_METHODS), method)
        return None
    if retriever is None:
        logger.warning("Knowledge store not available")
        return None

    try:
        rows = retriever.query(query, top_k, method)  # type: ignore[arg-type]
        if rows is None:
            return None
        return [_to_chunk(row) for row in rows]
    except Exception as exc:
        logger.warning("RAG query failed: %s", exc)
        return None


def format_rag_context(
    results: list[RetrievedChunk] | None,
    *,
    max_chunks: int = 5,
    include_scores: bool = False,
) -> str | None:
    """Render retrieved chunks as a numbered context block."""
    if not results:
        return None

    chunks: list[str] = []
    for idx, row in enumerate(results[:max_chunks], start=1):
        if include_scores and row.score is not None:
            chunks.append(f"[{idx}] (score: {round(row.score, 3)})\n{row.text}")
        else:
            chunks.append(f"[{idx}] {row.text}")

    return "\n".join(["Context from knowledge base:", "", "\n\n".join(chunks)])


async def chat_with_rag(
    orchestrator: "ChatOrchestrator",
    question: str,
    *,
    context: str | None = None,
    retriever: KnowledgeRetriever | None = None,
    top_k: int = 5,
    method: str = "hybrid",
    **chat_kwargs: Any,
) -> ChatResult:
    """
    Answer `question` with retrieved knowledge injected as context.

    Falls back to a plain structured prompt with only `context` when
    retrieval yields nothing.
    """
    if not isinstance(question, str) or not question:
        return await orchestrator.chat(question, **chat_kwargs)

    rows = query_knowledge(retriever, question, top_k=top_k, method=method)
    rag_context = format_rag_context(rows, max_chunks=top_k)

    if rag_context is not None and context is not None:
        combined: str | None = f"{rag_context}\n\n{context}"
    elif rag_context is not None:
        combined = rag_context
    else:
        combined = context

    prompt = create_structured_prompt(question=question, context=combined)
    return await orchestrator.chat(prompt, **chat_kwargs)


class KnowledgeStoreLoader:
    """
    Load a retriever once and reuse it.

    After a failed attempt no further loads are tried until `reset()`, so a
    missing store costs one warning rather than one per request.
    """

    def __init__(self, connect: Callable[[], KnowledgeRetriever | None]) -> None:
        self._connect = connect
        self._lock = threading.Lock()
        self._store: KnowledgeRetriever | None = None
        self._attempted = False

    def load(self) -> KnowledgeRetriever | None:
        with self._lock:
            if self._store is not None:
                return self._store
            if self._attempted:
                return None
            self._attempted = True
            try:
                self._store = self._connect()
            except Exception as exc:
                logger.warning("Failed to load knowledge store: %s", exc)
                return None
            if self._store is None:
                logger.warning("Knowledge store not found")
            return self._store

    def reset(self) -> None:
        with self._lock:
            self._store = None
            self._attempted = False


def _to_chunk(row: RetrievedChunk | Mapping[str, Any]) -> RetrievedChunk:
    if isinstance(row, RetrievedChunk):
        return row
    score = row.get("score")
    return RetrievedChunk(
        text=str(row["text"]),
        score=float(score) if score is not None else None,
    )
