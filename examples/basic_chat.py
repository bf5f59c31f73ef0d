"""
basic_chat.py: Minimal bfhllm chat example.

Sends one prompt through the breaker-guarded orchestrator and prints the
sanitized answer, or the failure reason when the call did not succeed.

Usage:
    pip install 'bfhllm[gemini]'
    export GOOGLE_API_KEY=...
    python examples/basic_chat.py
"""

import asyncio
import logging

from bfhllm import ChatOrchestrator, LLMConfigStore


async def main() -> None:
    config = LLMConfigStore()
    config.configure(timeout_s=15, max_response_chars=300)
    orchestrator = ChatOrchestrator(config=config)

    if not orchestrator.chat_available():
        print("Gemini is not configured. Set GOOGLE_API_KEY or GEMINI_API_KEY.")
        return

    cache = orchestrator.process_cache()
    for attempt in range(2):
        result = await orchestrator.chat(
            "Forklar kort hvad et seriediagram viser.",
            cache=cache,
        )
        if result.ok:
            print(f"[{attempt}] cached={result.cached}: {result.text}")
        else:
            print(f"[{attempt}] failed: {result.reason.value} ({result.detail})")

    print(orchestrator.breaker_status())
    print(cache.stats())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
