"""
session_cache.py: Per-session response caching.

Shows how a web host binds one cache to each user session. Two sessions
never see each other's entries and a session's cache is emptied when the
session ends. Runs offline with an echo provider.

Usage:
    python examples/session_cache.py
"""

import asyncio

from bfhllm import ChatOrchestrator, LLMSettings, ProviderRegistry


class EchoProvider:
    provider_id = "echo"

    def validate_setup(self) -> bool:
        return True

    async def call_api(self, prompt, model, timeout_s):
        _ = (model, timeout_s)
        return {"text": f"Du skrev: {prompt}."}

    def extract_text(self, raw):
        return raw["text"]


class UserSession:
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.user_data: dict = {}
        self._on_end = []

    def on_end(self, callback) -> None:
        self._on_end.append(callback)

    def close(self) -> None:
        for callback in self._on_end:
            callback()


async def main() -> None:
    orchestrator = ChatOrchestrator(
        config=LLMSettings(provider="echo"),
        providers=ProviderRegistry([EchoProvider()]),
    )
    alice, bob = UserSession("alice"), UserSession("bob")

    for session in (alice, bob, alice):
        cache = orchestrator.session_cache(session)
        result = await orchestrator.chat("hej", cache=cache)
        print(f"{session.session_id}: cached={result.cached} text={result.text}")

    alice.close()
    print(orchestrator.session_cache(alice).stats())


if __name__ == "__main__":
    asyncio.run(main())
