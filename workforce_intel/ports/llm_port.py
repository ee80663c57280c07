"""
ports/llm_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for LLM (large language model) providers.

Current implementations: AnthropicLLMAdapter (default), OpenAILLMAdapter.
To add a provider: write an adapter implementing this Protocol, then add one
branch to services/container.py.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMPort(Protocol):
    """Contract for a JSON-generating LLM provider."""

    @property
    def model_name(self) -> str:
        """Identifier of the underlying LLM."""
        ...

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
    ) -> str | None:
        """Send a prompt to the LLM and return its JSON response as a string.

        The caller is responsible for parsing the returned string.  The
        model may wrap the JSON in prose or markdown fences; callers must
        locate the JSON object themselves.

        Args:
            system_prompt: System-level instruction.
            user_message:  User-turn content.

        Returns:
            Raw response text, or None if the model returned no content.

        Raises:
            AuthenticationError: When credentials are missing or rejected.
            LLMError: On any transport or HTTP failure.  Adapters never retry.
        """
        ...
