"""
adapters/anthropic_llm.py
──────────────────────────────────────────────────────────────────────────────
Implements LLMPort using the Anthropic Messages API.

Key behaviour:
  - POSTs to /v1/messages via raw requests (no anthropic SDK dependency)
  - system_prompt → top-level "system"; user_message → single user turn
  - Concatenates the text blocks of the reply; the caller extracts JSON
  - Warns when stop_reason == "max_tokens" (reply may be truncated)
  - Single attempt: any network error or non-2xx status raises LLMError

Required env vars:
  ANTHROPIC_API_KEY      — your Anthropic secret key
  ANTHROPIC_MODEL        — default: claude-sonnet-4-20250514
  ANTHROPIC_MAX_TOKENS   — default: 12000
"""
from __future__ import annotations

import logging

import requests

from workforce_intel.config.settings import Settings
from workforce_intel.domain.exceptions import AuthenticationError, LLMError

logger = logging.getLogger(__name__)

_ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
_ANTHROPIC_VERSION = "2023-06-01"


class AnthropicLLMAdapter:
    """Anthropic Claude messages adapter (default provider)."""

    def __init__(self, settings: Settings) -> None:
        if not settings.anthropic_api_key:
            raise AuthenticationError(
                "ANTHROPIC_API_KEY is not set. "
                "Add it to your .env file or environment."
            )
        self._settings = settings
        self._headers = {
            "x-api-key": settings.anthropic_api_key,
            "anthropic-version": _ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        logger.debug("AnthropicLLMAdapter ready | model=%s", settings.anthropic_model)

    # ── LLMPort implementation ─────────────────────────────────────────────

    @property
    def model_name(self) -> str:
        return self._settings.anthropic_model

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
    ) -> str | None:
        """Send a prompt and return the model's text reply.

        Returns:
            Concatenated text content, or None when the reply has none.

        Raises:
            AuthenticationError: On HTTP 401 / 403.
            LLMError: On network failure, any other non-2xx status, or a
                body that is not a JSON object.
        """
        payload = {
            "model": self._settings.anthropic_model,
            "max_tokens": self._settings.anthropic_max_tokens,
            "temperature": self._settings.llm_temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_message}],
        }

        try:
            resp = requests.post(
                _ANTHROPIC_MESSAGES_URL,
                headers=self._headers,
                json=payload,
                timeout=self._settings.llm_timeout,
            )
        except requests.RequestException as exc:
            logger.error("Anthropic request error: %s", exc)
            raise LLMError(f"Anthropic request failed: {exc}") from exc

        if resp.status_code in (401, 403):
            raise AuthenticationError(
                f"Anthropic returned {resp.status_code}. "
                "Check that ANTHROPIC_API_KEY is valid."
            )

        if not resp.ok:
            logger.error("Anthropic HTTP %d: %s", resp.status_code, resp.text[:300])
            raise LLMError(f"Anthropic API returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            logger.error("Anthropic returned a non-JSON body: %s", resp.text[:300])
            raise LLMError("Anthropic API returned a non-JSON body") from exc
        return self._extract_text(body)

    # ── Private helpers ────────────────────────────────────────────────────

    def _extract_text(self, response_json: dict) -> str | None:
        """Join the text blocks of a Messages API reply."""
        if not isinstance(response_json, dict):
            raise LLMError("Anthropic API returned an unexpected response shape")
        if response_json.get("stop_reason") == "max_tokens":
            logger.warning("Anthropic reply hit max_tokens — JSON may be truncated")

        blocks = response_json.get("content") or []
        text = "".join(
            b.get("text", "")
            for b in blocks
            if isinstance(b, dict) and b.get("type") == "text"
        ).strip()
        if not text:
            logger.warning("Anthropic response contained no text content")
            return None
        return text
