"""
adapters/openai_llm.py
──────────────────────────────────────────────────────────────────────────────
Implements LLMPort using the OpenAI Chat Completions API.

Key behaviour:
  - Uses /v1/chat/completions via raw requests (no openai SDK dependency)
  - Requests JSON output via response_format={"type": "json_object"}
  - system_prompt → system role message; user_message → user role message
  - Single attempt: any network error or non-2xx status raises LLMError
  - Returns the raw JSON string (caller parses); None when no content

Required env vars:
  OPENAI_API_KEY     — your OpenAI secret key  (sk-...)
  OPENAI_LLM_MODEL   — default: gpt-4o

To enable:
  Set LLM_PROVIDER=openai in your .env file.
"""
from __future__ import annotations

import logging

import requests

from workforce_intel.config.settings import Settings
from workforce_intel.domain.exceptions import AuthenticationError, LLMError

logger = logging.getLogger(__name__)

_OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class OpenAILLMAdapter:
    """OpenAI GPT chat completions adapter.

    Injected into TaskClassifier via services/container.py when
    ``LLM_PROVIDER=openai`` is set in the environment.

    .. note::
        OpenAI's JSON mode requires the word "JSON" to appear somewhere in
        the prompt.  ``build_system_prompt()`` in ``config/prompts.py``
        already includes it.
    """

    def __init__(self, settings: Settings) -> None:
        if not settings.openai_api_key:
            raise AuthenticationError(
                "OPENAI_API_KEY is not set. "
                "Add it to your .env file or environment."
            )
        self._settings = settings
        self._headers = {
            "Authorization": f"Bearer {settings.openai_api_key}",
            "Content-Type": "application/json",
        }
        logger.debug("OpenAILLMAdapter ready | model=%s", settings.openai_llm_model)

    # ── LLMPort implementation ─────────────────────────────────────────────

    @property
    def model_name(self) -> str:
        """Name of the underlying OpenAI chat model."""
        return self._settings.openai_llm_model

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
    ) -> str | None:
        """Send a prompt and return the raw JSON response string.

        Args:
            system_prompt: System-level instruction for the model.
            user_message:  User-turn message content.

        Returns:
            Raw JSON string from the model, or ``None`` when it is empty.

        Raises:
            AuthenticationError: On HTTP 401.
            LLMError: On network failure, any other non-2xx status, or a
                body that is not a JSON object.
        """
        payload = self._build_payload(system_prompt, user_message)
        return self._post(payload)

    # ── Private helpers ────────────────────────────────────────────────────

    def _build_payload(self, system_prompt: str, user_message: str) -> dict:
        """Build the OpenAI chat completions request body."""
        return {
            "model": self._settings.openai_llm_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": self._settings.llm_temperature,
            "response_format": {"type": "json_object"},
        }

    def _post(self, payload: dict) -> str | None:
        try:
            resp = requests.post(
                _OPENAI_CHAT_URL,
                headers=self._headers,
                json=payload,
                timeout=self._settings.llm_timeout,
            )
        except requests.RequestException as exc:
            logger.error("OpenAI LLM request error: %s", exc)
            raise LLMError(f"OpenAI request failed: {exc}") from exc

        if resp.status_code == 401:
            raise AuthenticationError(
                "OpenAI returned 401 Unauthorised. "
                "Check that OPENAI_API_KEY is valid."
            )

        if not resp.ok:
            logger.error(
                "OpenAI LLM HTTP %d: %s",
                resp.status_code, resp.text[:300],
            )
            raise LLMError(f"OpenAI API returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            logger.error("OpenAI returned a non-JSON body: %s", resp.text[:300])
            raise LLMError("OpenAI API returned a non-JSON body") from exc
        return self._extract_text(body)

    def _extract_text(self, response_json: dict) -> str | None:
        """Pull the content string out of the chat completions response."""
        if not isinstance(response_json, dict):
            raise LLMError("OpenAI API returned an unexpected response shape")
        try:
            choices = response_json.get("choices", [])
            if not choices:
                logger.warning("OpenAI response contained no choices")
                return None
            content = (choices[0].get("message", {}).get("content") or "").strip()
            return content if content else None
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            logger.error("Failed to parse OpenAI response structure: %s", exc)
            return None
