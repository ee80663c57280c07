"""
config/settings.py
──────────────────────────────────────────────────────────────────────────────
Single source of truth for all tuneable parameters.

All values can be overridden via environment variables or a .env file placed
at the project root.  The frozen dataclass ensures settings are never mutated
at runtime.

To swap providers, change the relevant env var — no code edits required:
  LLM_PROVIDER      → anthropic | openai
  ANTHROPIC_MODEL   → swap Claude model
  OPENAI_LLM_MODEL  → swap GPT model
  DATA_DIR          → swap the O*NET lookup files
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
load_dotenv(Path(__file__).parent.parent.parent / ".env")


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _env_path(key: str, default: Path) -> Path:
    return Path(os.getenv(key, str(default)))


@dataclass(frozen=True)
class Settings:
    """Immutable application settings loaded from environment variables."""

    # ── Provider selection ──────────────────────────────────────────────────
    # Valid values: "anthropic" | "openai"
    llm_provider: str = field(
        default_factory=lambda: _env("LLM_PROVIDER", "anthropic")
    )

    # ── Anthropic ──────────────────────────────────────────────────────────
    anthropic_api_key: str = field(
        default_factory=lambda: _env("ANTHROPIC_API_KEY", "")
    )
    anthropic_model: str = field(
        default_factory=lambda: _env("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
    )
    # 25 classified tasks plus skill implications need a large budget.
    anthropic_max_tokens: int = field(
        default_factory=lambda: _env_int("ANTHROPIC_MAX_TOKENS", 12000)
    )

    # ── OpenAI ─────────────────────────────────────────────────────────────
    openai_api_key: str = field(
        default_factory=lambda: _env("OPENAI_API_KEY", "")
    )
    openai_llm_model: str = field(
        default_factory=lambda: _env("OPENAI_LLM_MODEL", "gpt-4o")
    )

    # ── Generation ─────────────────────────────────────────────────────────
    llm_temperature: float = field(
        default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.3)
    )

    # ── Data paths ─────────────────────────────────────────────────────────
    data_dir: Path = field(
        default_factory=lambda: _env_path(
            "DATA_DIR",
            Path(__file__).parent.parent.parent / "data",
        )
    )

    # ── Analysis pipeline ──────────────────────────────────────────────────
    task_limit: int = field(default_factory=lambda: _env_int("TASK_LIMIT", 25))
    match_limit: int = field(default_factory=lambda: _env_int("MATCH_LIMIT", 5))

    # ── HTTP ───────────────────────────────────────────────────────────────
    # Classification calls routinely take 60-90s.
    llm_timeout: int = field(default_factory=lambda: _env_int("LLM_TIMEOUT", 180))
    host: str = field(default_factory=lambda: _env("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns a cached singleton Settings instance.

    Use this everywhere instead of instantiating Settings() directly —
    it guarantees a single object is shared across the entire process.
    """
    return Settings()
