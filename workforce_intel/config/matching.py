"""
config/matching.py
──────────────────────────────────────────────────────────────────────────────
Scoring constants for the occupation title matcher.

The values are tuned heuristics, grouped in a frozen dataclass so an
alternative profile can be injected into OccupationMatcher without editing
services/matcher.py.

Rule cascade (first match wins):
  exact        query == title                              → 100
  prefix       title starts with query                     →  95
  reverse      query starts with title (title ≥ 2 words)   →  90
  contains     title contains query                        →  85
  overlap      weighted token overlap                      →  20-40 / 50-85
"""
from __future__ import annotations

from dataclasses import dataclass, field

from workforce_intel.domain.exceptions import ConfigurationError

STOP_WORDS: frozenset[str] = frozenset(
    {"the", "and", "for", "with", "a", "an", "of", "in", "to"}
)


@dataclass(frozen=True)
class MatchScoring:
    """Named scoring constants for the title-matching rule cascade."""

    # ── Cascade scores ─────────────────────────────────────────────────────
    exact: float = 100.0
    title_prefix: float = 95.0
    query_prefix: float = 90.0
    substring: float = 85.0

    # Reverse-prefix rule only fires for titles with at least this many words
    # ("Chief" alone must not swallow "Chief Learning Officer").
    query_prefix_min_words: int = 2

    # ── Token overlap ──────────────────────────────────────────────────────
    partial_weight: float = 0.7
    partial_min_length: int = 4
    min_token_length: int = 2

    # Penalty tier: fewer than half the query tokens matched
    penalty_ratio: float = 0.5
    penalty_min_tokens: int = 2
    penalty_base: float = 20.0
    penalty_span: float = 40.0

    # Good-match tier
    overlap_base: float = 50.0
    overlap_ratio_weight: float = 25.0
    overlap_count_weight: float = 10.0
    overlap_count_saturation: float = 3.0

    # ── Confidence thresholds ──────────────────────────────────────────────
    high_confidence: float = 90.0
    medium_confidence: float = 60.0

    # ── Result shaping ─────────────────────────────────────────────────────
    min_search_limit: int = 5
    max_alternatives: int = 3

    stop_words: frozenset[str] = field(default_factory=lambda: STOP_WORDS)

    def __post_init__(self) -> None:
        cascade = [
            self.exact,
            self.title_prefix,
            self.query_prefix,
            self.substring,
            self.overlap_ceiling,
            self.overlap_base,
        ]
        if any(a < b for a, b in zip(cascade, cascade[1:])):
            raise ConfigurationError(f"Match scores must be non-increasing: {cascade}")
        if self.penalty_base + self.penalty_span > self.overlap_base:
            raise ConfigurationError("Penalty tier must stay below the overlap tier")

    @property
    def overlap_ceiling(self) -> float:
        """Best possible token-overlap score."""
        return self.overlap_base + self.overlap_ratio_weight + self.overlap_count_weight


DEFAULT_SCORING = MatchScoring()
