"""
services/matcher.py
──────────────────────────────────────────────────────────────────────────────
Stage 1 of the analysis pipeline: free-text job title → O*NET occupation.

Architecture:
  • Accepts an OccupationIndex and a MatchScoring profile via constructor
    injection.
  • score_title() is a pure function — no I/O, easily unit-tested.
  • OccupationMatcher.search() ranks titles; find_best_match() resolves the
    top hit to an occupation with a confidence signal.

Scoring:
  High-precision rules (exact, prefix) fire first; weighted token overlap is
  the fallback, with a penalty tier for queries where fewer than half the
  words match (one shared "Chief" must not rank "Chief Learning Officer"
  highly).

The matcher holds only immutable data and is safe to share between threads.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from workforce_intel.config.matching import DEFAULT_SCORING, MatchScoring
from workforce_intel.domain.models import (
    ConfidenceLevel,
    MatchAlternative,
    MatchResult,
    MatchType,
    ScoredEntry,
    SearchEntry,
)
from workforce_intel.services.occupation_index import OccupationIndex

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


# ── Pre-processed title ────────────────────────────────────────────────────

@dataclass(frozen=True)
class _PreparedTitle:
    """A SearchEntry with its lower-cased text and tokens computed once."""

    entry: SearchEntry
    lower: str
    tokens: tuple[str, ...]
    word_count: int


def normalize(text: str) -> str:
    return text.lower().strip()


def tokenize(text: str, scoring: MatchScoring = DEFAULT_SCORING) -> list[str]:
    """Lower-case word tokens minus stop words and single characters."""
    return [
        t for t in _TOKEN_RE.findall(text.lower())
        if len(t) >= scoring.min_token_length and t not in scoring.stop_words
    ]


def score_title(
    query: str,
    query_tokens: list[str],
    title: str,
    title_tokens: tuple[str, ...] | list[str],
    scoring: MatchScoring = DEFAULT_SCORING,
    title_word_count: Optional[int] = None,
) -> Optional[float]:
    """Score one title against a normalised query.

    Args:
        query:        Lower-cased, trimmed query.
        query_tokens: ``tokenize(query)``.
        title:        Lower-cased title.
        title_tokens: ``tokenize(title)``.
        scoring:      Constant profile.
        title_word_count: Whitespace word count of the title (computed when
                      omitted).

    Returns:
        Score in [0, 100], or None when no rule matches.
    """
    if title == query:
        return scoring.exact
    if title.startswith(query):
        return scoring.title_prefix

    words = title_word_count if title_word_count is not None else len(title.split())
    if query.startswith(title) and words >= scoring.query_prefix_min_words:
        return scoring.query_prefix
    if query in title:
        return scoring.substring

    if not query_tokens:
        return None

    exact_matches = 0
    partial_matches = 0
    title_set = set(title_tokens)
    for qt in query_tokens:
        if qt in title_set:
            exact_matches += 1
        elif len(qt) >= scoring.partial_min_length and any(
            len(tt) >= scoring.partial_min_length
            and (tt.startswith(qt) or qt.startswith(tt))
            for tt in title_tokens
        ):
            partial_matches += 1

    total = exact_matches + partial_matches * scoring.partial_weight
    if total <= 0:
        return None

    ratio = total / len(query_tokens)
    if ratio < scoring.penalty_ratio and len(query_tokens) >= scoring.penalty_min_tokens:
        return scoring.penalty_base + ratio * scoring.penalty_span

    return (
        scoring.overlap_base
        + ratio * scoring.overlap_ratio_weight
        + min(total / scoring.overlap_count_saturation, 1.0) * scoring.overlap_count_weight
    )


def confidence_for(score: float, scoring: MatchScoring = DEFAULT_SCORING) -> ConfidenceLevel:
    if score >= scoring.high_confidence:
        return ConfidenceLevel.HIGH
    if score >= scoring.medium_confidence:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def _rank_key(item: ScoredEntry) -> tuple:
    # Score desc, primary first, shorter title, then alphabetical.
    return (-item.score, not item.is_primary, len(item.title), item.title.lower(), item.title)


# ── Service class ──────────────────────────────────────────────────────────

class OccupationMatcher:
    """Rank O*NET titles for a free-text query.

    Args:
        index:        Shared OccupationIndex (read-only).
        scoring:      Scoring constants; defaults to the production profile.
        search_limit: Candidate pool used by find_best_match (≥ 5).
    """

    def __init__(
        self,
        index: OccupationIndex,
        scoring: MatchScoring = DEFAULT_SCORING,
        search_limit: int = 5,
    ) -> None:
        self._index = index
        self._scoring = scoring
        self._search_limit = max(search_limit, scoring.min_search_limit)
        self._titles: tuple[_PreparedTitle, ...] = tuple(
            _PreparedTitle(
                entry=e,
                lower=normalize(e.title),
                tokens=tuple(tokenize(e.title, scoring)),
                word_count=len(e.title.split()),
            )
            for e in index.searchable_entries
        )
        logger.debug("OccupationMatcher init | titles=%d", len(self._titles))

    @property
    def index(self) -> OccupationIndex:
        return self._index

    # ── Public API ─────────────────────────────────────────────────────────

    def search(self, query: str, limit: int = 10) -> list[ScoredEntry]:
        """Rank searchable titles against ``query``.

        Args:
            query: Free text; case-insensitive, trimmed.
            limit: Maximum number of results.

        Returns:
            ScoredEntry list, best first.  Empty for a blank query.
        """
        q = normalize(query)
        if not q or limit <= 0:
            return []

        q_tokens = tokenize(q, self._scoring)
        scored: list[ScoredEntry] = []
        for prepared in self._titles:
            score = score_title(
                q,
                q_tokens,
                prepared.lower,
                prepared.tokens,
                self._scoring,
                title_word_count=prepared.word_count,
            )
            if score is not None:
                scored.append(
                    ScoredEntry(**prepared.entry.model_dump(), score=round(score, 2))
                )

        scored.sort(key=_rank_key)
        return scored[:limit]

    def find_best_match(self, job_title: str) -> Optional[MatchResult]:
        """Resolve a job title to its best occupation.

        Returns:
            MatchResult, or None when no title scores at all.  None is a
            "not found" outcome, not an error.
        """
        results = self.search(job_title, self._search_limit)
        if not results:
            logger.info("No occupation match | query=%r", job_title[:80])
            return None

        top = results[0]
        occupation = self._index.get(top.code)
        if occupation is None:
            logger.warning("Top match %r points at unknown code %s", top.title, top.code)
            return None

        confidence = confidence_for(top.score, self._scoring)
        if normalize(job_title) == normalize(top.title) and top.is_primary:
            match_type = MatchType.EXACT
        elif top.is_primary:
            match_type = MatchType.PRIMARY
        else:
            match_type = MatchType.ALTERNATE

        alternatives: list[MatchAlternative] = []
        if confidence != ConfidenceLevel.HIGH:
            alternatives = [
                MatchAlternative(title=r.title, code=r.code, score=r.score)
                for r in results[1 : 1 + self._scoring.max_alternatives]
            ]

        logger.info(
            "Matched | query=%r title=%r code=%s score=%.2f confidence=%s",
            job_title[:80],
            top.title,
            top.code,
            top.score,
            confidence.value,
        )
        return MatchResult(
            occupation=occupation,
            confidence=confidence,
            match_type=match_type,
            matched_title=top.title,
            score=top.score,
            alternatives=alternatives,
        )
