"""
services/occupation_index.py
──────────────────────────────────────────────────────────────────────────────
Immutable in-memory lookup of occupations and their searchable titles.

Built once at process start (services/container.py) and shared by reference
with the matcher and orchestrator.  Nothing mutates it afterwards, so
concurrent requests read it without locking.

Flattening:
  one SearchEntry per primary title
  one SearchEntry per alternate title (primary_title set)

Codes without task statements stay in the index (they can still be looked
up by code) but are excluded from ``searchable_entries`` — an analysis
cannot proceed without tasks.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Optional

from workforce_intel.domain.models import OccupationRecord, SearchEntry

logger = logging.getLogger(__name__)


class OccupationIndex:
    """Read-only occupation records plus the flattened title index.

    Args:
        occupations:    code → OccupationRecord.
        searchable_codes: Codes eligible for search results (normally the
                        codes that have task data).  ``None`` means all.
    """

    def __init__(
        self,
        occupations: Mapping[str, OccupationRecord],
        searchable_codes: Optional[Iterable[str]] = None,
    ) -> None:
        self._occupations: Mapping[str, OccupationRecord] = MappingProxyType(dict(occupations))
        self._entries: tuple[SearchEntry, ...] = tuple(flatten_titles(self._occupations.values()))

        codes = set(self._occupations) if searchable_codes is None else set(searchable_codes)
        self._searchable_codes: frozenset[str] = frozenset(codes & set(self._occupations))
        self._searchable: tuple[SearchEntry, ...] = tuple(
            e for e in self._entries if e.code in self._searchable_codes
        )

        logger.info(
            "OccupationIndex built | occupations=%d titles=%d searchable=%d",
            len(self._occupations),
            len(self._entries),
            len(self._searchable),
        )

    # ── Lookup ─────────────────────────────────────────────────────────────

    def get(self, code: str) -> Optional[OccupationRecord]:
        return self._occupations.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._occupations

    def __len__(self) -> int:
        return len(self._occupations)

    def is_searchable(self, code: str) -> bool:
        return code in self._searchable_codes

    # ── Title entries ──────────────────────────────────────────────────────

    @property
    def entries(self) -> tuple[SearchEntry, ...]:
        """Every primary and alternate title."""
        return self._entries

    @property
    def searchable_entries(self) -> tuple[SearchEntry, ...]:
        """Titles whose occupation has task data, in index order."""
        return self._searchable


def flatten_titles(occupations: Iterable[OccupationRecord]) -> list[SearchEntry]:
    """One SearchEntry per primary title and per alternate title."""
    entries: list[SearchEntry] = []
    for occ in occupations:
        entries.append(SearchEntry(title=occ.title, code=occ.code, is_primary=True))
        for alt in occ.alternate_titles:
            entries.append(
                SearchEntry(
                    title=alt,
                    code=occ.code,
                    is_primary=False,
                    primary_title=occ.title,
                )
            )
    return entries
