"""
ports/occupation_data_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the static O*NET lookup data.

The port separates the two lookups the runtime needs:
  1. load_occupations — code → OccupationRecord (with alternate titles)
  2. load_tasks       — code → ordered TaskStatements

Both are read exactly once at start-up by services/container.py.

Current implementation: JsonOccupationDataAdapter (pre-built JSON files).
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from workforce_intel.domain.models import OccupationRecord, TaskStatement


@runtime_checkable
class OccupationDataPort(Protocol):
    """Contract for the occupation / task data source."""

    def load_occupations(self) -> dict[str, OccupationRecord]:
        """Return every occupation keyed by O*NET-SOC code.

        Raises:
            DataLoadError: If the source is missing or malformed.
        """
        ...

    def load_tasks(self) -> dict[str, list[TaskStatement]]:
        """Return task statements keyed by code, in source order.

        Raises:
            DataLoadError: If the source is missing or malformed.
        """
        ...
