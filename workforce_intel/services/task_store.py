"""
services/task_store.py
──────────────────────────────────────────────────────────────────────────────
Read-only lookup from occupation code to its ordered task statements.

Source order is preserved: the first N tasks are the ones analysed.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from workforce_intel.domain.models import TaskStatement

logger = logging.getLogger(__name__)


class TaskStore:
    """Immutable code → tasks mapping, shared across requests."""

    def __init__(self, tasks: Mapping[str, Sequence[TaskStatement]]) -> None:
        self._tasks: Mapping[str, tuple[TaskStatement, ...]] = MappingProxyType(
            {code: tuple(items) for code, items in tasks.items() if items}
        )
        self._task_count = sum(len(t) for t in self._tasks.values())
        logger.info(
            "TaskStore built | occupations=%d tasks=%d",
            len(self._tasks),
            self._task_count,
        )

    def get_tasks(self, code: str, limit: int | None = None) -> list[TaskStatement]:
        """Tasks for ``code`` in source order, optionally truncated to ``limit``."""
        tasks = self._tasks.get(code, ())
        if limit is not None:
            tasks = tasks[:limit]
        return list(tasks)

    def has_tasks(self, code: str) -> bool:
        return code in self._tasks

    @property
    def codes(self) -> frozenset[str]:
        """Codes with at least one task statement."""
        return frozenset(self._tasks)

    @property
    def task_count(self) -> int:
        return self._task_count
