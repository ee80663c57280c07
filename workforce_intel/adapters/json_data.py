"""
adapters/json_data.py
──────────────────────────────────────────────────────────────────────────────
Implements OccupationDataPort over the pre-built O*NET JSON lookup files.

Expected layout under DATA_DIR (produced by ``workforce-build-data``):
  onet-occupations.json   {code: {code, title, description, alternateTitles}}
  onet-tasks.json         {code: [{id, task, type, date, source}, ...]}

Files are read lazily on first call and parsed into frozen domain models.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from workforce_intel.config.settings import Settings
from workforce_intel.domain.exceptions import DataLoadError
from workforce_intel.domain.models import OccupationRecord, TaskStatement

logger = logging.getLogger(__name__)

OCCUPATIONS_FILE = "onet-occupations.json"
TASKS_FILE = "onet-tasks.json"


class JsonOccupationDataAdapter:
    """Reads occupations and task statements from JSON files on disk."""

    def __init__(self, settings: Settings) -> None:
        self._data_dir = Path(settings.data_dir)
        logger.debug("JsonOccupationDataAdapter ready | data_dir=%s", self._data_dir)

    # ── OccupationDataPort implementation ──────────────────────────────────

    def load_occupations(self) -> dict[str, OccupationRecord]:
        raw = self._read_json(OCCUPATIONS_FILE)
        occupations: dict[str, OccupationRecord] = {}
        try:
            for code, item in raw.items():
                occupations[code] = OccupationRecord.model_validate(
                    {**item, "code": item.get("code", code)}
                )
        except (ValidationError, AttributeError) as exc:
            raise DataLoadError(f"Malformed occupation record in {OCCUPATIONS_FILE}: {exc}") from exc

        logger.info("Loaded %d occupations", len(occupations))
        return occupations

    def load_tasks(self) -> dict[str, list[TaskStatement]]:
        raw = self._read_json(TASKS_FILE)
        tasks: dict[str, list[TaskStatement]] = {}
        try:
            for code, items in raw.items():
                tasks[code] = [_to_task(item) for item in items]
        except (ValidationError, AttributeError, KeyError, TypeError) as exc:
            raise DataLoadError(f"Malformed task statement in {TASKS_FILE}: {exc}") from exc

        logger.info(
            "Loaded %d task statements across %d occupations",
            sum(len(t) for t in tasks.values()),
            len(tasks),
        )
        return tasks

    # ── Private helpers ────────────────────────────────────────────────────

    def _read_json(self, filename: str) -> dict:
        path = self._data_dir / filename
        if not path.exists():
            raise DataLoadError(
                f"{path} not found. Run workforce-build-data or set DATA_DIR."
            )
        try:
            with path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise DataLoadError(f"Failed to read {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataLoadError(f"{path} must contain a JSON object keyed by code")
        return data


def _to_task(item: dict) -> TaskStatement:
    """Map the on-disk task shape (``task`` holds the text) to TaskStatement."""
    return TaskStatement(
        id=str(item["id"]),
        text=item.get("task") or item.get("text") or "",
        type=item.get("type") or "",
        date=item.get("date") or "",
        source=item.get("source") or None,
    )
