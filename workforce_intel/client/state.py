"""
client/state.py
──────────────────────────────────────────────────────────────────────────────
Progressive view state for one streamed analysis.

apply_event() is a pure reducer: (state, StreamEvent) → new state.  It never
mutates its input, so a UI can keep the previous snapshot for diffing.

  idle ──analyze──► connecting ──first event──► streaming
                                                    │
                          complete ◄────────────────┼────────► error
                                                    │
  reset / cancel (any status) ──────────────────────┴──► idle

Rules:
  taxonomy        sets taxonomy; never cleared afterwards except by reset
  tasks_pending   sets pending_tasks
  classification  sets tasks / exposure / skills; clears pending_tasks
  complete        status complete, progress 100, analysis_date
  error           status error, error message (may arrive at any stage)

Progress never decreases.  Events arriving after a terminal event are
ignored.  Malformed payloads are dropped with a warning and leave the state
untouched.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, ValidationError

from workforce_intel.domain.models import (
    AutomationExposure,
    CapabilityLevel,
    ClassificationPayload,
    ClassifiedTask,
    CompletionInfo,
    ErrorInfo,
    EventType,
    PendingTasks,
    SkillImplication,
    StreamEvent,
    TaxonomyResolution,
    WireModel,
)

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    IDLE       = "idle"
    CONNECTING = "connecting"
    STREAMING  = "streaming"
    COMPLETE   = "complete"
    ERROR      = "error"


_FINISHED = frozenset({AnalysisStatus.COMPLETE, AnalysisStatus.ERROR})


class StreamingAnalysisState(WireModel):
    """Everything a UI needs to render an in-progress or finished analysis."""

    model_config = ConfigDict(frozen=True)

    status:              AnalysisStatus = AnalysisStatus.IDLE
    progress:            int = Field(0, ge=0, le=100)
    job_title:           Optional[str] = None
    capability_level:    CapabilityLevel = CapabilityLevel.MODERATE
    taxonomy:            Optional[TaxonomyResolution] = None
    pending_tasks:       Optional[PendingTasks] = None
    tasks:               list[ClassifiedTask] = Field(default_factory=list)
    automation_exposure: Optional[AutomationExposure] = None
    skill_implications:  list[SkillImplication] = Field(default_factory=list)
    error:               Optional[str] = None
    analysis_date:       Optional[str] = None
    total_time_ms:       Optional[int] = None

    @property
    def is_finished(self) -> bool:
        return self.status in _FINISHED


def initial_state() -> StreamingAnalysisState:
    return StreamingAnalysisState()


def reset() -> StreamingAnalysisState:
    """Discard everything accumulated so far."""
    return initial_state()


def start(
    job_title: str,
    capability_level: CapabilityLevel = CapabilityLevel.MODERATE,
) -> StreamingAnalysisState:
    """Fresh state for a new request whose connection is being opened."""
    return StreamingAnalysisState(
        status=AnalysisStatus.CONNECTING,
        job_title=job_title,
        capability_level=capability_level,
    )


def apply_event(state: StreamingAnalysisState, event: StreamEvent) -> StreamingAnalysisState:
    """Fold one event into ``state`` and return the new state."""
    if state.is_finished:
        logger.warning("Ignoring %s event after terminal status %s", event.type.value, state.status.value)
        return state

    try:
        update = _update_for(event)
    except ValidationError as exc:
        logger.warning(
            "Dropping malformed %s event: %d validation error(s)",
            event.type.value,
            exc.error_count(),
        )
        return state

    update.setdefault("status", AnalysisStatus.STREAMING)
    update["progress"] = max(state.progress, event.progress, update.get("progress", 0))
    return state.model_copy(update=update)


def _update_for(event: StreamEvent) -> dict:
    data = event.data
    if event.type == EventType.TAXONOMY:
        return {"taxonomy": TaxonomyResolution.model_validate(data)}

    if event.type == EventType.TASKS_PENDING:
        return {"pending_tasks": PendingTasks.model_validate(data)}

    if event.type == EventType.CLASSIFICATION:
        payload = ClassificationPayload.model_validate(data)
        return {
            "pending_tasks": None,
            "tasks": payload.tasks,
            "automation_exposure": payload.automation_exposure,
            "skill_implications": payload.skill_implications,
        }

    if event.type == EventType.COMPLETE:
        info = CompletionInfo.model_validate(data)
        return {
            "status": AnalysisStatus.COMPLETE,
            "progress": 100,
            "analysis_date": info.analysis_date,
            "total_time_ms": info.total_time_ms,
        }

    # EventType.ERROR
    if not isinstance(data.get("message"), str):
        data = {"message": "Analysis failed"}
    return {"status": AnalysisStatus.ERROR, "error": ErrorInfo.model_validate(data).message}


def apply_frame(state: StreamingAnalysisState, raw: str) -> StreamingAnalysisState:
    """Parse one wire payload (the JSON of a ``data:`` frame) and apply it."""
    try:
        event = StreamEvent.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Dropping malformed stream frame (%s): %.120s", type(exc).__name__, raw)
        return state
    return apply_event(state, event)


def fold(
    events: Iterable[StreamEvent],
    state: Optional[StreamingAnalysisState] = None,
) -> StreamingAnalysisState:
    """Apply ``events`` in order, starting from ``state`` (idle by default)."""
    state = state if state is not None else initial_state()
    for event in events:
        state = apply_event(state, event)
    return state
