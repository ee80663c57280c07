"""
services/analysis.py
──────────────────────────────────────────────────────────────────────────────
Pipeline orchestrator: match → tasks → classify → summarise.

One core pipeline (_stages) produces typed stage outputs in order; two thin
adapters expose it:

  stream(payload)   → Iterator[StreamEvent]  (server-sent events)
  analyze(payload)  → JobAnalysis            (single JSON response)

Per-request state machine:

  received ──validate──► match ──► taxonomy (10) ──► tasks_pending (15)
      │                    │                            │
      ▼                    ▼                            ▼
    error               error                     classify (slow)
                                                        │
                                   error ◄──────────────┤
                                                        ▼
                                  classification (95) ──► complete (100)

Every failure short-circuits to exactly one terminal ``error`` event; no
partial results are produced after it.  The classification gateway is called
once per request with no timeout, retry, or cache at this layer.
"""
from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError

from workforce_intel.config.settings import Settings
from workforce_intel.domain.exceptions import (
    AuthenticationError,
    ClassificationError,
    InvalidRequestError,
    NoTaskDataError,
    OccupationNotFoundError,
    WorkforceError,
)
from workforce_intel.domain.models import (
    AnalyzeRequest,
    ClassificationPayload,
    CompletionInfo,
    ConfidenceLevel,
    ErrorInfo,
    EventType,
    JobAnalysis,
    MatchResult,
    MatchType,
    PendingTask,
    PendingTasks,
    StreamEvent,
    TaxonomyResolution,
    WireModel,
)
from workforce_intel.ports.classification_port import ClassificationPort
from workforce_intel.services.exposure import summarize
from workforce_intel.services.matcher import OccupationMatcher
from workforce_intel.services.query_log import QueryLogger
from workforce_intel.services.task_store import TaskStore

logger = logging.getLogger(__name__)

PROGRESS = {
    EventType.TAXONOMY: 10,
    EventType.TASKS_PENDING: 15,
    EventType.CLASSIFICATION: 95,
    EventType.COMPLETE: 100,
}
ALTERNATIVE_TITLE_LIMIT = 5


def _epoch_ms() -> int:
    return int(time.time() * 1000)


# ── Per-request bookkeeping ────────────────────────────────────────────────

@dataclass
class _Stage:
    type: EventType
    payload: WireModel

    @property
    def progress(self) -> int:
        return PROGRESS[self.type]


class _Run:
    """Mutable state of one analysis request (never shared)."""

    def __init__(self, clock: Callable[[], int]) -> None:
        self._clock = clock
        self._last_ts = 0
        self._started = time.monotonic()
        self.progress = 0
        self.job_title = "unknown"
        self.capability_level = "moderate"

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._started) * 1000)

    def stamp(self) -> int:
        # Wall-clock steps backwards must not reorder events.
        self._last_ts = max(self._last_ts, self._clock())
        return self._last_ts

    def event(self, stage: _Stage) -> StreamEvent:
        self.progress = stage.progress
        return StreamEvent(
            type=stage.type,
            data=stage.payload.to_dict(),
            timestamp=self.stamp(),
            progress=stage.progress,
        )

    def error_event(self, message: str, status_code: int) -> StreamEvent:
        return StreamEvent(
            type=EventType.ERROR,
            data=ErrorInfo(message=message, status_code=status_code).to_dict(),
            timestamp=self.stamp(),
            progress=self.progress,
        )


# ── Helpers ────────────────────────────────────────────────────────────────

def validate_request(payload: Any) -> AnalyzeRequest:
    """Turn a raw request body into an AnalyzeRequest.

    Raises:
        InvalidRequestError: With a user-facing message.
    """
    if isinstance(payload, AnalyzeRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidRequestError("Request body must be a JSON object")
    try:
        return AnalyzeRequest.model_validate(payload)
    except ValidationError as exc:
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else ""
            if field in ("jobTitle", "job_title"):
                if err["type"] == "string_too_long":
                    raise InvalidRequestError("Job title is too long") from exc
                raise InvalidRequestError("Job title is required") from exc
        raise InvalidRequestError("Invalid capability level") from exc


def match_reasoning(match: MatchResult) -> str:
    """Human-readable explanation of how a title was resolved."""
    resolved = match.occupation.title
    if match.match_type == MatchType.EXACT:
        text = f"Exact match to O*NET occupation {resolved}"
    elif match.match_type == MatchType.PRIMARY:
        text = f"Matched to {resolved} via its primary title"
    else:
        text = f'Matched to {resolved} via alternate title "{match.matched_title}"'

    if match.confidence == ConfidenceLevel.HIGH:
        return f"{text} (high confidence)."
    suffix = f"{text} ({match.confidence.value} confidence"
    if match.alternatives:
        others = ", ".join(a.title for a in match.alternatives)
        return f"{suffix}; other candidates: {others})."
    return f"{suffix})."


def user_message(exc: WorkforceError) -> str:
    if isinstance(exc, AuthenticationError):
        return f"The AI classification service is not configured correctly: {exc}"
    return str(exc)


# ── Service class ──────────────────────────────────────────────────────────

class AnalysisOrchestrator:
    """Sequences matcher, task store, and classification gateway.

    Inject via services/container.py — do not instantiate directly in
    application code.

    Args:
        matcher:      OccupationMatcher over the shared index.
        task_store:   Shared TaskStore.
        classifier:   Any object satisfying ClassificationPort.
        settings:     Shared application settings.
        query_logger: Analytics sink (one QUERY_LOG line per request).
        clock:        Millisecond epoch clock, injectable for tests.
    """

    def __init__(
        self,
        matcher: OccupationMatcher,
        task_store: TaskStore,
        classifier: ClassificationPort,
        settings: Settings,
        query_logger: Optional[QueryLogger] = None,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._matcher = matcher
        self._task_store = task_store
        self._classifier = classifier
        self._task_limit = settings.task_limit
        self._query_logger = query_logger or QueryLogger()
        self._clock = clock

    @property
    def matcher(self) -> OccupationMatcher:
        return self._matcher

    @property
    def task_store(self) -> TaskStore:
        return self._task_store

    # ── Transport adapters ─────────────────────────────────────────────────

    def stream(self, payload: Any) -> Iterator[StreamEvent]:
        """Run one analysis as an ordered, finite event sequence.

        Always ends with exactly one terminal event (``complete`` or
        ``error``).  Closing the generator early (client disconnect) stops
        the pipeline without emitting anything further.
        """
        run = _Run(self._clock)
        try:
            for stage in self._stages(payload, run):
                yield run.event(stage)
        except WorkforceError as exc:
            yield run.error_event(user_message(exc), exc.status_code)
        except GeneratorExit:
            logger.info("Analysis stream closed by client | job_title=%r", run.job_title)
            raise
        except Exception:
            logger.exception("Unexpected analysis failure | job_title=%r", run.job_title)
            yield run.error_event("An unexpected error occurred", 500)

    def analyze(self, payload: Any) -> JobAnalysis:
        """Run one analysis to completion and return the aggregate result.

        Raises:
            WorkforceError: The first stage failure; its ``status_code``
                classifies it for the HTTP layer.
        """
        run = _Run(self._clock)
        parts: dict[EventType, Any] = {}
        for stage in self._stages(payload, run):
            parts[stage.type] = stage.payload

        taxonomy: TaxonomyResolution = parts[EventType.TAXONOMY]
        classified: ClassificationPayload = parts[EventType.CLASSIFICATION]
        completion: CompletionInfo = parts[EventType.COMPLETE]
        return JobAnalysis(
            id=f"analysis-{uuid.uuid4().hex[:12]}",
            job_title=run.job_title,
            taxonomy_resolution=taxonomy,
            tasks=classified.tasks,
            automation_exposure=classified.automation_exposure,
            skill_implications=classified.skill_implications,
            capability_level=run.capability_level,
            analysis_date=completion.analysis_date,
            total_time_ms=completion.total_time_ms,
        )

    # ── Core pipeline ──────────────────────────────────────────────────────

    def _stages(self, payload: Any, run: _Run) -> Iterator[_Stage]:
        """Shared pipeline; logs one QUERY_LOG line on success or failure."""
        if isinstance(payload, Mapping) and isinstance(payload.get("jobTitle"), str):
            run.job_title = payload["jobTitle"]
        try:
            yield from self._pipeline(payload, run)
        except WorkforceError as exc:
            logger.warning(
                "Analysis failed | job_title=%r error=%s: %s",
                run.job_title,
                type(exc).__name__,
                exc,
            )
            self._query_logger.log_error(
                run.job_title, str(run.capability_level), run.elapsed_ms(), str(exc)
            )
            raise
        except Exception as exc:
            self._query_logger.log_error(
                run.job_title,
                str(run.capability_level),
                run.elapsed_ms(),
                f"{type(exc).__name__}: {exc}",
            )
            raise

    def _pipeline(self, payload: Any, run: _Run) -> Iterator[_Stage]:
        # ── Validate ───────────────────────────────────────────────────────
        request = validate_request(payload)
        run.job_title = request.job_title
        run.capability_level = request.capability_level.value
        logger.info(
            "analyze | job_title=%r capability_level=%s",
            request.job_title[:80],
            request.capability_level.value,
        )

        # ── Stage 1: taxonomy resolution ──────────────────────────────────
        match = self._matcher.find_best_match(request.job_title)
        if match is None:
            raise OccupationNotFoundError(
                f'No O*NET occupation found matching "{request.job_title}"'
            )
        occupation = match.occupation
        yield _Stage(
            EventType.TAXONOMY,
            TaxonomyResolution(
                input_title=request.job_title,
                resolved_title=occupation.title,
                onet_code=occupation.code,
                confidence=match.confidence,
                match_type=match.match_type,
                matched_title=match.matched_title,
                alternative_titles=list(occupation.alternate_titles[:ALTERNATIVE_TITLE_LIMIT]),
                match_reasoning=match_reasoning(match),
            ),
        )

        # ── Stage 2: task retrieval (bounded) ─────────────────────────────
        tasks = self._task_store.get_tasks(occupation.code, limit=self._task_limit)
        if not tasks:
            raise NoTaskDataError(f'No task data available for "{occupation.title}"')
        yield _Stage(
            EventType.TASKS_PENDING,
            PendingTasks(
                task_count=len(tasks),
                tasks=[PendingTask(id=t.id, description=t.text) for t in tasks],
            ),
        )

        # ── Stage 3: classification (slow) ────────────────────────────────
        outcome = self._classifier.classify(tasks, occupation.title, request.capability_level)
        if [t.id for t in outcome.tasks] != [t.id for t in tasks]:
            raise ClassificationError(
                "Classification result does not match the submitted tasks"
            )
        exposure = summarize(outcome.tasks)
        yield _Stage(
            EventType.CLASSIFICATION,
            ClassificationPayload(
                tasks=outcome.tasks,
                automation_exposure=exposure,
                skill_implications=outcome.skills,
            ),
        )

        # ── Complete ───────────────────────────────────────────────────────
        elapsed = run.elapsed_ms()
        self._query_logger.log_success(
            request.job_title,
            occupation.code,
            match.matched_title,
            match.confidence,
            request.capability_level,
            elapsed,
            len(outcome.tasks),
        )
        logger.info(
            "Analysis complete | code=%s tasks=%d exposure=%d elapsed_ms=%d",
            occupation.code,
            len(outcome.tasks),
            exposure.overall_exposure_score,
            elapsed,
        )
        yield _Stage(
            EventType.COMPLETE,
            CompletionInfo(analysis_date=date.today().isoformat(), total_time_ms=elapsed),
        )
