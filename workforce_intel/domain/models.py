"""
domain/models.py
──────────────────────────────────────────────────────────────────────────────
Pure domain objects — Pydantic models with no imports from adapters or ports.

These models are the lingua franca of the entire system:
  • adapters produce and consume them
  • services orchestrate them
  • interfaces (CLI, Flask API, stream client) serialise them

Field names are snake_case in Python and camelCase on the wire
(``automation_potential`` ⇄ ``automationPotential``).  Both spellings are
accepted on input; ``to_dict()`` always emits camelCase.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ── Enums ──────────────────────────────────────────────────────────────────────

class CapabilityLevel(str, Enum):
    """Assumed pace of AI capability growth, communicated to the classifier."""
    CONSERVATIVE = "conservative"
    MODERATE     = "moderate"
    BOLD         = "bold"


class ConfidenceLevel(str, Enum):
    HIGH   = "high"
    MEDIUM = "medium"
    LOW    = "low"


class MatchType(str, Enum):
    EXACT     = "exact"      # query equals a primary title
    PRIMARY   = "primary"    # matched through a primary title
    ALTERNATE = "alternate"  # matched through an alternate title


class TaskClassification(str, Enum):
    AUTOMATE = "automate"
    AUGMENT  = "augment"
    RETAIN   = "retain"


class ExposureCategory(str, Enum):
    LOW       = "low"
    MODERATE  = "moderate"
    HIGH      = "high"
    VERY_HIGH = "very-high"


class SkillRelevance(str, Enum):
    INCREASING = "increasing"
    STABLE     = "stable"
    DECREASING = "decreasing"


class DevelopmentPriority(str, Enum):
    HIGH   = "high"
    MEDIUM = "medium"
    LOW    = "low"


class EventType(str, Enum):
    """Stream event types, in the order a successful analysis emits them."""
    TAXONOMY       = "taxonomy"
    TASKS_PENDING  = "tasks_pending"
    CLASSIFICATION = "classification"
    COMPLETE       = "complete"
    ERROR          = "error"


TERMINAL_EVENTS = frozenset({EventType.COMPLETE, EventType.ERROR})


class WireModel(BaseModel):
    """Base for every model that crosses the HTTP boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        """Serialise to a JSON-safe dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# ── Static taxonomy data ───────────────────────────────────────────────────────

class OccupationRecord(WireModel):
    """One O*NET-SOC occupation.  Loaded once at start-up, never mutated."""

    model_config = ConfigDict(frozen=True)

    code:             str
    title:            str
    description:      str = ""
    alternate_titles: tuple[str, ...] = ()


class SearchEntry(WireModel):
    """A searchable title (primary or alternate) pointing at an occupation code."""

    model_config = ConfigDict(frozen=True)

    title:         str
    code:          str
    is_primary:    bool
    primary_title: Optional[str] = None


class ScoredEntry(SearchEntry):
    """A SearchEntry together with the matcher score it received."""

    score: float = Field(..., ge=0, le=100)


class TaskStatement(WireModel):
    """One O*NET task statement.  Source order is significant."""

    model_config = ConfigDict(frozen=True)

    id:     str
    text:   str
    type:   str = ""
    date:   str = ""
    source: Optional[str] = None


# ── Matcher output ─────────────────────────────────────────────────────────────

class MatchAlternative(WireModel):
    title: str
    code:  str
    score: float


class MatchResult(WireModel):
    """Best occupation for a free-text job title, with a confidence signal."""

    occupation:    OccupationRecord
    confidence:    ConfidenceLevel
    match_type:    MatchType
    matched_title: str
    score:         float = Field(..., ge=0, le=100)
    alternatives:  list[MatchAlternative] = Field(default_factory=list)


# ── Input ──────────────────────────────────────────────────────────────────────

class AnalyzeRequest(WireModel):
    """Validated input to the AnalysisOrchestrator."""

    job_title: str = Field(..., max_length=200,
                           description="Free-text job title to analyse")
    capability_level: CapabilityLevel = Field(
        CapabilityLevel.MODERATE,
        description="AI capability assumption used for classification thresholds",
    )

    @field_validator("job_title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("job title must not be blank")
        return v


# ── Classification output ──────────────────────────────────────────────────────

class ClassifiedTask(WireModel):
    """A TaskStatement after classification; ``id`` comes from the statement."""

    id:                   str
    name:                 str
    description:          str
    classification:       TaskClassification
    automation_potential: int = Field(..., ge=0, le=100)
    reasoning:            str
    ai_capabilities:      list[str] = Field(default_factory=list)
    human_advantages:     list[str] = Field(default_factory=list)
    dimension_scores:     dict[str, str] = Field(default_factory=dict)


class SkillImplication(WireModel):
    id:                   str
    skill_name:           str
    current_relevance:    SkillRelevance = SkillRelevance.STABLE
    future_outlook:       str = ""
    rationale:            str = ""
    development_priority: DevelopmentPriority = DevelopmentPriority.MEDIUM
    adjacent_skills:      list[str] = Field(default_factory=list)
    related_tasks:        list[str] = Field(default_factory=list)


class ClassificationOutcome(WireModel):
    """Normalised result of one classification gateway call."""

    tasks:  list[ClassifiedTask]
    skills: list[SkillImplication] = Field(default_factory=list)


class AutomationExposure(WireModel):
    """Aggregate statistics derived from a set of ClassifiedTasks."""

    automate_percentage:    int = Field(..., ge=0, le=100)
    augment_percentage:     int = Field(..., ge=0, le=100)
    retain_percentage:      int = Field(..., ge=0, le=100)
    overall_exposure_score: int = Field(..., ge=0, le=100)
    exposure_category:      ExposureCategory
    summary:                str = ""


# ── Stream event payloads ──────────────────────────────────────────────────────

class TaxonomyResolution(WireModel):
    input_title:        str
    resolved_title:     str
    onet_code:          str
    confidence:         ConfidenceLevel
    match_type:         MatchType
    matched_title:      str
    alternative_titles: list[str] = Field(default_factory=list)
    match_reasoning:    str = ""


class PendingTask(WireModel):
    id:          str
    description: str


class PendingTasks(WireModel):
    task_count: int
    tasks:      list[PendingTask]


class ClassificationPayload(WireModel):
    tasks:               list[ClassifiedTask]
    automation_exposure: AutomationExposure
    skill_implications:  list[SkillImplication] = Field(default_factory=list)


class CompletionInfo(WireModel):
    analysis_date: str
    total_time_ms: int


class ErrorInfo(WireModel):
    message:     str
    status_code: int = 500


class StreamEvent(WireModel):
    """One self-contained event of an analysis stream."""

    type:      EventType
    data:      dict[str, Any] = Field(default_factory=dict)
    timestamp: int
    progress:  int = Field(..., ge=0, le=100)

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENTS


# ── Synchronous response ───────────────────────────────────────────────────────

class JobAnalysis(WireModel):
    """Complete analysis, as returned by the non-streaming endpoint."""

    id:                  str
    job_title:           str
    taxonomy_resolution: TaxonomyResolution
    tasks:               list[ClassifiedTask]
    automation_exposure: AutomationExposure
    skill_implications:  list[SkillImplication] = Field(default_factory=list)
    capability_level:    CapabilityLevel
    analysis_date:       str
    total_time_ms:       int = 0
