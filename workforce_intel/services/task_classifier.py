"""
services/task_classifier.py
──────────────────────────────────────────────────────────────────────────────
Stage 3 of the analysis pipeline: LLM task classification.

Responsibilities:
  1. Build the classification prompt (via config/prompts.py).
  2. Call the LLMPort exactly once — no retries, no fallbacks.
  3. Normalise the untrusted JSON reply into ClassificationOutcome.

parse_response() is the single validation boundary for model output.  It
either returns fully-populated ClassifiedTasks (one per input task, same
order, ids inherited from the TaskStatements) or raises ClassificationError.
Partially-valid data never leaves this module.

Defaults applied to otherwise valid items:
  missing lists / dicts            → empty
  automationPotential              → clamped to [0, 100]; missing → 0
  reasoning                        → "No reasoning provided"
  skill relevance / priority       → stable / medium when unrecognised

Hard failures:
  unparseable JSON, no "tasks" array, fewer items than tasks sent,
  unknown classification value
"""
from __future__ import annotations

import json
import logging
from typing import Any

from workforce_intel.config.prompts import build_system_prompt, build_user_message
from workforce_intel.domain.exceptions import ClassificationError
from workforce_intel.domain.models import (
    CapabilityLevel,
    ClassificationOutcome,
    ClassifiedTask,
    DevelopmentPriority,
    SkillImplication,
    SkillRelevance,
    TaskClassification,
    TaskStatement,
)
from workforce_intel.ports.llm_port import LLMPort

logger = logging.getLogger(__name__)

_CLASSIFICATIONS = {c.value: c for c in TaskClassification}
_RELEVANCE = {r.value: r for r in SkillRelevance}
_PRIORITY = {p.value: p for p in DevelopmentPriority}


class TaskClassifier:
    """Classify occupation tasks using an LLM.

    Implements ClassificationPort.

    Args:
        llm: Any object satisfying LLMPort.
    """

    def __init__(self, llm: LLMPort) -> None:
        self._llm = llm
        logger.debug("TaskClassifier init | model=%s", llm.model_name)

    @property
    def model_name(self) -> str:
        return self._llm.model_name

    # ── Public API ─────────────────────────────────────────────────────────

    def classify(
        self,
        tasks: list[TaskStatement],
        occupation_title: str,
        capability_level: CapabilityLevel,
    ) -> ClassificationOutcome:
        """Classify ``tasks`` for ``occupation_title``.

        Raises:
            ClassificationError: On any failure (AuthenticationError and
                LLMError from the adapter are subclasses and propagate as-is).
        """
        if not tasks:
            return ClassificationOutcome(tasks=[], skills=[])

        logger.info(
            "Classifying %d tasks | occupation=%r level=%s model=%s",
            len(tasks),
            occupation_title,
            capability_level.value,
            self._llm.model_name,
        )
        system = build_system_prompt(capability_level)
        user = build_user_message(occupation_title, tasks)

        raw = self._llm.generate_json(system, user)
        if not raw:
            raise ClassificationError("Classification model returned an empty response")

        outcome = self.parse_response(raw, tasks)
        logger.info(
            "Classification complete | tasks=%d skills=%d",
            len(outcome.tasks),
            len(outcome.skills),
        )
        return outcome

    def parse_response(
        self,
        raw: str,
        tasks: list[TaskStatement],
    ) -> ClassificationOutcome:
        """Validate and normalise a raw model reply.

        Raises:
            ClassificationError: When the reply cannot yield one valid
                classification per task.
        """
        parsed = extract_json_object(raw)
        if parsed is None:
            logger.error("Unparseable classification response: %.300s", raw)
            raise ClassificationError("Failed to parse classification response: no JSON object found")

        items = parsed.get("tasks")
        if not isinstance(items, list):
            raise ClassificationError("Invalid classification response: missing tasks array")
        if len(items) < len(tasks):
            raise ClassificationError(
                f"Invalid classification response: expected {len(tasks)} tasks, "
                f"got {len(items)}"
            )
        if len(items) > len(tasks):
            logger.warning(
                "Model returned %d tasks for %d inputs — extra items dropped",
                len(items),
                len(tasks),
            )

        classified = [
            _normalise_task(item, source, position)
            for position, (item, source) in enumerate(zip(items, tasks), 1)
        ]
        skills = _normalise_skills(parsed.get("skills"), classified)
        return ClassificationOutcome(tasks=classified, skills=skills)


# ── Normalisation helpers ──────────────────────────────────────────────────

def extract_json_object(text: str) -> dict | None:
    """Pull a JSON object out of a model reply.

    Tries, in order: the whole text, the text without markdown fences, and
    the span from the first '{' to the last '}'.
    """
    text = text.strip()
    candidates = [text]

    if text.startswith("```"):
        lines = text.split("\n")[1:]
        while lines and lines[-1].strip() in ("```", ""):
            lines = lines[:-1]
        candidates.append("\n".join(lines).strip())

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _clamp_potential(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(round(min(100.0, max(0.0, number))))


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


def _normalise_task(item: Any, source: TaskStatement, position: int) -> ClassifiedTask:
    if not isinstance(item, dict):
        raise ClassificationError(f"Invalid classification for task {position}: not an object")

    label = str(item.get("classification") or "").strip().lower()
    classification = _CLASSIFICATIONS.get(label)
    if classification is None:
        raise ClassificationError(
            f"Invalid classification for task {position}: {item.get('classification')!r}"
        )

    scores = item.get("dimensionScores")
    return ClassifiedTask(
        id=source.id,
        name=f"Task {position}",
        description=source.text or str(item.get("task") or ""),
        classification=classification,
        automation_potential=_clamp_potential(item.get("automationPotential")),
        reasoning=str(item.get("reasoning") or "No reasoning provided"),
        ai_capabilities=_str_list(item.get("aiCapabilities")),
        human_advantages=_str_list(item.get("humanAdvantages")),
        dimension_scores=(
            {str(k): str(v) for k, v in scores.items()} if isinstance(scores, dict) else {}
        ),
    )


def _normalise_skills(raw: Any, tasks: list[ClassifiedTask]) -> list[SkillImplication]:
    if not isinstance(raw, list):
        logger.warning("No skills found in classification response")
        return []

    skills: list[SkillImplication] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        numbers = item.get("relatedTaskNumbers")
        related = [
            tasks[n - 1].id
            for n in (numbers if isinstance(numbers, list) else [])
            if isinstance(n, int) and not isinstance(n, bool) and 0 < n <= len(tasks)
        ]
        skills.append(
            SkillImplication(
                id=f"skill-{len(skills) + 1}",
                skill_name=str(item.get("skillName") or "Unnamed skill"),
                current_relevance=_RELEVANCE.get(
                    str(item.get("currentRelevance") or "").lower(), SkillRelevance.STABLE
                ),
                future_outlook=str(item.get("futureOutlook") or "No outlook provided"),
                rationale=str(item.get("rationale") or "No rationale provided"),
                development_priority=_PRIORITY.get(
                    str(item.get("developmentPriority") or "").lower(),
                    DevelopmentPriority.MEDIUM,
                ),
                adjacent_skills=_str_list(item.get("adjacentSkills")),
                related_tasks=related,
            )
        )
    return skills
