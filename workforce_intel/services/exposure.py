"""
services/exposure.py
──────────────────────────────────────────────────────────────────────────────
Deterministic aggregate statistics over a set of ClassifiedTasks.

  automate / augment / retain %  — category counts over total, rounded;
                                   retain absorbs the rounding slack so the
                                   three always sum to exactly 100
  overall_exposure_score         — round(mean automation_potential)
  exposure_category              — <30 low, <50 moderate, <70 high,
                                   else very-high
"""
from __future__ import annotations

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal

from workforce_intel.domain.models import (
    AutomationExposure,
    ClassifiedTask,
    ExposureCategory,
    TaskClassification,
)

# (upper bound exclusive, category), checked in order
EXPOSURE_THRESHOLDS: tuple[tuple[int, ExposureCategory], ...] = (
    (30, ExposureCategory.LOW),
    (50, ExposureCategory.MODERATE),
    (70, ExposureCategory.HIGH),
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero (Python's round() is banker's rounding)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def exposure_category(score: int) -> ExposureCategory:
    for bound, category in EXPOSURE_THRESHOLDS:
        if score < bound:
            return category
    return ExposureCategory.VERY_HIGH


def summarize(tasks: list[ClassifiedTask]) -> AutomationExposure:
    """Compute the AutomationExposure summary for classified tasks."""
    total = len(tasks)
    if total == 0:
        return AutomationExposure(
            automate_percentage=0,
            augment_percentage=0,
            retain_percentage=0,
            overall_exposure_score=0,
            exposure_category=ExposureCategory.LOW,
            summary="No tasks were classified.",
        )

    counts = Counter(t.classification for t in tasks)
    automate = round_half_up(counts[TaskClassification.AUTOMATE] / total * 100)
    augment = round_half_up(counts[TaskClassification.AUGMENT] / total * 100)
    if automate + augment > 100:
        augment = 100 - automate
    retain = 100 - automate - augment

    score = round_half_up(sum(t.automation_potential for t in tasks) / total)
    category = exposure_category(score)

    return AutomationExposure(
        automate_percentage=automate,
        augment_percentage=augment,
        retain_percentage=retain,
        overall_exposure_score=score,
        exposure_category=category,
        summary=f"This role has {category.value} automation exposure.",
    )
