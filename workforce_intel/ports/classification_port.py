"""
ports/classification_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the task classification gateway.

The orchestrator only ever talks to this Protocol.  The production
implementation is services/task_classifier.TaskClassifier (prompt building
+ LLMPort call + response normalisation); tests inject a fake.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from workforce_intel.domain.models import (
    CapabilityLevel,
    ClassificationOutcome,
    TaskStatement,
)


@runtime_checkable
class ClassificationPort(Protocol):
    """Contract for classifying an occupation's tasks."""

    @property
    def model_name(self) -> str:
        """Identifier of the model doing the classification."""
        ...

    def classify(
        self,
        tasks: list[TaskStatement],
        occupation_title: str,
        capability_level: CapabilityLevel,
    ) -> ClassificationOutcome:
        """Classify every task as automate / augment / retain.

        Args:
            tasks:            Bounded, ordered task list.
            occupation_title: Resolved O*NET title, used in the prompt.
            capability_level: Threshold profile communicated to the model.

        Returns:
            ClassificationOutcome with exactly one ClassifiedTask per input
            task, in input order.

        Raises:
            ClassificationError: On any failure, including missing
                credentials and malformed model output.
        """
        ...
