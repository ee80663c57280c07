"""
interfaces/compare.py
──────────────────────────────────────────────────────────────────────────────
Side-by-side LLM comparison: run the same job titles through several models
and tabulate timing and classification mix per model.

Usage:
  # Default: two Claude models against three reference titles
  python -m workforce_intel.interfaces.compare

  # Explicit models (provider[:model]) and titles
  workforce-compare --model anthropic:claude-3-5-haiku-20241022 \\
                    --model openai:gpt-4o-mini \\
                    --title "Financial Analyst" --title "Registered Nurse"

  # Machine-readable output
  workforce-compare --json

Every model is called once per title, sequentially.  Failures are recorded
in the row and do not stop the run.

Exit codes:
  0 — every run succeeded
  1 — at least one run failed, or start-up error
  2 — argument error
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import time
from dataclasses import dataclass
from typing import Optional

from workforce_intel.config.settings import Settings
from workforce_intel.domain.exceptions import ConfigurationError, WorkforceError
from workforce_intel.domain.models import CapabilityLevel, JobAnalysis, TaskClassification
from workforce_intel.services.analysis import user_message

logger = logging.getLogger(__name__)

DEFAULT_TITLES = ["Financial Analyst", "Registered Nurse", "Chief Learning Officer"]
DEFAULT_MODELS = [
    "anthropic:claude-sonnet-4-20250514",
    "anthropic:claude-3-5-haiku-20241022",
]
SAMPLE_REASONING_CHARS = 200

# provider → Settings field holding its model name
_MODEL_FIELDS = {
    "anthropic": "anthropic_model",
    "openai": "openai_llm_model",
}


@dataclass(frozen=True)
class ComparisonResult:
    """One (job title, model) run."""

    job_title: str
    model: str
    response_time_ms: int
    task_count: int = 0
    automate: int = 0
    augment: int = 0
    retain: int = 0
    exposure_score: Optional[int] = None
    skill_count: int = 0
    sample_reasoning: str = ""
    error: Optional[str] = None

    @classmethod
    def from_analysis(cls, model: str, analysis: JobAnalysis) -> "ComparisonResult":
        counts = {c: 0 for c in TaskClassification}
        for task in analysis.tasks:
            counts[task.classification] += 1
        return cls(
            job_title=analysis.job_title,
            model=model,
            response_time_ms=analysis.total_time_ms,
            task_count=len(analysis.tasks),
            automate=counts[TaskClassification.AUTOMATE],
            augment=counts[TaskClassification.AUGMENT],
            retain=counts[TaskClassification.RETAIN],
            exposure_score=analysis.automation_exposure.overall_exposure_score,
            skill_count=len(analysis.skill_implications),
            sample_reasoning=(
                analysis.tasks[0].reasoning[:SAMPLE_REASONING_CHARS] if analysis.tasks else ""
            ),
        )

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def settings_for_model(settings: Settings, spec: str) -> tuple[Settings, str]:
    """Derive provider settings from ``provider[:model]``.

    Returns:
        (settings with provider and model applied, display label)

    Raises:
        ConfigurationError: If the provider is unknown.
    """
    provider, _, model = spec.partition(":")
    provider = provider.strip().lower()
    if provider not in _MODEL_FIELDS:
        raise ConfigurationError(
            f"Unknown provider '{provider}' in '{spec}'. "
            f"Valid values: {', '.join(sorted(_MODEL_FIELDS))}."
        )
    overrides = {"llm_provider": provider}
    if model.strip():
        overrides[_MODEL_FIELDS[provider]] = model.strip()
    derived = dataclasses.replace(settings, **overrides)
    return derived, f"{provider}:{getattr(derived, _MODEL_FIELDS[provider])}"


def compare_models(
    orchestrator,
    settings: Settings,
    titles: list[str],
    model_specs: list[str],
    level: CapabilityLevel = CapabilityLevel.MODERATE,
) -> list[ComparisonResult]:
    """Run every title through every model; one row per run, title-major."""
    from workforce_intel.services.container import _build_llm, with_llm

    runners = []
    for spec in model_specs:
        model_settings, label = settings_for_model(settings, spec)
        runners.append((label, with_llm(orchestrator, _build_llm(model_settings), model_settings)))

    results: list[ComparisonResult] = []
    for title in titles:
        for label, runner in runners:
            logger.info("compare | job_title=%r model=%s", title, label)
            started = time.monotonic()
            try:
                analysis = runner.analyze({"jobTitle": title, "capabilityLevel": level.value})
            except WorkforceError as exc:
                results.append(ComparisonResult(
                    job_title=title,
                    model=label,
                    response_time_ms=int((time.monotonic() - started) * 1000),
                    error=user_message(exc),
                ))
                continue
            results.append(ComparisonResult.from_analysis(label, analysis))
    return results


# ── Output ─────────────────────────────────────────────────────────────────

def _print_table(results: list[ComparisonResult]) -> None:
    """Markdown table per job title, one column per model."""
    titles = list(dict.fromkeys(r.job_title for r in results))
    for title in titles:
        rows = [r for r in results if r.job_title == title]
        print(f"\n### {title}\n")
        print("| Metric | " + " | ".join(r.model for r in rows) + " |")
        print("|---" * (len(rows) + 1) + "|")
        metrics = [
            ("Response time", lambda r: f"{r.response_time_ms / 1000:.1f}s"),
            ("Tasks classified", lambda r: str(r.task_count)),
            ("Automate", lambda r: str(r.automate)),
            ("Augment", lambda r: str(r.augment)),
            ("Retain", lambda r: str(r.retain)),
            ("Exposure score", lambda r: "-" if r.exposure_score is None else str(r.exposure_score)),
            ("Skills inferred", lambda r: str(r.skill_count)),
        ]
        for name, render in metrics:
            print(f"| {name} | " + " | ".join(render(r) for r in rows) + " |")
        for r in rows:
            if r.error:
                print(f"\n**{r.model} error:** {r.error}")
            elif r.sample_reasoning:
                print(f"\n**Sample reasoning ({r.model}):**\n> {r.sample_reasoning}")
    print()


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="workforce-compare",
        description="Compare task classification across LLM models.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--model", "-m",
        action="append",
        metavar="PROVIDER[:MODEL]",
        help="Model to compare; repeat for each. (default: two Claude models)",
    )
    p.add_argument(
        "--title", "-t",
        action="append",
        metavar="TEXT",
        help="Job title to analyse; repeat for each. (default: three reference titles)",
    )
    p.add_argument(
        "--level", "-l",
        choices=[c.value for c in CapabilityLevel],
        default=CapabilityLevel.MODERATE.value,
        help="AI capability assumption. (default: moderate)",
    )
    p.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output results as JSON.",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


def run(args: argparse.Namespace) -> int:
    """Execute the comparison described by ``args`` and print it."""
    from workforce_intel.config.settings import get_settings
    from workforce_intel.services.container import get_orchestrator

    try:
        settings = get_settings()
        orchestrator = get_orchestrator()
    except Exception as exc:
        logger.exception("Failed to initialise orchestrator")
        print(f"ERROR: Initialisation failed: {exc}", file=sys.stderr)
        return 1

    try:
        results = compare_models(
            orchestrator,
            settings,
            args.title or DEFAULT_TITLES,
            args.model or DEFAULT_MODELS,
            CapabilityLevel(args.level),
        )
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    if args.json_output:
        print(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
    else:
        _print_table(results)
    return 1 if any(r.error for r in results) else 0


def main() -> None:
    """Entry point for the workforce-compare console script."""
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    sys.exit(run(args))


if __name__ == "__main__":
    main()
