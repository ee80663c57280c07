"""
interfaces/cli.py
──────────────────────────────────────────────────────────────────────────────
Command-line interface for the workforce task analyser.

Usage:
  # Single analysis, run in-process (needs DATA_DIR and LLM credentials)
  python -m workforce_intel.interfaces.cli --title "Data Scientist"

  # Bold capability assumption
  python -m workforce_intel.interfaces.cli --title "Paralegal" --level bold

  # Batch file (one title per line)
  python -m workforce_intel.interfaces.cli --file titles.txt

  # Against a running server, via the streaming endpoint
  python -m workforce_intel.interfaces.cli --title "nurse" --url http://localhost:8000

  # Title suggestions only (no classification call)
  python -m workforce_intel.interfaces.cli --search "software dev"

  # Via installed entry-point (pyproject.toml [project.scripts])
  workforce-analyze --title "nurse" --json

Exit codes:
  0 — success
  1 — analysis or start-up error
  2 — argument error
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import requests

from workforce_intel.client.state import (
    AnalysisStatus,
    StreamingAnalysisState,
    apply_event,
    start,
)
from workforce_intel.client.stream_client import StreamingAnalysisClient
from workforce_intel.domain.models import CapabilityLevel

logger = logging.getLogger(__name__)


# ── Argument parser ────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="workforce-analyze",
        description="Estimate AI automation exposure for a job title.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--title", "-t",
        metavar="TEXT",
        help="Job title to analyse.",
    )
    p.add_argument(
        "--file", "-f",
        metavar="FILE",
        type=Path,
        help="Path to a text file with one job title per line.",
    )
    p.add_argument(
        "--search", "-s",
        metavar="TEXT",
        help="Only list matching occupation titles.",
    )
    p.add_argument(
        "--level", "-l",
        choices=[c.value for c in CapabilityLevel],
        default=CapabilityLevel.MODERATE.value,
        help="AI capability assumption. (default: moderate)",
    )
    p.add_argument(
        "--limit", "-k",
        type=int,
        default=10,
        help="Number of suggestions for --search. (default: 10)",
    )
    p.add_argument(
        "--url", "-u",
        metavar="URL",
        help="Base URL of a running workforce-serve instance.",
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


# ── Formatting helpers ─────────────────────────────────────────────────────

def _print_state_text(state: StreamingAnalysisState) -> None:
    """Pretty-print a finished StreamingAnalysisState to stdout."""
    print(f"\n{'─' * 60}")
    print(f"Job title : {state.job_title}")
    print(f"Level     : {state.capability_level.value}")
    if state.taxonomy:
        t = state.taxonomy
        print(f"Occupation: [{t.onet_code}] {t.resolved_title}  ({t.confidence.value} confidence)")
        print(f"            {t.match_reasoning}")
    print(f"{'─' * 60}")

    if state.status == AnalysisStatus.ERROR:
        print(f"  ERROR: {state.error}\n")
        return

    exposure = state.automation_exposure
    if exposure:
        print(
            f"  Exposure: {exposure.overall_exposure_score}/100 ({exposure.exposure_category.value})"
            f"  |  automate {exposure.automate_percentage}%"
            f"  augment {exposure.augment_percentage}%"
            f"  retain {exposure.retain_percentage}%"
        )
    for task in state.tasks:
        print(f"  {task.name:<9} [{task.classification.value:<8}] {task.automation_potential:>3}  {task.description}")
    if state.skill_implications:
        print("  Skills:")
        for skill in state.skill_implications:
            print(
                f"    - {skill.skill_name} ({skill.current_relevance.value}, "
                f"priority {skill.development_priority.value})"
            )
    if state.total_time_ms is not None:
        print(f"  Completed in {state.total_time_ms} ms")
    print()


def _print_progress(state: StreamingAnalysisState) -> None:
    """One stderr line per state change while an analysis is running."""
    if state.is_finished:
        stage = state.status.value
    elif state.pending_tasks:
        stage = f"classifying {state.pending_tasks.task_count} tasks"
    elif state.tasks:
        stage = "classified"
    elif state.taxonomy:
        stage = "resolved"
    else:
        stage = state.status.value
    print(f"  [{state.progress:>3}%] {stage}", file=sys.stderr)


def _print_state_json(state: StreamingAnalysisState) -> None:
    """Print a StreamingAnalysisState as JSON to stdout."""
    print(json.dumps(state.to_dict(), indent=2, ensure_ascii=False))


def _print_suggestions(query: str, results: list[dict], as_json: bool) -> None:
    if as_json:
        print(json.dumps({"query": query, "results": results}, indent=2, ensure_ascii=False))
        return
    print(f"\nSuggestions for {query!r}:")
    for r in results:
        marker = "" if r.get("isPrimary") else f"  (alt. of {r.get('primaryTitle')})"
        print(f"  {r['score']:>6.2f}  [{r['code']}] {r['title']}{marker}")
    print()


# ── Main logic ─────────────────────────────────────────────────────────────

def _load_titles_from_file(path: Path) -> list[str]:
    """Read job titles from a text file, one per line, skip blank/comment lines."""
    if not path.exists():
        print(f"ERROR: File not found: {path}", file=sys.stderr)
        sys.exit(2)
    lines = path.read_text(encoding="utf-8").splitlines()
    return [l.strip() for l in lines if l.strip() and not l.startswith("#")]


def analyze_local(
    orchestrator,
    title: str,
    level: CapabilityLevel,
    on_state: Optional[Callable[[StreamingAnalysisState], None]] = None,
) -> StreamingAnalysisState:
    """Run the pipeline in-process and fold its events like a remote client."""
    state = start(title, level)
    for event in orchestrator.stream({"jobTitle": title, "capabilityLevel": level.value}):
        state = apply_event(state, event)
        if on_state is not None:
            on_state(state)
    return state


def _search(args: argparse.Namespace) -> int:
    if args.url:
        try:
            response = requests.get(
                args.url.rstrip("/") + "/api/occupations/search",
                params={"q": args.search, "limit": args.limit},
                timeout=30,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            print(f"ERROR: search request failed: {exc}", file=sys.stderr)
            return 1
        try:
            results = response.json()["results"]
        except (ValueError, KeyError, TypeError) as exc:
            print(f"ERROR: unexpected search response: {exc!r}", file=sys.stderr)
            return 1
    else:
        from workforce_intel.services.container import get_orchestrator
        try:
            matcher = get_orchestrator().matcher
        except Exception as exc:
            logger.exception("Failed to initialise orchestrator")
            print(f"ERROR: Initialisation failed: {exc}", file=sys.stderr)
            return 1
        results = [r.to_dict() for r in matcher.search(args.search, args.limit)]

    _print_suggestions(args.search, results, args.json_output)
    return 0


def run(args: argparse.Namespace) -> int:
    """Execute the analyses requested by ``args``.

    Returns:
        Exit code (0 = success, 1 = error, 2 = bad arguments).
    """
    if args.search:
        return _search(args)

    if args.title:
        titles = [args.title]
    elif args.file:
        titles = _load_titles_from_file(args.file)
    else:
        print("ERROR: provide --title, --file or --search", file=sys.stderr)
        return 2

    level = CapabilityLevel(args.level)
    printer = _print_state_json if args.json_output else _print_state_text
    progress = None if args.json_output else _print_progress

    if args.url:
        client = StreamingAnalysisClient(args.url, on_state=progress)
        analyse = lambda title: client.analyze(title, level)  # noqa: E731
    else:
        from workforce_intel.services.container import get_orchestrator
        try:
            orchestrator = get_orchestrator()
        except Exception as exc:
            logger.exception("Failed to initialise orchestrator")
            print(f"ERROR: Initialisation failed: {exc}", file=sys.stderr)
            return 1
        analyse = lambda title: analyze_local(orchestrator, title, level, progress)  # noqa: E731

    exit_code = 0
    for title in titles:
        state = analyse(title)
        printer(state)
        if state.status != AnalysisStatus.COMPLETE:
            exit_code = 1
    return exit_code


def main() -> None:
    """Entry point for the workforce-analyze console script."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    if not (args.title or args.file or args.search):
        parser.print_help()
        sys.exit(2)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
