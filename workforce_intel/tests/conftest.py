"""
tests/conftest.py
──────────────────────────────────────────────────────────────────────────────
Shared pytest fixtures and mock adapter implementations.

Mock adapters implement the Port Protocols via structural subtyping — they do
NOT inherit from any base class.  pytest uses them to test service logic
without LLM credentials, network access, or O*NET files on disk.

Fixture hierarchy:
  settings       → Settings with test defaults
  mock_data      → implements OccupationDataPort (in-memory occupations/tasks)
  mock_llm       → implements LLMPort (answers with one item per prompted task)
  failing_llm    → implements LLMPort (raises LLMError)
  index / task_store / matcher → built from mock_data
  orchestrator   → AnalysisOrchestrator wired with mock_data + mock_llm
"""
from __future__ import annotations

import json
import re

import pytest

from workforce_intel.config.settings import Settings
from workforce_intel.domain.exceptions import LLMError
from workforce_intel.domain.models import OccupationRecord, TaskStatement
from workforce_intel.services.container import build_orchestrator
from workforce_intel.services.matcher import OccupationMatcher
from workforce_intel.services.occupation_index import OccupationIndex
from workforce_intel.services.task_store import TaskStore


# ── Settings fixture ───────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def settings(tmp_path_factory) -> Settings:
    """Return a Settings instance with sane test defaults."""
    return Settings(
        llm_provider="anthropic",
        anthropic_api_key="test-key",
        anthropic_model="claude-test",
        anthropic_max_tokens=1000,
        openai_api_key="sk-test-key",
        openai_llm_model="gpt-test",
        llm_temperature=0.3,
        data_dir=tmp_path_factory.mktemp("data"),
        task_limit=25,
        match_limit=5,
        llm_timeout=5,
        host="127.0.0.1",
        port=8000,
    )


# ── In-memory O*NET fixture data ───────────────────────────────────────────

_OCCUPATIONS: list[tuple[str, str, list[str]]] = [
    ("15-2051.00", "Data Scientists",
     ["Data Analytics Scientist", "Machine Learning Scientist"]),
    ("11-1011.00", "Chief Executives",
     ["Chief Executive Officer", "CEO", "Chief Operating Officer"]),
    ("11-3131.00", "Training and Development Managers",
     ["Chief Learning Officer", "Training Director"]),
    ("13-1151.00", "Training and Development Specialists",
     ["Learning Specialist", "Corporate Trainer"]),
    ("29-1141.00", "Registered Nurses",
     ["Nurse", "Staff Nurse"]),
    ("15-1252.00", "Software Developers",
     ["Software Engineer", "Application Developer"]),
    ("23-2011.00", "Paralegals and Legal Assistants",
     ["Paralegal", "Legal Assistant"]),
    # No task statements: must never be returned by search.
    ("43-9061.00", "Office Clerks, General",
     ["Clerk", "Office Assistant"]),
]

# Paralegals get 40 tasks so truncation to 25 is observable.
_TASK_COUNTS = {"23-2011.00": 40}


def make_occupations() -> dict[str, OccupationRecord]:
    return {
        code: OccupationRecord(
            code=code,
            title=title,
            description=f"{title} description.",
            alternate_titles=tuple(alts),
        )
        for code, title, alts in _OCCUPATIONS
    }


def make_tasks() -> dict[str, list[TaskStatement]]:
    tasks: dict[str, list[TaskStatement]] = {}
    task_id = 1000
    for code, title, _ in _OCCUPATIONS:
        if code == "43-9061.00":
            continue
        items = []
        for n in range(1, _TASK_COUNTS.get(code, 3) + 1):
            task_id += 1
            items.append(
                TaskStatement(
                    id=str(task_id),
                    text=f"{title} task number {n}.",
                    type="Core",
                    date="08/2023",
                    source="Incumbent",
                )
            )
        tasks[code] = items
    return tasks


class MockDataAdapter:
    """In-memory OccupationDataPort."""

    def load_occupations(self) -> dict[str, OccupationRecord]:
        return make_occupations()

    def load_tasks(self) -> dict[str, list[TaskStatement]]:
        return make_tasks()


# ── Mock LLM adapters ──────────────────────────────────────────────────────

_NUMBERED_LINE = re.compile(r"^(\d+)\. (.*)$", re.MULTILINE)
_CYCLE = [("automate", 85), ("augment", 55), ("retain", 20)]


def canned_classification(n_tasks: int, with_skills: bool = True) -> str:
    """Model-shaped JSON reply classifying ``n_tasks`` tasks in a fixed cycle."""
    tasks = []
    for i in range(n_tasks):
        label, potential = _CYCLE[i % len(_CYCLE)]
        tasks.append(
            {
                "taskNumber": i + 1,
                "task": f"task {i + 1}",
                "classification": label,
                "automationPotential": potential,
                "reasoning": f"Reasoning for task {i + 1}.",
                "aiCapabilities": ["Pattern recognition"],
                "humanAdvantages": ["Judgment"],
                "dimensionScores": {"taskStructure": "+20"},
            }
        )
    reply: dict = {"tasks": tasks}
    if with_skills:
        reply["skills"] = [
            {
                "skillName": "Data entry",
                "currentRelevance": "decreasing",
                "futureOutlook": "Largely automated.",
                "rationale": "Driven by task 1.",
                "developmentPriority": "low",
                "adjacentSkills": ["Data validation"],
                "relatedTaskNumbers": [1],
            },
            {
                "skillName": "Stakeholder communication",
                "currentRelevance": "increasing",
                "futureOutlook": "More valuable.",
                "rationale": "Driven by tasks 2 and 3.",
                "developmentPriority": "high",
                "adjacentSkills": [],
                "relatedTaskNumbers": [2, 3],
            },
        ]
    return json.dumps(reply)


class MockLLMAdapter:
    """Answers every prompt with one classification per numbered task line."""

    model_name = "mock-llm"

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def generate_json(self, system_prompt: str, user_message: str) -> str | None:
        self.calls.append((system_prompt, user_message))
        n_tasks = len(_NUMBERED_LINE.findall(user_message))
        return canned_classification(n_tasks)


class FailingLLMAdapter:
    """Simulates a provider outage."""

    model_name = "mock-llm-failing"

    def __init__(self) -> None:
        self.calls = 0

    def generate_json(self, system_prompt: str, user_message: str) -> str | None:
        self.calls += 1
        raise LLMError("Anthropic API returned HTTP 529")


class StaticLLMAdapter:
    """Returns the same raw reply for every prompt."""

    model_name = "mock-llm-static"

    def __init__(self, reply: str | None) -> None:
        self.reply = reply

    def generate_json(self, system_prompt: str, user_message: str) -> str | None:
        return self.reply


# ── pytest fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def mock_data():
    return MockDataAdapter()


@pytest.fixture
def mock_llm():
    return MockLLMAdapter()


@pytest.fixture
def failing_llm():
    return FailingLLMAdapter()


@pytest.fixture
def task_store():
    return TaskStore(make_tasks())


@pytest.fixture
def index(task_store):
    return OccupationIndex(make_occupations(), searchable_codes=task_store.codes)


@pytest.fixture
def matcher(index):
    return OccupationMatcher(index)


@pytest.fixture
def orchestrator(settings, mock_data, mock_llm):
    return build_orchestrator(settings, data=mock_data, llm=mock_llm)


@pytest.fixture
def failing_orchestrator(settings, mock_data, failing_llm):
    return build_orchestrator(settings, data=mock_data, llm=failing_llm)


@pytest.fixture
def canned_reply():
    """Factory: ``canned_reply(n)`` → model-shaped JSON for ``n`` tasks."""
    return canned_classification


@pytest.fixture
def static_llm():
    """Factory: ``static_llm(reply)`` → LLM that always returns ``reply``."""
    return StaticLLMAdapter
