"""
tests/e2e/test_analysis_pipeline.py
──────────────────────────────────────────────────────────────────────────────
End-to-end tests for AnalysisOrchestrator with mock adapters.

Tests the full match → tasks → classify → summarise flow without any real
LLM or data files.  Both transports are exercised:

  stream(payload)   — ordered StreamEvents
  analyze(payload)  — aggregate JobAnalysis or a raised WorkforceError

Uses conftest fixtures: orchestrator, failing_orchestrator, mock_llm,
failing_llm, settings.
"""
from __future__ import annotations

import itertools
import json
import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from workforce_intel.adapters.anthropic_llm import AnthropicLLMAdapter
from workforce_intel.domain.exceptions import (
    AuthenticationError,
    InvalidRequestError,
    LLMError,
    NoTaskDataError,
    OccupationNotFoundError,
)
from workforce_intel.domain.models import EventType, JobAnalysis
from workforce_intel.services.analysis import AnalysisOrchestrator
from workforce_intel.services.container import UnavailableLLM
from workforce_intel.services.matcher import OccupationMatcher
from workforce_intel.services.occupation_index import OccupationIndex
from workforce_intel.services.task_classifier import TaskClassifier
from workforce_intel.services.task_store import TaskStore
from workforce_intel.tests.conftest import make_occupations, make_tasks

_HAPPY_ORDER = [
    EventType.TAXONOMY,
    EventType.TASKS_PENDING,
    EventType.CLASSIFICATION,
    EventType.COMPLETE,
]


def _payload(title: str, level: str = "moderate") -> dict:
    return {"jobTitle": title, "capabilityLevel": level}


def _orchestrator_with(llm, settings, clock=None, task_store=None) -> AnalysisOrchestrator:
    store = task_store or TaskStore(make_tasks())
    index = OccupationIndex(make_occupations(), searchable_codes=store.codes)
    kwargs = {"clock": clock} if clock else {}
    return AnalysisOrchestrator(
        matcher=OccupationMatcher(index),
        task_store=store,
        classifier=TaskClassifier(llm),
        settings=settings,
        **kwargs,
    )


def _html_post() -> MagicMock:
    """Patch target for requests.post: a 200 reply with an HTML body."""
    resp = MagicMock(status_code=200, ok=True, text="<html>upstream error</html>")
    resp.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>", 0)
    return MagicMock(return_value=resp)


# ── Streaming: happy path ──────────────────────────────────────────────────

class TestStreamHappyPath:

    def test_event_order_and_progress(self, orchestrator):
        events = list(orchestrator.stream(_payload("Registered Nurses")))
        assert [e.type for e in events] == _HAPPY_ORDER
        assert [e.progress for e in events] == [10, 15, 95, 100]
        assert events[-1].is_terminal
        assert sum(e.is_terminal for e in events) == 1

    def test_timestamps_non_decreasing_with_backwards_clock(self, settings, mock_llm):
        ticks = itertools.chain([5000, 4000, 3000, 6000], itertools.repeat(7000))
        orch = _orchestrator_with(mock_llm, settings, clock=lambda: next(ticks))
        stamps = [e.timestamp for e in orch.stream(_payload("Registered Nurses"))]
        assert stamps == sorted(stamps)
        assert stamps[:3] == [5000, 5000, 5000]

    def test_taxonomy_payload(self, orchestrator):
        taxonomy = next(iter(orchestrator.stream(_payload("Nurse"))))
        data = taxonomy.data
        assert data["inputTitle"] == "Nurse"
        assert data["resolvedTitle"] == "Registered Nurses"
        assert data["onetCode"] == "29-1141.00"
        assert data["confidence"] == "high"
        assert data["matchType"] == "alternate"
        assert data["alternativeTitles"] == ["Nurse", "Staff Nurse"]
        assert "Registered Nurses" in data["matchReasoning"]

    def test_tasks_truncated_to_limit_and_ids_consistent(self, orchestrator, settings):
        events = list(orchestrator.stream(_payload("Paralegal")))
        pending, classification = events[1].data, events[2].data

        expected_ids = [t.id for t in make_tasks()["23-2011.00"][:settings.task_limit]]
        assert pending["taskCount"] == 25
        assert [t["id"] for t in pending["tasks"]] == expected_ids
        assert [t["id"] for t in classification["tasks"]] == expected_ids

    def test_classification_payload(self, orchestrator):
        events = list(orchestrator.stream(_payload("Registered Nurses")))
        data = events[2].data
        exposure = data["automationExposure"]
        assert (
            exposure["automatePercentage"]
            + exposure["augmentPercentage"]
            + exposure["retainPercentage"]
        ) == 100
        # mock cycle: 85 / 55 / 20 → mean 53.33
        assert exposure["overallExposureScore"] == 53
        assert exposure["exposureCategory"] == "high"
        assert [s["id"] for s in data["skillImplications"]] == ["skill-1", "skill-2"]

    def test_complete_payload(self, orchestrator):
        complete = list(orchestrator.stream(_payload("Registered Nurses")))[-1]
        assert complete.data["totalTimeMs"] >= 0
        assert len(complete.data["analysisDate"]) == 10

    def test_exactly_one_gateway_call_per_request(self, orchestrator, mock_llm):
        list(orchestrator.stream(_payload("Registered Nurses")))
        list(orchestrator.stream(_payload("Registered Nurses")))
        assert len(mock_llm.calls) == 2

    def test_capability_level_reaches_prompt(self, orchestrator, mock_llm):
        list(orchestrator.stream(_payload("Registered Nurses", "conservative")))
        system, _ = mock_llm.calls[0]
        assert "CAPABILITY LEVEL: CONSERVATIVE" in system

    def test_events_serialise_to_json(self, orchestrator):
        for event in orchestrator.stream(_payload("Data Scientists")):
            json.dumps(event.to_dict())


# ── Streaming: failures ────────────────────────────────────────────────────

class TestStreamFailures:

    @pytest.mark.parametrize(
        "payload, message",
        [
            ({}, "Job title is required"),
            ({"jobTitle": "   "}, "Job title is required"),
            ({"jobTitle": "x" * 201}, "Job title is too long"),
            ({"jobTitle": "Nurse", "capabilityLevel": "reckless"}, "Invalid capability level"),
            (None, "Request body must be a JSON object"),
        ],
    )
    def test_validation_error_is_single_event(self, orchestrator, mock_llm, payload, message):
        events = list(orchestrator.stream(payload))
        assert len(events) == 1
        assert events[0].type == EventType.ERROR
        assert events[0].data == {"message": message, "statusCode": 400}
        assert events[0].progress == 0
        assert mock_llm.calls == []

    def test_no_match(self, orchestrator, mock_llm):
        events = list(orchestrator.stream(_payload("Astronaut")))
        assert [e.type for e in events] == [EventType.ERROR]
        assert events[0].data["message"] == 'No O*NET occupation found matching "Astronaut"'
        assert events[0].data["statusCode"] == 404
        assert mock_llm.calls == []

    def test_no_task_data(self, settings, mock_llm):
        # Searchable but task-less occupation: only possible when the index
        # is built without the task filter.
        store = TaskStore(make_tasks())
        index = OccupationIndex(make_occupations())
        orch = AnalysisOrchestrator(
            matcher=OccupationMatcher(index),
            task_store=store,
            classifier=TaskClassifier(mock_llm),
            settings=settings,
        )
        events = list(orch.stream(_payload("Clerk")))
        assert [e.type for e in events] == [EventType.TAXONOMY, EventType.ERROR]
        assert events[1].data["message"] == 'No task data available for "Office Clerks, General"'
        assert events[1].progress == 10
        assert mock_llm.calls == []

    def test_gateway_failure_single_error_event(self, failing_orchestrator, failing_llm):
        events = list(failing_orchestrator.stream(_payload("Registered Nurses")))
        assert [e.type for e in events] == [
            EventType.TAXONOMY,
            EventType.TASKS_PENDING,
            EventType.ERROR,
        ]
        assert events[-1].data == {"message": "Anthropic API returned HTTP 529", "statusCode": 502}
        assert events[-1].progress == 15
        assert failing_llm.calls == 1

    def test_missing_credentials_message(self, settings):
        llm = UnavailableLLM("anthropic", AuthenticationError("ANTHROPIC_API_KEY is not set."))
        orch = _orchestrator_with(llm, settings)
        error = list(orch.stream(_payload("Registered Nurses")))[-1]
        assert error.data["statusCode"] == 503
        assert error.data["message"].startswith(
            "The AI classification service is not configured correctly:"
        )

    def test_malformed_model_output(self, settings, static_llm):
        orch = _orchestrator_with(static_llm("I cannot help with that."), settings)
        error = list(orch.stream(_payload("Registered Nurses")))[-1]
        assert error.type == EventType.ERROR
        assert error.data["statusCode"] == 502
        assert "Failed to parse" in error.data["message"]

    def test_unexpected_exception_becomes_500(self, settings):
        class ExplodingLLM:
            model_name = "boom"

            def generate_json(self, system_prompt, user_message):
                raise RuntimeError("kaboom")

        orch = _orchestrator_with(ExplodingLLM(), settings)
        error = list(orch.stream(_payload("Registered Nurses")))[-1]
        assert error.data == {"message": "An unexpected error occurred", "statusCode": 500}

    def test_non_json_provider_body_is_gateway_error(self, settings):
        orch = _orchestrator_with(AnthropicLLMAdapter(settings), settings)
        with patch("workforce_intel.adapters.anthropic_llm.requests.post", _html_post()):
            events = list(orch.stream(_payload("Registered Nurses")))
        assert [e.type for e in events] == [
            EventType.TAXONOMY,
            EventType.TASKS_PENDING,
            EventType.ERROR,
        ]
        assert events[-1].data == {
            "message": "Anthropic API returned a non-JSON body",
            "statusCode": 502,
        }

    def test_client_disconnect_stops_pipeline(self, orchestrator, mock_llm):
        stream = orchestrator.stream(_payload("Registered Nurses"))
        first = next(stream)
        assert first.type == EventType.TAXONOMY
        stream.close()
        assert mock_llm.calls == []


# ── Query log ──────────────────────────────────────────────────────────────

class TestQueryLog:

    def _entries(self, caplog) -> list[dict]:
        return [
            json.loads(r.getMessage()[len("QUERY_LOG "):])
            for r in caplog.records
            if r.name == "workforce_intel.query_log"
        ]

    def test_success_logged(self, orchestrator, caplog):
        with caplog.at_level(logging.INFO, logger="workforce_intel.query_log"):
            list(orchestrator.stream(_payload("Nurse", "bold")))
        (entry,) = self._entries(caplog)
        assert entry["jobTitle"] == "Nurse"
        assert entry["onetCode"] == "29-1141.00"
        assert entry["matchConfidence"] == "high"
        assert entry["capabilityLevel"] == "bold"
        assert entry["taskCount"] == 3
        assert entry["error"] is None

    def test_failure_logged(self, failing_orchestrator, caplog):
        with caplog.at_level(logging.INFO, logger="workforce_intel.query_log"):
            list(failing_orchestrator.stream(_payload("Nurse")))
        (entry,) = self._entries(caplog)
        assert entry["error"] == "Anthropic API returned HTTP 529"
        assert entry["onetCode"] is None

    def test_unexpected_failure_logged(self, settings, caplog):
        class ExplodingLLM:
            model_name = "boom"

            def generate_json(self, system_prompt, user_message):
                raise RuntimeError("kaboom")

        orch = _orchestrator_with(ExplodingLLM(), settings)
        with caplog.at_level(logging.INFO, logger="workforce_intel.query_log"):
            list(orch.stream(_payload("Nurse")))
        (entry,) = self._entries(caplog)
        assert entry["error"] == "RuntimeError: kaboom"
        assert entry["jobTitle"] == "Nurse"

    def test_non_json_provider_body_logged(self, settings, caplog):
        orch = _orchestrator_with(AnthropicLLMAdapter(settings), settings)
        with patch("workforce_intel.adapters.anthropic_llm.requests.post", _html_post()):
            with caplog.at_level(logging.INFO, logger="workforce_intel.query_log"):
                list(orch.stream(_payload("Nurse")))
        (entry,) = self._entries(caplog)
        assert entry["error"] == "Anthropic API returned a non-JSON body"


# ── Synchronous adapter ────────────────────────────────────────────────────

class TestAnalyze:

    def test_returns_job_analysis(self, orchestrator):
        analysis = orchestrator.analyze(_payload("Data Scientists", "bold"))
        assert isinstance(analysis, JobAnalysis)
        assert analysis.id.startswith("analysis-")
        assert analysis.job_title == "Data Scientists"
        assert analysis.taxonomy_resolution.onet_code == "15-2051.00"
        assert len(analysis.tasks) == 3
        assert analysis.capability_level.value == "bold"
        assert analysis.automation_exposure.overall_exposure_score == 53

    def test_matches_streamed_result(self, orchestrator):
        streamed = list(orchestrator.stream(_payload("Data Scientists")))
        analysis = orchestrator.analyze(_payload("Data Scientists")).to_dict()
        assert analysis["tasks"] == streamed[2].data["tasks"]
        assert analysis["taxonomyResolution"] == streamed[0].data

    @pytest.mark.parametrize(
        "payload, exc",
        [
            ({"jobTitle": ""}, InvalidRequestError),
            (_payload("Astronaut"), OccupationNotFoundError),
        ],
    )
    def test_raises_typed_errors(self, orchestrator, payload, exc):
        with pytest.raises(exc):
            orchestrator.analyze(payload)

    def test_gateway_failure_raises(self, failing_orchestrator):
        with pytest.raises(LLMError) as info:
            failing_orchestrator.analyze(_payload("Registered Nurses"))
        assert info.value.status_code == 502

    def test_non_json_provider_body_raises_llm_error(self, settings):
        orch = _orchestrator_with(AnthropicLLMAdapter(settings), settings)
        with patch("workforce_intel.adapters.anthropic_llm.requests.post", _html_post()):
            with pytest.raises(LLMError) as info:
                orch.analyze(_payload("Registered Nurses"))
        assert info.value.status_code == 502

    def test_no_task_data_raises(self, settings, mock_llm):
        index = OccupationIndex(make_occupations())
        orch = AnalysisOrchestrator(
            matcher=OccupationMatcher(index),
            task_store=TaskStore(make_tasks()),
            classifier=TaskClassifier(mock_llm),
            settings=settings,
        )
        with pytest.raises(NoTaskDataError):
            orch.analyze(_payload("Clerk"))
