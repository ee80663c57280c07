"""
tests/unit/test_data_adapters.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for the O*NET data adapters:

  JsonOccupationDataAdapter  — runtime loader for the JSON lookup files
  onet_text                  — offline text-release → JSON converter

All files live under pytest's tmp_path.
"""
from __future__ import annotations

import dataclasses
import json

import pytest

from workforce_intel.adapters import onet_text
from workforce_intel.adapters.json_data import (
    OCCUPATIONS_FILE,
    TASKS_FILE,
    JsonOccupationDataAdapter,
)
from workforce_intel.domain.exceptions import DataLoadError
from workforce_intel.services.task_store import TaskStore


def _write(path, payload) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture
def adapter(settings, tmp_path):
    return JsonOccupationDataAdapter(dataclasses.replace(settings, data_dir=tmp_path))


# ── JsonOccupationDataAdapter ──────────────────────────────────────────────

class TestJsonOccupationDataAdapter:

    def test_loads_occupations(self, adapter, tmp_path):
        _write(tmp_path / OCCUPATIONS_FILE, {
            "29-1141.00": {
                "code": "29-1141.00",
                "title": "Registered Nurses",
                "description": "Assess patient health problems.",
                "alternateTitles": ["Nurse", "Staff Nurse"],
            }
        })
        occupations = adapter.load_occupations()
        occ = occupations["29-1141.00"]
        assert occ.title == "Registered Nurses"
        assert occ.alternate_titles == ("Nurse", "Staff Nurse")

    def test_code_defaults_to_key(self, adapter, tmp_path):
        _write(tmp_path / OCCUPATIONS_FILE, {"1": {"title": "T"}})
        assert adapter.load_occupations()["1"].code == "1"

    def test_loads_tasks_in_source_order(self, adapter, tmp_path):
        _write(tmp_path / TASKS_FILE, {
            "29-1141.00": [
                {"id": 1, "task": "Monitor patients.", "type": "Core", "date": "08/2023",
                 "source": "Incumbent"},
                {"id": "2", "task": "Record symptoms.", "type": "", "date": "", "source": ""},
            ]
        })
        tasks = adapter.load_tasks()["29-1141.00"]
        assert [t.id for t in tasks] == ["1", "2"]
        assert tasks[0].text == "Monitor patients."
        assert tasks[1].source is None

    def test_missing_file(self, adapter):
        with pytest.raises(DataLoadError, match="not found"):
            adapter.load_occupations()

    def test_invalid_json(self, adapter, tmp_path):
        (tmp_path / TASKS_FILE).write_text("{not json", encoding="utf-8")
        with pytest.raises(DataLoadError, match="Failed to read"):
            adapter.load_tasks()

    def test_top_level_must_be_object(self, adapter, tmp_path):
        _write(tmp_path / OCCUPATIONS_FILE, [])
        with pytest.raises(DataLoadError, match="JSON object"):
            adapter.load_occupations()

    def test_malformed_task(self, adapter, tmp_path):
        _write(tmp_path / TASKS_FILE, {"1": [{"task": "no id"}]})
        with pytest.raises(DataLoadError, match="Malformed task"):
            adapter.load_tasks()

    def test_malformed_occupation(self, adapter, tmp_path):
        _write(tmp_path / OCCUPATIONS_FILE, {"1": {"description": "no title"}})
        with pytest.raises(DataLoadError, match="Malformed occupation"):
            adapter.load_occupations()


# ── TaskStore ──────────────────────────────────────────────────────────────

class TestTaskStore:

    def test_limit_keeps_first_n(self, task_store):
        tasks = task_store.get_tasks("23-2011.00", limit=25)
        assert len(tasks) == 25
        assert tasks == task_store.get_tasks("23-2011.00")[:25]

    def test_unknown_code(self, task_store):
        assert task_store.get_tasks("00-0000.00") == []
        assert not task_store.has_tasks("00-0000.00")

    def test_empty_lists_dropped(self):
        store = TaskStore({"a": []})
        assert store.codes == frozenset()
        assert store.task_count == 0


# ── onet_text converter ────────────────────────────────────────────────────

_OCC_TSV = (
    "O*NET-SOC Code\tTitle\tDescription\n"
    "29-1141.00\tRegistered Nurses\tAssess patient health problems.\n"
    "43-9061.00\tOffice Clerks, General\tPerform duties.\n"
)
_ALT_TSV = (
    "O*NET-SOC Code\tTitle\tAlternate Title\tShort Title\tSource(s)\n"
    "29-1141.00\tRegistered Nurses\tStaff Nurse\tn/a\t08\n"
    "29-1141.00\tRegistered Nurses\tNurse\tn/a\t08\n"
    "29-1141.00\tRegistered Nurses\tn/a\tn/a\t08\n"
)
_TASK_TSV = (
    "O*NET-SOC Code\tTitle\tTask ID\tTask\tTask Type\tIncumbents Responding\tDate\tDomain Source\n"
    "29-1141.00\tRegistered Nurses\t100\tMonitor patients.\tCore\t90\t08/2023\tIncumbent\n"
    "29-1141.00\tRegistered Nurses\t101\tRecord symptoms.\tSupplemental\t80\t08/2023\t\n"
)


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "onet"
    src.mkdir()
    (src / "Occupation Data.txt").write_text(_OCC_TSV, encoding="utf-8")
    (src / "Alternate Titles.txt").write_text(_ALT_TSV, encoding="utf-8")
    (src / "Task Statements.txt").write_text(_TASK_TSV, encoding="utf-8")
    return src


class TestOnetText:

    def test_build_occupations_groups_alternates(self, source_dir):
        occupations = onet_text.build_occupations(
            onet_text.read_tsv(source_dir / "Occupation Data.txt"),
            onet_text.read_tsv(source_dir / "Alternate Titles.txt"),
        )
        assert occupations["29-1141.00"]["alternateTitles"] == ["Staff Nurse", "Nurse"]
        assert occupations["43-9061.00"]["alternateTitles"] == []

    def test_build_tasks_preserves_order(self, source_dir):
        tasks = onet_text.build_tasks(onet_text.read_tsv(source_dir / "Task Statements.txt"))
        assert [t["id"] for t in tasks["29-1141.00"]] == ["100", "101"]
        assert tasks["29-1141.00"][1]["source"] is None

    def test_convert_round_trips_through_loader(self, source_dir, tmp_path, settings):
        out = tmp_path / "out"
        stats = onet_text.convert(source_dir, out)
        assert stats == {
            "occupations": 2,
            "occupations_with_tasks": 1,
            "task_statements": 2,
            "searchable_titles": 4,
        }

        loader = JsonOccupationDataAdapter(dataclasses.replace(settings, data_dir=out))
        occupations = loader.load_occupations()
        tasks = loader.load_tasks()
        assert occupations["29-1141.00"].alternate_titles == ("Staff Nurse", "Nurse")
        assert tasks["29-1141.00"][0].text == "Monitor patients."

    def test_missing_source_file(self, tmp_path):
        with pytest.raises(DataLoadError, match="not found"):
            onet_text.convert(tmp_path, tmp_path / "out")
