"""
adapters/onet_text.py
──────────────────────────────────────────────────────────────────────────────
Offline converter: O*NET database text release → JSON lookup files.

Inputs (tab-delimited, from the O*NET "db_XX_X_text" download):
  Occupation Data.txt     O*NET-SOC Code, Title, Description
  Alternate Titles.txt    O*NET-SOC Code, Alternate Title, ...
  Task Statements.txt     O*NET-SOC Code, Task ID, Task, Task Type, Date, Domain Source

Outputs (consumed by adapters/json_data.py):
  onet-occupations.json
  onet-tasks.json

Run once per O*NET release; the web service never calls this module.

Usage:
  workforce-build-data --source onet-data/db_30_1_text --out data
"""
from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path

from workforce_intel.domain.exceptions import DataLoadError

logger = logging.getLogger(__name__)

_CODE = "O*NET-SOC Code"


def read_tsv(path: Path) -> list[dict[str, str]]:
    """Read a tab-delimited O*NET file into a list of row dicts."""
    if not path.exists():
        raise DataLoadError(f"O*NET source file not found: {path}")
    with path.open(encoding="utf-8", newline="") as fh:
        reader = csv.DictReader(fh, delimiter="\t", quoting=csv.QUOTE_NONE)
        return [
            {k: (v or "").strip() for k, v in row.items() if k is not None}
            for row in reader
        ]


def build_occupations(
    occupation_rows: list[dict[str, str]],
    alternate_rows: list[dict[str, str]],
) -> dict[str, dict]:
    """Group alternate titles under their occupation, preserving file order."""
    alternates: dict[str, list[str]] = {}
    for row in alternate_rows:
        title = row.get("Alternate Title", "")
        if title and title.lower() != "n/a":
            alternates.setdefault(row[_CODE], []).append(title)

    return {
        row[_CODE]: {
            "code": row[_CODE],
            "title": row.get("Title", ""),
            "description": row.get("Description", ""),
            "alternateTitles": alternates.get(row[_CODE], []),
        }
        for row in occupation_rows
    }


def build_tasks(task_rows: list[dict[str, str]]) -> dict[str, list[dict]]:
    """Group task statements by occupation code, preserving file order."""
    tasks: dict[str, list[dict]] = {}
    for row in task_rows:
        tasks.setdefault(row[_CODE], []).append(
            {
                "id": row.get("Task ID", ""),
                "task": row.get("Task", ""),
                "type": row.get("Task Type", ""),
                "date": row.get("Date", ""),
                "source": row.get("Domain Source") or None,
            }
        )
    return tasks


def convert(source_dir: Path, out_dir: Path) -> dict[str, int]:
    """Convert an O*NET text release into the JSON lookup files.

    Returns:
        Counts of occupations, task statements and searchable titles.
    """
    occupations = build_occupations(
        read_tsv(source_dir / "Occupation Data.txt"),
        read_tsv(source_dir / "Alternate Titles.txt"),
    )
    tasks = build_tasks(read_tsv(source_dir / "Task Statements.txt"))

    out_dir.mkdir(parents=True, exist_ok=True)
    for name, payload in (
        ("onet-occupations.json", occupations),
        ("onet-tasks.json", tasks),
    ):
        path = out_dir / name
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Wrote %s", path)

    return {
        "occupations": len(occupations),
        "occupations_with_tasks": len(tasks),
        "task_statements": sum(len(t) for t in tasks.values()),
        "searchable_titles": sum(1 + len(o["alternateTitles"]) for o in occupations.values()),
    }


def main() -> None:
    """Entry point for the workforce-build-data console script."""
    p = argparse.ArgumentParser(
        prog="workforce-build-data",
        description="Convert O*NET text files into JSON lookup files.",
    )
    p.add_argument("--source", "-s", type=Path, required=True,
                   help="Directory holding the O*NET *.txt files.")
    p.add_argument("--out", "-o", type=Path, default=Path("data"),
                   help="Output directory. (default: data)")
    args = p.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    try:
        stats = convert(args.source, args.out)
    except DataLoadError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    for key, value in stats.items():
        print(f"{key:<24} {value}")


if __name__ == "__main__":
    main()
