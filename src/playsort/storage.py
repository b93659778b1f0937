"""File storage helpers for sort-run artifacts.

Layout::

    runs/status.json              latest run, overwritten on every status post
    runs/sort-<stamp>/sort.log    append-only status history of one run
    runs/sort-<stamp>/report.json final outcome
"""

from __future__ import annotations

import json
import os
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


RUNS_DIR = Path("runs")
STATUS_PATH = RUNS_DIR / "status.json"
MAX_RUN_DIR_ATTEMPTS = 100


@dataclass(frozen=True)
class RunContext:
    run_id: str
    run_dir: Path
    sort_log: Path
    report_path: Path


def create_run_context() -> RunContext:
    """Allocate ``runs/sort-<UTC stamp>[-NN]``; two sorts started in the same second get distinct dirs."""
    RUNS_DIR.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    for attempt in range(MAX_RUN_DIR_ATTEMPTS):
        run_id = f"sort-{stamp}" if attempt == 0 else f"sort-{stamp}-{attempt:02d}"
        run_dir = RUNS_DIR / run_id
        try:
            run_dir.mkdir()
        except FileExistsError:
            continue
        return RunContext(
            run_id=run_id,
            run_dir=run_dir,
            sort_log=run_dir / "sort.log",
            report_path=run_dir / "report.json",
        )
    raise RuntimeError(f"No free run directory for sort-{stamp} under {RUNS_DIR}")


def append_log(path: Path, *lines: str) -> None:
    if not lines:
        return
    with path.open("a", encoding="utf-8") as fh:
        fh.writelines(line.rstrip() + "\n" for line in lines)


def write_json(path: Path, payload: dict[str, Any]) -> None:
    # status.json is read by `playsort status` while a sort is writing it
    path.parent.mkdir(parents=True, exist_ok=True)
    scratch = path.with_name(f".{path.name}.tmp")
    scratch.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(scratch, path)


def write_status(
    *,
    run_id: str,
    run_dir: Path,
    url: str,
    state: str,
    progress: str | None = None,
    result: str = "",
    moves: int | None = None,
) -> None:
    payload: dict[str, Any] = {
        "run_id": run_id,
        "run_dir": str(run_dir),
        "url": url,
        "state": state,
        "updated_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if progress:
        payload["progress"] = progress
    if result:
        payload["result"] = result
    if moves is not None:
        payload["moves"] = moves
    write_json(STATUS_PATH, payload)


def status_payload() -> dict[str, Any]:
    if not STATUS_PATH.exists():
        return {"status": "no-runs"}
    with STATUS_PATH.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def tail_lines(path: Path, line_count: int) -> list[str]:
    if line_count <= 0 or not path.exists():
        return []
    with path.open("r", encoding="utf-8") as fh:
        return [line.rstrip("\n") for line in deque(fh, maxlen=line_count)]
