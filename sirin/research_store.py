"""Persistent record of research tasks, kept as one JSON object per line."""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

_STORE_LOCK = threading.Lock()


def research_log_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the default location of the research log."""
    env = os.environ if environ is None else environ
    local_app_data = env.get("LOCALAPPDATA")
    if local_app_data is not None:
        return Path(local_app_data) / "Sirin" / "tracking" / "research.jsonl"
    return Path("data") / "tracking" / "research.jsonl"


class ResearchStatus(str, Enum):
    """Lifecycle state of a research task."""

    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ResearchStep:
    """One phase of the pipeline and what it produced."""

    phase: str
    output: str


def _require_str(data: Mapping[str, Any], key: str) -> str:
    if key not in data:
        raise ValueError(f"missing field {key!r}")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string or null")
    return value


@dataclass
class ResearchTask:
    """A research job on a topic, optionally seeded with a URL."""

    id: str
    topic: str
    status: ResearchStatus
    started_at: str
    url: str | None = None
    steps: list[ResearchStep] = field(default_factory=list)
    final_report: str | None = None
    finished_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of the task."""
        return {
            "id": self.id,
            "topic": self.topic,
            "url": self.url,
            "status": ResearchStatus(self.status).value,
            "steps": [{"phase": s.phase, "output": s.output} for s in self.steps],
            "final_report": self.final_report,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ResearchTask":
        """Build a task from a mapping; raise ValueError if it is malformed."""
        if not isinstance(data, Mapping):
            raise ValueError("research task must be an object")
        raw_status = _require_str(data, "status")
        try:
            status = ResearchStatus(raw_status)
        except ValueError as exc:
            raise ValueError(f"unknown status {raw_status!r}") from exc
        if "steps" not in data:
            raise ValueError("missing field 'steps'")
        raw_steps = data["steps"]
        if not isinstance(raw_steps, list):
            raise ValueError("field 'steps' must be a list")
        steps = []
        for raw in raw_steps:
            if not isinstance(raw, Mapping):
                raise ValueError("each step must be an object")
            steps.append(
                ResearchStep(
                    phase=_require_str(raw, "phase"),
                    output=_require_str(raw, "output"),
                )
            )
        return cls(
            id=_require_str(data, "id"),
            topic=_require_str(data, "topic"),
            status=status,
            started_at=_require_str(data, "started_at"),
            url=_optional_str(data, "url"),
            steps=steps,
            final_report=_optional_str(data, "final_report"),
            finished_at=_optional_str(data, "finished_at"),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


def _parse_line(line: str) -> ResearchTask | None:
    try:
        return ResearchTask.from_dict(json.loads(line))
    except ValueError:
        return None


class ResearchStore:
    """Reads and writes research tasks in a JSON-lines file."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = Path(path) if path is not None else research_log_path()

    def _read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8", errors="replace") as handle:
            return [line.rstrip("\r\n") for line in handle if line.strip()]

    def save(self, task: ResearchTask) -> None:
        """Insert the task, or replace the stored task with the same id."""
        with _STORE_LOCK:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            new_line = task.to_json()
            found = False
            updated = []
            for line in self._read_lines():
                existing = _parse_line(line)
                if existing is not None and existing.id == task.id:
                    found = True
                    updated.append(new_line)
                else:
                    updated.append(line)
            if not found:
                updated.append(new_line)

            tmp = self.path.with_suffix(".jsonl.tmp")
            with tmp.open("w", encoding="utf-8") as handle:
                handle.writelines(f"{line}\n" for line in updated)
            os.replace(tmp, self.path)

    def list_tasks(self) -> list[ResearchTask]:
        """Return every readable task in file order, skipping malformed lines."""
        with _STORE_LOCK:
            lines = self._read_lines()
        return [task for task in map(_parse_line, lines) if task is not None]

    def get(self, task_id: str) -> ResearchTask | None:
        """Return the task with the given id, or None."""
        return next((t for t in self.list_tasks() if t.id == task_id), None)