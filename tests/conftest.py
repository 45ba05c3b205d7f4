"""Shared test fixtures."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from claude_picker.launch import ProcessResult

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def make_line(**overrides) -> dict:
    """A transcript line shaped like Claude Code writes them."""
    line = {
        "parentUuid": None,
        "isSidechain": False,
        "userType": "external",
        "cwd": "/Users/test/project",
        "sessionId": "sess-1",
        "version": "1.0.0",
        "gitBranch": "main",
        "type": "user",
        "message": {"role": "user", "content": "Hello"},
        "uuid": "uuid-1",
        "timestamp": iso(NOW - timedelta(hours=2)),
    }
    line.update(overrides)
    return line


class FakeRunner:
    """Records calls instead of spawning processes."""

    def __init__(self, result: ProcessResult | None = None):
        self.result = result or ProcessResult(returncode=0)
        self.calls = []

    def run(self, args, cwd=None, capture_output=False, timeout=None):
        self.calls.append({"args": args, "cwd": cwd, "capture_output": capture_output, "timeout": timeout})
        return self.result


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def line():
    return make_line


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture
def projects_dir(tmp_path):
    root = tmp_path / "projects"
    root.mkdir()
    return root


@pytest.fixture
def write_transcript(projects_dir):
    """Write `<projects_dir>/<project>/<session_id>.jsonl`; dict lines are JSON-encoded."""

    def _write(project: str, session_id: str, lines: list) -> Path:
        project_dir = projects_dir / project
        project_dir.mkdir(exist_ok=True)
        path = project_dir / f"{session_id}.jsonl"
        text = "".join((json.dumps(l) if isinstance(l, dict) else l) + "\n" for l in lines)
        path.write_text(text)
        return path

    return _write
