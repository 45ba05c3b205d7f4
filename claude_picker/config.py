"""Runtime configuration, read once at startup."""

import os
from dataclasses import dataclass
from pathlib import Path

CLAUDE_DIR = Path.home() / ".claude"
PROJECTS_DIR = CLAUDE_DIR / "projects"

CLAUDE_BIN = "claude"
SUMMARY_TIMEOUT = 60


@dataclass
class Config:
    """Everything the pipeline needs from the outside world.

    Built from the environment at the CLI boundary and never re-read
    mid-run; command-line options override individual fields.
    """
    projects_dir: Path = PROJECTS_DIR
    use_ai_summary: bool = False
    claude_bin: str = CLAUDE_BIN
    summary_timeout: float = SUMMARY_TIMEOUT

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "Config":
        env = os.environ if environ is None else environ
        projects_dir = env.get("CLAUDE_PROJECTS_DIR")
        return cls(
            projects_dir=Path(projects_dir).expanduser() if projects_dir else PROJECTS_DIR,
            use_ai_summary=env.get("USE_AI_SUMMARY") == "1",
            claude_bin=env.get("CLAUDE_BIN") or CLAUDE_BIN,
        )
