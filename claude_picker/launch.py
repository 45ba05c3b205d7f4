"""Subprocess capability and the handoff to `claude --resume`."""

import logging
import os
import subprocess
from dataclasses import dataclass

import click

from .errors import LaunchError
from .sessions import Session, TranscriptRecord

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    returncode: int | None = None
    stdout: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProcessRunner:
    """Runs external commands and reports failures as data, never raises.

    With capture_output the child's stdout is collected and stdin is closed;
    otherwise the child inherits this process's stdin/stdout/stderr.
    """

    def run(self, args: list[str], cwd: str | None = None,
            capture_output: bool = False, timeout: float | None = None) -> ProcessResult:
        kwargs = {"cwd": cwd, "timeout": timeout}
        if capture_output:
            kwargs.update(capture_output=True, text=True, encoding="utf-8", errors="replace",
                          stdin=subprocess.DEVNULL)
        try:
            proc = subprocess.run(args, **kwargs)
        except subprocess.TimeoutExpired:
            return ProcessResult(error=f"{args[0]} timed out after {timeout}s")
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            return ProcessResult(error=f"{args[0]}: {e}")

        stdout = proc.stdout if capture_output else ""
        if proc.returncode != 0:
            return ProcessResult(proc.returncode, stdout or "",
                                 error=f"{args[0]} exited with status {proc.returncode}")
        return ProcessResult(proc.returncode, stdout or "")


def resolve_working_dir(records: list[TranscriptRecord]) -> str | None:
    """First recorded cwd that still exists, or None to keep ours."""
    for record in records:
        if not record.cwd:
            continue
        if os.path.isdir(record.cwd):
            return record.cwd
        logger.debug("working directory %s no longer exists", record.cwd)
    return None


def resume_command(session_id: str, claude_bin: str = "claude") -> list[str]:
    return [claude_bin, "--resume", session_id]


def launch_session(session: Session, runner: ProcessRunner, claude_bin: str = "claude") -> None:
    """Resume `session` in its original directory and wait for claude to exit."""
    click.echo(f"Resuming session: {session.session_id}")
    cwd = resolve_working_dir(session.records)
    args = resume_command(session.session_id, claude_bin)
    logger.debug("running %s in %s", args, cwd or os.getcwd())

    result = runner.run(args, cwd=cwd)
    if not result.ok:
        raise LaunchError(result.error)
