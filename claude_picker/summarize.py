"""One-line session summaries: local heuristics, or `claude -p` when enabled."""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .launch import ProcessRunner
from .sessions import Session, TranscriptRecord

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = "Empty session"
MAX_SUMMARY_CHARS = 100
MAX_USER_MESSAGE_CHARS = 100
MAX_EXCERPT_MESSAGE_CHARS = 500
MAX_EXCERPT_RECORDS = 21
ELLIPSIS = "..."


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def format_age(delta: timedelta) -> str:
    """Compact age rounded to the nearest minute: "0m", "20m", "2h", "2h 5m"."""
    minutes = max(0, int((delta.total_seconds() + 30) // 60))
    if minutes < 60:
        return f"{minutes}m"
    hours, remaining = divmod(minutes, 60)
    return f"{hours}h {remaining}m" if remaining else f"{hours}h"


def recency_suffix(ts: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    delta = now - ts
    if delta < timedelta(hours=24):
        return f"({format_age(delta)} ago)"
    local = ts.astimezone()
    return f"({local:%b} {local.day})"


@dataclass
class ChatDigest:
    project: str = ""
    user_messages: list[str] = field(default_factory=list)
    used_tools: bool = False


def digest_chat(records: list[TranscriptRecord]) -> ChatDigest:
    """Single pass over the records collecting what the heuristic needs."""
    digest = ChatDigest()
    for record in records:
        if record.cwd and not digest.project:
            digest.project = os.path.basename(record.cwd.rstrip("/\\")) or record.cwd

        if record.type == "user":
            text = record.message.content.strip()
            digest.user_messages.append(_truncate(text, MAX_USER_MESSAGE_CHARS))
        elif record.type == "assistant":
            if record.message.has_tool_use or "tool_calls" in record.message.content:
                digest.used_tools = True
    return digest


def summarize_chat(records: list[TranscriptRecord], now: datetime | None = None) -> str:
    """Heuristic summary: `[project] first message (+N more messages) (age)`."""
    if not records:
        return EMPTY_SUMMARY

    digest = digest_chat(records)
    parts = [f"[{digest.project}]"]
    if digest.user_messages:
        parts.append(digest.user_messages[0])
        if len(digest.user_messages) > 1:
            parts.append(f"(+{len(digest.user_messages) - 1} more messages)")

    last_ts = records[-1].timestamp
    if last_ts is not None:
        parts.append(recency_suffix(last_ts, now))

    return " ".join(parts)


def build_excerpt(records: list[TranscriptRecord]) -> str:
    lines = []
    for record in records[:MAX_EXCERPT_RECORDS]:
        if record.type in ("user", "assistant"):
            content = _truncate(record.message.content, MAX_EXCERPT_MESSAGE_CHARS)
            lines.append(f"{record.type}: {content}")
    return "\n".join(lines) + "\n" if lines else ""


def build_prompt(records: list[TranscriptRecord]) -> str:
    return f"""Summarize this conversation in one concise line (max {MAX_SUMMARY_CHARS} chars). Focus on the main task or problem being addressed:

{build_excerpt(records)}

Summary:"""


def summarize_with_claude(records: list[TranscriptRecord], runner: ProcessRunner,
                          claude_bin: str = "claude", timeout: float | None = 60) -> str:
    """Ask claude for a one-liner; any failure falls back to summarize_chat."""
    if not records:
        return EMPTY_SUMMARY

    cmd = [claude_bin, "-p", build_prompt(records), "--no-session-persistence"]
    result = runner.run(cmd, capture_output=True, timeout=timeout)
    summary = result.stdout.strip() if result.ok else ""
    if not summary:
        logger.debug("AI summary unavailable (%s), using heuristic", result.error or "empty output")
        return summarize_chat(records)
    # Keep the summary on one line for the list view.
    summary = " ".join(summary.split())
    return summary[:MAX_SUMMARY_CHARS]


class Summarizer:
    """Summarizes sessions in the mode chosen at startup."""

    def __init__(self, use_ai_summary: bool = False, runner: ProcessRunner | None = None,
                 claude_bin: str = "claude", timeout: float | None = 60):
        self.use_ai_summary = use_ai_summary
        self.runner = runner or ProcessRunner()
        self.claude_bin = claude_bin
        self.timeout = timeout

    def summarize(self, records: list[TranscriptRecord]) -> str:
        if self.use_ai_summary:
            return summarize_with_claude(records, self.runner, self.claude_bin, self.timeout)
        return summarize_chat(records)

    def summarize_all(self, sessions: list[Session]) -> list[Session]:
        for session in sessions:
            session.summary = self.summarize(session.records)
        return sessions
