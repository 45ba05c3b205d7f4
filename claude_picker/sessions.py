"""Session discovery, JSONL parsing, and ranking."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .errors import DiscoveryError, LineTooLongError, TranscriptError

logger = logging.getLogger(__name__)

TRANSCRIPT_EXT = ".jsonl"
MAX_LINE_BYTES = 64 * 1024 * 1024


# ── Records ────────────────────────────────────────────────


@dataclass(frozen=True)
class Message:
    role: str = ""
    content: str = ""
    has_tool_use: bool = False


@dataclass(frozen=True)
class TranscriptRecord:
    """One line of a transcript file."""
    parent_uuid: str | None = None
    is_sidechain: bool = False
    user_type: str = ""
    cwd: str = ""
    session_id: str = ""
    version: str = ""
    git_branch: str = ""
    type: str = ""
    message: Message = field(default_factory=Message)
    uuid: str = ""
    timestamp: datetime | None = None


@dataclass
class Session:
    """All records of one transcript file plus derived display data."""
    project_path: str
    session_id: str
    file_path: Path
    mod_time: datetime
    records: list[TranscriptRecord] = field(default_factory=list)
    summary: str = ""
    last_active: datetime | None = None

    def __post_init__(self):
        if self.last_active is None:
            self.last_active = last_activity(self.records, self.mod_time)


def last_activity(records: list[TranscriptRecord], mod_time: datetime) -> datetime:
    """Timestamp of the last record, or the file mtime when there is none."""
    if records and records[-1].timestamp is not None:
        return records[-1].timestamp
    return mod_time


# ── JSONL parsing ──────────────────────────────────────────


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime (naive → UTC)."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _field(obj: dict, key: str, kind: type, default):
    value = obj.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise TypeError(f"{key}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _message_text(content) -> str:
    """Flatten message content; list content keeps only its text blocks."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for c in content:
            if isinstance(c, dict) and c.get("type") == "text":
                text = c.get("text", "")
                if isinstance(text, str):
                    parts.append(text)
        return "\n".join(parts)
    raise TypeError(f"message.content: unsupported {type(content).__name__}")


def _parse_message(raw) -> Message:
    if raw is None:
        return Message()
    if not isinstance(raw, dict):
        raise TypeError(f"message: expected object, got {type(raw).__name__}")
    content = raw.get("content")
    return Message(
        role=_field(raw, "role", str, ""),
        content=_message_text(content),
        has_tool_use=isinstance(content, list) and any(
            isinstance(c, dict) and c.get("type") == "tool_use" for c in content
        ),
    )


def parse_line(line: str | bytes) -> TranscriptRecord | None:
    """Decode one transcript line. Returns None for anything malformed.

    A record is either fully built or not at all: wrong field types,
    non-object JSON and unparsable timestamps all drop the line.
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line:
        return None
    try:
        obj = json.loads(line)
    except (ValueError, RecursionError):
        return None
    if not isinstance(obj, dict):
        return None

    try:
        ts = _field(obj, "timestamp", str, None)
        return TranscriptRecord(
            parent_uuid=_field(obj, "parentUuid", str, None),
            is_sidechain=_field(obj, "isSidechain", bool, False),
            user_type=_field(obj, "userType", str, ""),
            cwd=_field(obj, "cwd", str, ""),
            session_id=_field(obj, "sessionId", str, ""),
            version=_field(obj, "version", str, ""),
            git_branch=_field(obj, "gitBranch", str, ""),
            type=_field(obj, "type", str, ""),
            message=_parse_message(obj.get("message")),
            uuid=_field(obj, "uuid", str, ""),
            timestamp=parse_timestamp(ts) if ts else None,
        )
    except (TypeError, ValueError):
        return None


def read_transcript(path: Path, max_line_bytes: int = MAX_LINE_BYTES) -> list[TranscriptRecord]:
    """Read every parseable record from a JSONL file, in file order.

    Raises OSError if the file can't be read and LineTooLongError if a
    single line is larger than max_line_bytes.
    """
    records = []
    skipped = 0
    with open(path, "rb") as fh:
        line_num = 0
        while True:
            line = fh.readline(max_line_bytes + 1)
            if not line:
                break
            line_num += 1
            if len(line.rstrip(b"\r\n")) > max_line_bytes:
                raise LineTooLongError(path, line_num, max_line_bytes)
            record = parse_line(line)
            if record is None:
                skipped += 1
                continue
            records.append(record)
    if skipped:
        logger.debug("%s: skipped %d malformed line(s)", path, skipped)
    return records


# ── Session discovery ──────────────────────────────────────


def _load_session(project_dir: Path, jsonl_file: Path) -> Session:
    stat = jsonl_file.stat()
    records = read_transcript(jsonl_file)
    return Session(
        project_path=project_dir.name,
        session_id=jsonl_file.name[: -len(TRANSCRIPT_EXT)],
        file_path=jsonl_file,
        mod_time=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        records=records,
    )


def load_sessions(projects_dir: Path) -> list[Session]:
    """Find every transcript under projects_dir/<project>/*.jsonl.

    Listings are sorted by name so discovery order is the same on every
    run. Unreadable projects and files are skipped; an unreadable root
    raises DiscoveryError.
    """
    try:
        project_dirs = sorted(p for p in Path(projects_dir).iterdir() if p.is_dir())
    except OSError as e:
        raise DiscoveryError(f"cannot read {projects_dir}: {e}") from e

    sessions = []
    for project_dir in project_dirs:
        try:
            files = sorted(f for f in project_dir.iterdir() if f.name.endswith(TRANSCRIPT_EXT))
        except OSError as e:
            logger.debug("skipping project %s: %s", project_dir, e)
            continue

        for jsonl_file in files:
            try:
                sessions.append(_load_session(project_dir, jsonl_file))
            except (OSError, TranscriptError) as e:
                logger.debug("skipping transcript %s: %s", jsonl_file, e)

    logger.debug("discovered %d session(s) in %s", len(sessions), projects_dir)
    return sessions


# ── Ranking ────────────────────────────────────────────────


def rank_sessions(sessions: list[Session]) -> list[Session]:
    """Most recently active first; ties keep discovery order."""
    return sorted(sessions, key=lambda s: s.last_active, reverse=True)
