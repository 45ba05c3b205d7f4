"""claude-picker — browse recorded Claude Code sessions and resume one."""

__version__ = "0.1.0"

from .config import Config
from .errors import (
    DiscoveryError,
    LaunchError,
    LineTooLongError,
    PickerError,
    SelectorError,
    TranscriptError,
)
from .launch import ProcessResult, ProcessRunner, launch_session, resolve_working_dir
from .sessions import (
    Message,
    Session,
    TranscriptRecord,
    load_sessions,
    parse_line,
    rank_sessions,
    read_transcript,
)
from .summarize import Summarizer, summarize_chat, summarize_with_claude
from .ui import SessionItem, SessionPickerApp, Selector, State, pick_session, run_picker

__all__ = [
    "Config",
    "DiscoveryError",
    "LaunchError",
    "LineTooLongError",
    "Message",
    "PickerError",
    "ProcessResult",
    "ProcessRunner",
    "SelectorError",
    "Selector",
    "Session",
    "SessionItem",
    "SessionPickerApp",
    "State",
    "Summarizer",
    "TranscriptError",
    "TranscriptRecord",
    "launch_session",
    "load_sessions",
    "parse_line",
    "pick_session",
    "rank_sessions",
    "read_transcript",
    "resolve_working_dir",
    "run_picker",
    "summarize_chat",
    "summarize_with_claude",
]
