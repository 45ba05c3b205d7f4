"""Tests for heuristic and delegated session summaries."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from claude_picker.launch import ProcessResult
from claude_picker.sessions import Message, Session, TranscriptRecord
from claude_picker.summarize import (
    Summarizer,
    build_excerpt,
    digest_chat,
    format_age,
    summarize_chat,
    summarize_with_claude,
)


def user(content: str, cwd: str = "", ts: datetime | None = None) -> TranscriptRecord:
    return TranscriptRecord(type="user", cwd=cwd, message=Message("user", content), timestamp=ts)


def assistant(content: str, ts: datetime | None = None) -> TranscriptRecord:
    return TranscriptRecord(type="assistant", message=Message("assistant", content), timestamp=ts)


class TestFormatAge:
    """Tests for format_age."""

    @pytest.mark.parametrize("delta, expected", [
        (timedelta(seconds=0), "0m"),
        (timedelta(seconds=29), "0m"),
        (timedelta(seconds=31), "1m"),
        (timedelta(minutes=20), "20m"),
        (timedelta(hours=2), "2h"),
        (timedelta(hours=2, minutes=5, seconds=10), "2h 5m"),
        (timedelta(minutes=-5), "0m"),
    ])
    def test_rounds_to_nearest_minute(self, delta, expected):
        assert format_age(delta) == expected


class TestSummarizeChat:
    """Tests for summarize_chat."""

    def test_empty_session(self):
        assert summarize_chat([]) == "Empty session"

    def test_single_user_message(self, now):
        records = [user("Help me debug this error", "/Users/test/project", now - timedelta(hours=2))]
        result = summarize_chat(records, now=now)
        assert result == "[project] Help me debug this error (2h ago)"

    def test_default_now_is_current_time(self):
        ts = datetime.now(timezone.utc) - timedelta(hours=2)
        result = summarize_chat([user("Help me debug this error", "/Users/test/project", ts)])
        assert "[project]" in result
        assert "Help me debug this error" in result
        assert "(2h" in result

    def test_long_message_truncated(self, now):
        records = [user("a" * 150, "/test/dir", now - timedelta(hours=1))]
        result = summarize_chat(records, now=now)
        assert result == "[dir] " + "a" * 100 + "... (1h ago)"

    def test_multiple_messages(self, now):
        records = [
            user("First message", "/project", now - timedelta(minutes=30)),
            user("Second message", "", now - timedelta(minutes=20)),
        ]
        result = summarize_chat(records, now=now)
        assert result == "[project] First message (+1 more messages) (20m ago)"

    def test_project_from_first_record_with_cwd(self, now):
        records = [
            assistant("hi"),
            user("go", "/home/me/first", now),
            user("again", "/home/me/second", now),
        ]
        assert summarize_chat(records, now=now).startswith("[first] go")

    def test_older_than_a_day_shows_date(self, now):
        ts = datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)
        local = ts.astimezone()
        result = summarize_chat([user("old work", "/p", ts)], now=now)
        assert result == f"[p] old work ({local:%b} {local.day})"

    def test_no_user_messages(self, now):
        result = summarize_chat([assistant("thinking", now - timedelta(minutes=5))], now=now)
        assert result == "[] (5m ago)"

    def test_missing_last_timestamp_has_no_suffix(self, now):
        records = [user("hello", "/p", now), assistant("bye")]
        assert summarize_chat(records, now=now) == "[p] hello"

    def test_user_text_is_stripped(self, now):
        assert summarize_chat([user("  padded \n", "/p")], now=now) == "[p] padded"


class TestDigestChat:
    """Tests for digest_chat."""

    def test_tool_signal(self):
        assert digest_chat([assistant('{"tool_calls": []}')]).used_tools
        assert not digest_chat([assistant("plain answer"), user("tool_calls")]).used_tools

    def test_tool_use_block_counts_as_tool_signal(self):
        record = TranscriptRecord(type="assistant", message=Message("assistant", "", has_tool_use=True))
        assert digest_chat([user("run the tests"), record]).used_tools

    def test_collects_user_messages_in_order(self):
        digest = digest_chat([user("one"), assistant("x"), user("two")])
        assert digest.user_messages == ["one", "two"]


class TestSummarizeWithClaude:
    """Tests for delegated summaries."""

    def test_uses_trimmed_output(self, fake_runner):
        runner = fake_runner(ProcessResult(0, "  Fixing the login redirect bug\n"))
        records = [user("login redirects to 404", "/p"), assistant("Looking at routes")]

        result = summarize_with_claude(records, runner, claude_bin="my-claude", timeout=5)

        assert result == "Fixing the login redirect bug"
        (call,) = runner.calls
        assert call["args"][0] == "my-claude"
        assert call["args"][1] == "-p"
        assert "user: login redirects to 404" in call["args"][2]
        assert "assistant: Looking at routes" in call["args"][2]
        assert call["capture_output"] is True
        assert call["timeout"] == 5

    def test_output_capped_at_100_chars(self, fake_runner):
        runner = fake_runner(ProcessResult(0, "x" * 300))
        assert summarize_with_claude([user("hi")], runner) == "x" * 100

    def test_multiline_output_joined(self, fake_runner):
        runner = fake_runner(ProcessResult(0, "Refactor\n  parser\n"))
        assert summarize_with_claude([user("hi")], runner) == "Refactor parser"

    def test_failure_falls_back_to_heuristic(self, fake_runner):
        runner = fake_runner(ProcessResult(error="claude: No such file or directory"))
        records = [user("Help me", "/Users/test/project")]
        assert summarize_with_claude(records, runner) == summarize_chat(records)

    def test_empty_output_falls_back_to_heuristic(self, fake_runner):
        runner = fake_runner(ProcessResult(0, "   \n"))
        records = [user("Help me", "/Users/test/project")]
        assert summarize_with_claude(records, runner) == "[project] Help me"

    def test_empty_session_skips_process(self, fake_runner):
        runner = fake_runner()
        assert summarize_with_claude([], runner) == "Empty session"
        assert runner.calls == []


class TestBuildExcerpt:
    """Tests for build_excerpt."""

    def test_only_first_21_records(self):
        records = [user(f"msg {i}") for i in range(30)]
        excerpt = build_excerpt(records)
        assert "user: msg 20\n" in excerpt
        assert "msg 21" not in excerpt

    def test_skips_other_types_and_caps_length(self):
        records = [TranscriptRecord(type="summary", message=Message("", "meta")), assistant("b" * 600)]
        assert build_excerpt(records) == "assistant: " + "b" * 500 + "...\n"


def _session(records) -> Session:
    now = datetime.now(timezone.utc)
    return Session(project_path="p", session_id="s", file_path=Path("s.jsonl"),
                   mod_time=now, records=records)


class TestSummarizer:
    """Tests for the Summarizer facade."""

    def test_heuristic_mode_never_runs_process(self, fake_runner):
        runner = fake_runner(ProcessResult(0, "AI summary"))
        summarizer = Summarizer(use_ai_summary=False, runner=runner)
        assert summarizer.summarize([user("hello", "/p")]) == "[p] hello"
        assert runner.calls == []

    def test_ai_mode_uses_process(self, fake_runner):
        runner = fake_runner(ProcessResult(0, "AI summary"))
        summarizer = Summarizer(use_ai_summary=True, runner=runner, claude_bin="cl")
        assert summarizer.summarize([user("hello")]) == "AI summary"
        assert runner.calls[0]["args"][0] == "cl"

    def test_ai_mode_survives_undecodable_output(self, tmp_path):
        script = tmp_path / "fake-claude"
        script.write_text(f"#!{sys.executable}\nimport sys\nsys.stdout.buffer.write(b'\\xff\\xfe Fixing the parser')\n")
        script.chmod(0o755)
        summarizer = Summarizer(use_ai_summary=True, claude_bin=str(script), timeout=10)
        assert "Fixing the parser" in summarizer.summarize([user("hello", "/p")])

    def test_summarize_all_fills_sessions(self):
        sessions = [_session([]), _session([user("hello", "/p")])]
        Summarizer().summarize_all(sessions)
        assert sessions[0].summary == "Empty session"
        assert sessions[1].summary == "[p] hello"
