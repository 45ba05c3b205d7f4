"""Command-line entry point: discover, summarize, rank, pick, resume."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import Config
from .errors import DiscoveryError, LaunchError
from .launch import ProcessRunner, launch_session
from .sessions import load_sessions, rank_sessions
from .summarize import Summarizer
from .ui import pick_session

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.command()
@click.option("--projects-dir", type=click.Path(path_type=Path, file_okay=False),
              help="Directory holding one sub-directory per project (default: ~/.claude/projects)")
@click.option("--ai-summary/--no-ai-summary", default=None,
              help="Summarize sessions with `claude -p` (default: USE_AI_SUMMARY=1)")
@click.option("--claude-bin", help="claude executable to summarize with and resume into")
@click.option("--verbose", "-v", is_flag=True, help="Log skipped files and summary fallbacks")
@click.version_option(version=__version__, prog_name="claude-picker")
def main(projects_dir, ai_summary, claude_bin, verbose):
    """Browse recorded Claude Code sessions and resume one."""
    setup_logging(verbose)

    config = Config.from_env()
    if projects_dir is not None:
        config.projects_dir = projects_dir
    if ai_summary is not None:
        config.use_ai_summary = ai_summary
    if claude_bin:
        config.claude_bin = claude_bin

    try:
        sessions = load_sessions(config.projects_dir)
    except DiscoveryError as e:
        click.echo(f"Error loading sessions: {e}", err=True)
        sys.exit(1)

    if not sessions:
        click.echo(f"No Claude sessions found in {config.projects_dir}")
        return

    runner = ProcessRunner()
    summarizer = Summarizer(config.use_ai_summary, runner, config.claude_bin, config.summary_timeout)
    summarizer.summarize_all(sessions)
    ranked = rank_sessions(sessions)

    try:
        choice = pick_session(ranked)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if choice is None:
        click.echo("Cancelled.")
        return

    by_id = {s.session_id: s for s in ranked}
    try:
        launch_session(by_id[choice], runner, config.claude_bin)
    except LaunchError as e:
        click.echo(f"Error launching claude: {e}", err=True)
        sys.exit(1)
