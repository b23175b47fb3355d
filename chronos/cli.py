"""Command-line entry point: ``chronos log | report | workspace``."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import os
import sys
from typing import List, Optional

from .activity import GitlabClient, LinearClient, fetch_activity
from .clockify import ClockifyClient
from .config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_ENV_PATH,
    DEFAULT_LOG_PATH,
    Config,
    configure_logging,
    load_config,
    load_dotenv,
)
from .durations import format_duration, parse_duration
from .errors import ApiError, ConfigError, DurationError
from .grid import ReportGrid
from .mock import MemoryTracker, generate_demo_activity, generate_demo_entries
from .models import ReportMonth, TimeEntry
from . import ui

logger = logging.getLogger('chronos')


def mock_enabled() -> bool:
    return os.environ.get("CHRONOS_MOCK") == "1"


def clockify_client(cfg: Config, *, need_user: bool = False) -> ClockifyClient:
    cfg.require_clockify(user_id=need_user)
    ck = cfg.clockify
    return ClockifyClient(ck.api_key, ck.base_url, user_id=ck.user_id, user_url=ck.user_url, timeout=cfg.timeout)


def activity_clients(cfg: Config) -> dict:
    linear = None
    if cfg.linear.api_key:
        linear = LinearClient(cfg.linear.api_key, cfg.linear.base_url, timeout=cfg.timeout)
    gitlab = None
    if cfg.gitlab.api_key and cfg.gitlab.user_id:
        gitlab = GitlabClient(cfg.gitlab.api_key, cfg.gitlab.user_id, cfg.gitlab.base_url, timeout=cfg.timeout)
    return {"Linear": linear, "Git": gitlab}


# -----------------------------
# Commands
# -----------------------------
def cmd_log(args: argparse.Namespace, cfg: Config) -> int:
    try:
        seconds = parse_duration(args.duration)
    except DurationError as exc:
        print(f"Invalid duration format: {args.duration} ({exc})", file=sys.stderr)
        return 2
    tracker = MemoryTracker() if mock_enabled() else clockify_client(cfg)
    entry = TimeEntry(description=args.task, time=dt.datetime.now().astimezone(),
                      duration=seconds, project_id=args.project or cfg.clockify.default_project)
    entry_id = tracker.create_entry(entry)
    logger.info("Logged %s for %r (ID %s)", format_duration(seconds), args.task, entry_id)
    print(f"Logged {format_duration(seconds)} for task: {args.task}")
    return 0


def build_report(month: ReportMonth, cfg: Config) -> ui.ReportScreen:
    """Load the month and activity feeds; the returned screen is ready to run."""
    start, end = month.bounds()
    feed_errors: List[str] = []
    if mock_enabled():
        tracker = MemoryTracker(generate_demo_entries(month))
        activity = generate_demo_activity()
    else:
        tracker = clockify_client(cfg, need_user=True)
        activity = fetch_activity(activity_clients(cfg), start, end, errors=feed_errors)
    entries = tracker.fetch_entries(start, end)
    grid = ReportGrid(tracker, month, project_id=cfg.clockify.default_project, entries=entries)
    grid.log.info(f"Loaded {len(entries)} time entries for {month.label()}")
    for message in feed_errors:
        grid.log.error(message)
    return ui.ReportScreen(grid, activity, min_full_height=cfg.min_full_height)


def cmd_report(args: argparse.Namespace, cfg: Config) -> int:
    if args.month:
        try:
            month = ReportMonth.parse(args.month)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return 2
    else:
        month = ReportMonth.current()
    screen = build_report(month, cfg)
    screen.build_application().run()
    return 0


def cmd_workspace(args: argparse.Namespace, cfg: Config) -> int:
    print(clockify_client(cfg).workspace_info())
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="chronos", description="Clockify time tracking from the terminal")
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to YAML config (optional)")
    ap.add_argument("--env-file", default=DEFAULT_ENV_PATH, help="Path to a KEY=VALUE .env file")
    ap.add_argument("--log-level", default="ERROR", help="File log level (DEBUG, INFO, WARNING, ERROR)")
    ap.add_argument("--log-file", default=DEFAULT_LOG_PATH, help=argparse.SUPPRESS)
    sub = ap.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p_log = sub.add_parser("log", aliases=["l"], help="Log time for a task now")
    p_log.add_argument("duration", help="Duration such as 1h30m, 45m or 1:30")
    p_log.add_argument("task", help="Task description")
    p_log.add_argument("--project", help="Clockify project id")
    p_log.set_defaults(func=cmd_log)

    p_report = sub.add_parser("report", aliases=["r"], help="Open the monthly time grid")
    p_report.add_argument("--month", help="Month to show as YYYY-MM (default: current month)")
    p_report.set_defaults(func=cmd_report)

    p_ws = sub.add_parser("workspace", aliases=["ws"], help="Print account/workspace info as JSON")
    p_ws.set_defaults(func=cmd_workspace)
    return ap


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    load_dotenv(args.env_file)
    try:
        configure_logging(args.log_level, args.log_file)
    except OSError as exc:
        print(f"Cannot open log file {args.log_file}: {exc}", file=sys.stderr)
        sys.exit(1)
    try:
        cfg = load_config(args.config)
        code = args.func(args, cfg)
    except (ConfigError, ApiError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
