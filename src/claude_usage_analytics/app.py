"""Application entry point: headless event loop printing usage summaries."""

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication

from claude_usage_analytics.errors import DataRootError
from claude_usage_analytics.models.project_model import ProjectModel
from claude_usage_analytics.services.config_manager import MIN_REFRESH_INTERVAL_S, ConfigManager
from claude_usage_analytics.services.refresh_scheduler import RefreshScheduler
from claude_usage_analytics.services.usage_manager import UsageManager
from claude_usage_analytics.types import PathStatus

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="claude-usage-analytics",
        description="Token usage and cost analytics for Claude Code session logs.",
    )
    parser.add_argument("--once", action="store_true", help="Print one summary and exit")
    parser.add_argument("--interval", type=int, default=0, help="Refresh interval in seconds")
    parser.add_argument("--days", type=int, default=0, help="Days shown in the daily table")
    parser.add_argument("--claude-dir", default="", help="Override the Claude data directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _configure_logging(debug: bool):
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)


def render_summary(manager: UsageManager, days: int) -> str:
    """Plain-text summary of the current snapshot."""
    today = manager.today_usage()
    lines = [
        f"Today: {today.total_tokens:,} tokens, ${today.total_cost:.4f} "
        f"({today.message_count} messages, cache {today.cache_efficiency:.1f}%)",
    ]
    if manager.resetTime:
        lines.append(f"Quota resets at {manager.resetTime} (in {manager.time_until_reset()})")

    lines.append("")
    lines.append("Projects:")
    for project in manager.get_projects():
        lines.append(manager.render_text(f"project:{project.dir_name}", lambda p=project: _project_line(p)))

    lines.append("")
    lines.append(f"Last {days} days:")
    for day in manager.daily_usage(days):
        stats = day.usage_stats
        lines.append(f"  {day.date}  {stats.total_tokens:>12,}  ${stats.total_cost:>9.4f}")
    return "\n".join(lines)


def _project_line(project) -> str:
    marker = "*" if project.is_active else " "
    status = "" if project.status == PathStatus.RESOLVED else f" [{project.status.value}]"
    return f" {marker} {project.name:<30} {len(project.sessions):>4} sessions{status}"


def run(argv: list[str] | None = None) -> int:
    """Launch the application."""
    args = _parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Claude Usage Analytics")
    app.setOrganizationName("claude-usage-analytics")

    config = ConfigManager(claude_dir=args.claude_dir or None)
    _configure_logging(args.debug or config.get_bool("advanced/debugLogging"))

    try:
        config.ensure_data_root()
    except DataRootError as e:
        print(f"claude-usage-analytics: {e}", file=sys.stderr)
        return 1

    # Allow Ctrl+C to kill the app
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    if args.interval:
        interval_ms = max(MIN_REFRESH_INTERVAL_S, args.interval) * 1000
    else:
        interval_ms = config.refresh_interval_ms()
    days = args.days or config.get_int("general/dailyDays")

    manager = UsageManager(config.projects_dir(), config.pricing_cache_path())
    project_model = ProjectModel()
    scheduler = RefreshScheduler(
        config.projects_dir(),
        config.todos_dir(),
        config.pricing_cache_path(),
        interval_ms=interval_ms,
        remote_enabled=config.get_bool("pricing/remoteEnabled"),
        fetch_timeout=config.get_int("pricing/fetchTimeoutSecs"),
    )

    # Wire signals: scheduler -> manager -> model / output
    scheduler.refresh_completed.connect(manager.apply_refresh_result)
    manager.projects_changed.connect(
        lambda: project_model.set_projects(manager.get_projects())
    )
    manager.usage_changed.connect(lambda: print(render_summary(manager, days), flush=True))

    if args.once:
        scheduler.refreshing_changed.connect(
            lambda: None if scheduler.refreshing else app.quit()
        )

    logger.info("Watching %s (refresh every %ds)", config.projects_dir(), interval_ms // 1000)
    scheduler.start()
    ret = app.exec()
    scheduler.shutdown()
    return ret
