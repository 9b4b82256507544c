"""Project discovery and real-path reconciliation.

Claude Code stores each project under a sanitized directory name
(``/home/wiz/app`` → ``-home-wiz-app``). The sanitization is lossy, so the
real path is recovered by trying an ordered list of resolution strategies.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from claude_usage_analytics.services.session_parser import find_last_cwd, parse_session
from claude_usage_analytics.types import (
    PathResolution,
    PathStatus,
    Project,
    ProjectScanStats,
    Session,
)
from claude_usage_analytics.utils.path_codec import (
    display_name_from_path,
    display_name_from_sanitized,
    orphaned_marker,
    reconstruct_path,
    unknown_marker,
)

logger = logging.getLogger(__name__)

MAX_SCAN_WORKERS = 8

# (dir_name, sessions) -> PathResolution | None
ResolutionStrategy = Callable[[str, list[Session]], Optional[PathResolution]]


def resolve_from_session_cwd(dir_name: str, sessions: list[Session]) -> PathResolution | None:
    """Use the newest ``cwd`` of the most recently modified session file."""
    if not sessions:
        return None
    newest = max(sessions, key=lambda s: s.last_modified)
    try:
        cwd = find_last_cwd(newest.file_path)
    except OSError as e:
        logger.warning("Cannot read %s for cwd lookup: %s", newest.file_path, e)
        return None
    if cwd is None:
        return None
    if Path(cwd).exists():
        return PathResolution(PathStatus.RESOLVED, cwd, display_name_from_path(cwd))
    return PathResolution(
        PathStatus.ORPHANED, orphaned_marker(cwd), display_name_from_sanitized(dir_name),
    )


def resolve_from_directory_name(dir_name: str, sessions: list[Session]) -> PathResolution:
    """Reverse the directory-name sanitization; never fails."""
    try:
        candidate = reconstruct_path(dir_name)
    except ValueError:
        return PathResolution(
            PathStatus.UNKNOWN, unknown_marker(dir_name), display_name_from_sanitized(dir_name),
        )
    if Path(candidate).exists():
        return PathResolution(PathStatus.RESOLVED, candidate, display_name_from_path(candidate))
    return PathResolution(
        PathStatus.ORPHANED, orphaned_marker(dir_name), display_name_from_sanitized(dir_name),
    )


DEFAULT_STRATEGIES: tuple[ResolutionStrategy, ...] = (
    resolve_from_session_cwd,
    resolve_from_directory_name,
)


def resolve_project_path(
    dir_name: str,
    sessions: list[Session],
    strategies: tuple[ResolutionStrategy, ...] = DEFAULT_STRATEGIES,
) -> PathResolution:
    for strategy in strategies:
        resolution = strategy(dir_name, sessions)
        if resolution is not None:
            return resolution
    return PathResolution(
        PathStatus.UNKNOWN, unknown_marker(dir_name), display_name_from_sanitized(dir_name),
    )


def load_sessions(project_dir: Path) -> list[Session]:
    """Parse every session log in a project directory, newest first.

    Unreadable files are logged and skipped.
    """
    sessions = []
    for jsonl_file in project_dir.glob("*.jsonl"):
        try:
            session = parse_session(jsonl_file)
        except OSError as e:
            logger.warning("Skipping unreadable session file %s: %s", jsonl_file, e)
            continue
        if session is not None:
            sessions.append(session)
    sessions.sort(key=lambda s: s.last_modified, reverse=True)
    return sessions


def _sort_key(project: Project) -> tuple[int, float]:
    last = project.last_activity
    # Projects without sessions go last
    return (0, -last) if last is not None else (1, 0.0)


class ProjectScanner:
    """Enumerates project directories under the Claude projects root."""

    def __init__(
        self,
        projects_root: str | Path,
        strategies: tuple[ResolutionStrategy, ...] = DEFAULT_STRATEGIES,
        max_workers: int = MAX_SCAN_WORKERS,
    ):
        self._projects_root = Path(projects_root)
        self._strategies = strategies
        self._max_workers = max_workers

    @property
    def projects_root(self) -> Path:
        return self._projects_root

    def scan_projects(self, now: float | None = None) -> list[Project]:
        if now is None:
            now = time.time()
        if not self._projects_root.is_dir():
            logger.warning("Projects root does not exist: %s", self._projects_root)
            return []

        project_dirs = sorted(p for p in self._projects_root.iterdir() if p.is_dir())
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            projects = list(pool.map(lambda d: self._scan_project(d, now), project_dirs))

        projects.sort(key=_sort_key)
        return projects

    def _scan_project(self, project_dir: Path, now: float) -> Project:
        dir_name = project_dir.name
        sessions = load_sessions(project_dir)
        resolution = resolve_project_path(dir_name, sessions, self._strategies)

        is_active = False
        if resolution.status != PathStatus.ORPHANED:
            is_active = any(s.is_recent(now) for s in sessions)

        return Project(
            name=resolution.display_name,
            dir_name=dir_name,
            path=resolution.path,
            status=resolution.status,
            sessions=sessions,
            is_active=is_active,
        )

    def get_project_by_name(self, name: str) -> Project | None:
        for project in self.scan_projects():
            if project.name == name:
                return project
        return None

    def get_active_projects(self) -> list[Project]:
        return [p for p in self.scan_projects() if p.is_active]

    def find_projects_by_pattern(self, pattern: str) -> list[Project]:
        """Case-insensitive substring match on display name or path."""
        needle = pattern.lower()
        return [
            p for p in self.scan_projects()
            if needle in p.name.lower() or needle in p.path.lower()
        ]

    def get_project_stats(self, projects: list[Project] | None = None) -> ProjectScanStats:
        if projects is None:
            projects = self.scan_projects()
        activity = [p.last_activity for p in projects if p.last_activity is not None]
        return ProjectScanStats(
            total_projects=len(projects),
            active_projects=sum(1 for p in projects if p.is_active),
            orphaned_projects=sum(1 for p in projects if p.status == PathStatus.ORPHANED),
            total_sessions=sum(len(p.sessions) for p in projects),
            most_recent_activity=datetime.fromtimestamp(max(activity)).astimezone() if activity else None,
        )
