"""Reads Claude Code todo lists and maps them to projects."""

import logging
from collections import defaultdict
from pathlib import Path

import orjson

from claude_usage_analytics.services.session_parser import find_last_cwd
from claude_usage_analytics.types import (
    ProjectTodoStats,
    SessionTodos,
    TodoItem,
    TodoPriority,
    TodoStatus,
)
from claude_usage_analytics.utils.path_codec import reconstruct_path

logger = logging.getLogger(__name__)

AGENT_SEPARATOR = "-agent-"
UNKNOWN_PROJECT = "unknown"

_PRIORITY_ORDER = {TodoPriority.HIGH: 0, TodoPriority.MEDIUM: 1, TodoPriority.LOW: 2}
_STATUS_ORDER = {TodoStatus.IN_PROGRESS: 0, TodoStatus.PENDING: 1, TodoStatus.COMPLETED: 2}


def parse_todo_items(raw) -> list[TodoItem]:
    """Decode a todo array; raises ValueError on an invalid shape."""
    if not isinstance(raw, list):
        raise ValueError("Todo file must contain a JSON array")
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid todo entry: {entry!r}")
        items.append(TodoItem(
            content=str(entry.get("content", "")),
            status=TodoStatus(entry.get("status")),
            priority=TodoPriority(entry.get("priority")),
            id=str(entry.get("id", "")),
        ))
    return items


class TodoScanner:
    """Scans ``<claude_dir>/todos/{session}-agent-{agent}.json`` files."""

    def __init__(self, todos_dir: str | Path, projects_root: str | Path):
        self._todos_dir = Path(todos_dir)
        self._projects_root = Path(projects_root)

    def scan_todos(self) -> dict[str, list[SessionTodos]]:
        """Group every readable todo file by its project path."""
        result: dict[str, list[SessionTodos]] = defaultdict(list)
        if not self._todos_dir.is_dir():
            return {}
        for todo_file in sorted(self._todos_dir.glob("*.json")):
            try:
                session_todos = self.parse_todo_file(todo_file)
            except (OSError, ValueError) as e:
                logger.warning("Skipping todo file %s: %s", todo_file.name, e)
                continue
            if session_todos is not None:
                result[session_todos.project_path].append(session_todos)
        return dict(result)

    def parse_todo_file(self, todo_file: Path) -> SessionTodos | None:
        """Parse one todo file; None when the name does not follow the scheme.

        orjson.JSONDecodeError is a ValueError, so malformed files raise
        ValueError like schema errors do.
        """
        parts = todo_file.stem.split(AGENT_SEPARATOR)
        if len(parts) != 2:
            return None
        session_id, agent_id = parts
        todos = parse_todo_items(orjson.loads(todo_file.read_bytes()))
        return SessionTodos(
            session_id=session_id,
            agent_id=agent_id,
            project_path=self.project_path_for_session(session_id),
            last_modified=todo_file.stat().st_mtime,
            todos=todos,
        )

    def project_path_for_session(self, session_id: str) -> str:
        """Find the project owning ``{session_id}.jsonl``."""
        if not self._projects_root.is_dir():
            return UNKNOWN_PROJECT
        for project_dir in sorted(self._projects_root.iterdir()):
            session_file = project_dir / f"{session_id}.jsonl"
            if not project_dir.is_dir() or not session_file.exists():
                continue
            try:
                cwd = find_last_cwd(session_file)
            except OSError as e:
                logger.warning("Cannot read %s: %s", session_file, e)
                cwd = None
            if cwd:
                return cwd
            try:
                return reconstruct_path(project_dir.name)
            except ValueError:
                return project_dir.name
        return UNKNOWN_PROJECT


def _most_recent(session_todos: list[SessionTodos]) -> SessionTodos | None:
    if not session_todos:
        return None
    return max(session_todos, key=lambda s: s.last_modified)


def calculate_project_stats(session_todos: list[SessionTodos]) -> ProjectTodoStats:
    """Statistics over the most recently modified todo list of a project."""
    stats = ProjectTodoStats()
    recent = _most_recent(session_todos)
    if recent is None:
        return stats
    stats.recent_activity = recent.last_modified
    for todo in recent.todos:
        stats.total_todos += 1
        if todo.status == TodoStatus.COMPLETED:
            stats.completed_todos += 1
        elif todo.status == TodoStatus.IN_PROGRESS:
            stats.in_progress_todos += 1
        else:
            stats.pending_todos += 1
            if todo.priority == TodoPriority.HIGH:
                stats.high_priority_remaining += 1
    if stats.total_todos:
        stats.completion_percentage = stats.completed_todos / stats.total_todos * 100.0
    return stats


def sorted_project_todos(session_todos: list[SessionTodos]) -> list[tuple[str, TodoItem]]:
    """(session_id, todo) pairs of the most recent list, by priority then status."""
    recent = _most_recent(session_todos)
    if recent is None:
        return []
    pairs = [(recent.session_id, todo) for todo in recent.todos]
    pairs.sort(key=lambda p: (_PRIORITY_ORDER[p[1].priority], _STATUS_ORDER[p[1].status]))
    return pairs
