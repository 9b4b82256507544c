"""Tests for claude_usage_analytics.services.todo_scanner."""

import time

import orjson
import pytest

from claude_usage_analytics.services.todo_scanner import (
    UNKNOWN_PROJECT,
    TodoScanner,
    calculate_project_stats,
    parse_todo_items,
    sorted_project_todos,
)
from claude_usage_analytics.types import SessionTodos, TodoItem, TodoPriority, TodoStatus
from helpers import write_session


def todo(content, status="pending", priority="medium", todo_id="1"):
    return {"content": content, "status": status, "priority": priority, "id": todo_id}


def write_todos(path, items):
    path.write_bytes(orjson.dumps(items))
    return path


@pytest.fixture
def scanner(todos_dir, projects_root):
    return TodoScanner(todos_dir, projects_root)


class TestParseTodoItems:
    def test_valid(self):
        items = parse_todo_items([todo("write tests", "in_progress", "high", "7")])
        assert items == [TodoItem("write tests", TodoStatus.IN_PROGRESS, TodoPriority.HIGH, "7")]

    def test_not_a_list(self):
        with pytest.raises(ValueError):
            parse_todo_items({"content": "x"})

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            parse_todo_items([todo("x", status="blocked")])

    def test_labels(self):
        assert TodoStatus.IN_PROGRESS.label == "In Progress"
        assert TodoPriority.HIGH.label == "High"


class TestTodoScanner:
    def test_maps_todos_to_session_cwd(self, scanner, todos_dir, projects_root):
        write_session(projects_root / "-work-app" / "abc.jsonl", [{"cwd": "/work/app"}])
        write_todos(todos_dir / "abc-agent-abc.json", [todo("one"), todo("two", "completed")])

        result = scanner.scan_todos()
        assert list(result) == ["/work/app"]
        session_todos = result["/work/app"][0]
        assert session_todos.session_id == "abc"
        assert session_todos.agent_id == "abc"
        assert len(session_todos.todos) == 2

    def test_falls_back_to_reconstructed_path(self, scanner, todos_dir, projects_root):
        write_session(projects_root / "-work-app" / "abc.jsonl", [{"type": "summary"}])
        write_todos(todos_dir / "abc-agent-1.json", [todo("one")])
        assert list(scanner.scan_todos()) == ["/work/app"]

    def test_non_standard_dir_name(self, scanner, todos_dir, projects_root):
        write_session(projects_root / "scratch" / "abc.jsonl", [{"type": "summary"}])
        write_todos(todos_dir / "abc-agent-1.json", [todo("one")])
        assert list(scanner.scan_todos()) == ["scratch"]

    def test_orphan_session_is_unknown(self, scanner, todos_dir):
        write_todos(todos_dir / "zzz-agent-1.json", [todo("one")])
        assert list(scanner.scan_todos()) == [UNKNOWN_PROJECT]

    def test_bad_files_skipped(self, scanner, todos_dir):
        (todos_dir / "bad-agent-1.json").write_text("{not json")
        write_todos(todos_dir / "shape-agent-1.json", {"not": "a list"})
        write_todos(todos_dir / "noagent.json", [todo("ignored")])
        write_todos(todos_dir / "ok-agent-1.json", [todo("kept")])
        result = scanner.scan_todos()
        assert [s.session_id for s in result[UNKNOWN_PROJECT]] == ["ok"]

    def test_missing_todos_dir(self, tmp_path):
        assert TodoScanner(tmp_path / "none", tmp_path / "projects").scan_todos() == {}


class TestProjectStats:
    def _session(self, session_id, last_modified, todos):
        return SessionTodos(session_id, session_id, "/p", last_modified, parse_todo_items(todos))

    def test_counts_most_recent_list_only(self):
        now = time.time()
        old = self._session("old", now - 100, [todo("a", "completed")] * 5)
        new = self._session("new", now, [
            todo("a", "completed"),
            todo("b", "in_progress", "high"),
            todo("c", "pending", "high"),
            todo("d", "pending", "low"),
        ])
        stats = calculate_project_stats([old, new])
        assert stats.total_todos == 4
        assert stats.completed_todos == 1
        assert stats.in_progress_todos == 1
        assert stats.pending_todos == 2
        assert stats.high_priority_remaining == 1
        assert stats.completion_percentage == pytest.approx(25.0)
        assert stats.recent_activity == now

    def test_empty(self):
        stats = calculate_project_stats([])
        assert stats.total_todos == 0
        assert stats.recent_activity is None

    def test_sorted_by_priority_then_status(self):
        session = self._session("s", 1.0, [
            todo("low-pending", "pending", "low"),
            todo("high-done", "completed", "high"),
            todo("high-active", "in_progress", "high"),
            todo("medium-pending", "pending", "medium"),
        ])
        ordered = [t.content for _, t in sorted_project_todos([session])]
        assert ordered == ["high-active", "high-done", "medium-pending", "low-pending"]
