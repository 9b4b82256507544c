"""Tests for claude_usage_analytics.services.project_scanner."""

import time
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from claude_usage_analytics.services import project_scanner
from claude_usage_analytics.services.project_scanner import (
    ProjectScanner,
    resolve_from_directory_name,
    resolve_from_session_cwd,
    resolve_project_path,
)
from claude_usage_analytics.services.session_parser import parse_session
from claude_usage_analytics.types import PathStatus
from helpers import usage_entry, write_session

T0 = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
DAY = 24 * 3600


@pytest.fixture
def scanner(projects_root):
    return ProjectScanner(projects_root)


# ---------------------------------------------------------------------------
# Resolution strategies
# ---------------------------------------------------------------------------

class TestResolveFromSessionCwd:
    def test_existing_cwd_resolves(self, tmp_path):
        real = tmp_path / "proj"
        real.mkdir()
        f = write_session(tmp_path / "p" / "s.jsonl", [usage_entry(T0, input_tokens=1, cwd=str(real))])
        resolution = resolve_from_session_cwd("-x-proj", [parse_session(f)])
        assert resolution.status == PathStatus.RESOLVED
        assert resolution.path == str(real)
        assert resolution.display_name == "proj"

    def test_missing_cwd_is_orphaned(self, tmp_path):
        f = write_session(tmp_path / "p" / "s.jsonl", [{"cwd": "/nonexistent/zzz/app"}])
        resolution = resolve_from_session_cwd("-nonexistent-zzz-app", [parse_session(f)])
        assert resolution.status == PathStatus.ORPHANED
        assert resolution.path == "Orphaned: /nonexistent/zzz/app"
        assert resolution.display_name == "app"

    def test_uses_most_recent_session(self, tmp_path):
        old_dir = tmp_path / "old"
        new_dir = tmp_path / "new"
        old_dir.mkdir()
        new_dir.mkdir()
        now = time.time()
        old = write_session(tmp_path / "p" / "a.jsonl", [{"cwd": str(old_dir)}], mtime=now - 100)
        new = write_session(tmp_path / "p" / "b.jsonl", [{"cwd": str(new_dir)}], mtime=now)
        resolution = resolve_from_session_cwd("-p", [parse_session(old), parse_session(new)])
        assert resolution.path == str(new_dir)

    def test_no_cwd_defers(self, tmp_path):
        f = write_session(tmp_path / "p" / "s.jsonl", [usage_entry(T0, input_tokens=1)])
        assert resolve_from_session_cwd("-p", [parse_session(f)]) is None

    def test_no_sessions_defers(self):
        assert resolve_from_session_cwd("-p", []) is None


class TestResolveFromDirectoryName:
    def test_existing_reconstruction(self):
        resolution = resolve_from_directory_name("-tmp", [])
        assert resolution.status == PathStatus.RESOLVED
        assert resolution.path == "/tmp"
        assert resolution.display_name == "tmp"

    def test_missing_reconstruction_is_orphaned(self):
        resolution = resolve_from_directory_name("-nonexistent-zzz-proj", [])
        assert resolution.status == PathStatus.ORPHANED
        assert resolution.path == "Orphaned: -nonexistent-zzz-proj"
        assert resolution.display_name == "proj"

    def test_non_standard_name_is_unknown(self):
        resolution = resolve_from_directory_name("scratch", [])
        assert resolution.status == PathStatus.UNKNOWN
        assert resolution.path == "Unknown: scratch"
        assert resolution.display_name == "scratch"


class TestResolveProjectPath:
    def test_strategies_tried_in_order(self):
        calls = []

        def first(dir_name, sessions):
            calls.append("first")
            return None

        def second(dir_name, sessions):
            calls.append("second")
            return resolve_from_directory_name(dir_name, sessions)

        resolution = resolve_project_path("-tmp", [], strategies=(first, second))
        assert calls == ["first", "second"]
        assert resolution.status == PathStatus.RESOLVED

    def test_all_strategies_declining_gives_unknown(self):
        resolution = resolve_project_path("-a-b", [], strategies=())
        assert resolution.status == PathStatus.UNKNOWN
        assert resolution.display_name == "b"


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------

class TestScanProjects:
    def test_nonexistent_root(self, tmp_path):
        assert ProjectScanner(tmp_path / "nope").scan_projects() == []

    def test_resolved_and_orphaned_scenario(self, scanner, projects_root, tmp_path):
        real = tmp_path / "Users" / "a" / "proj"
        real.mkdir(parents=True)
        write_session(projects_root / "-Users-a-proj" / "s1.jsonl", [
            usage_entry(T0, input_tokens=1, cwd=str(real)),
        ])
        write_session(projects_root / "-Users-a-proj" / "s2.jsonl", [
            usage_entry(T0, input_tokens=1),
        ], mtime=time.time() - 60)
        write_session(projects_root / "-gone-proj" / "s3.jsonl", [
            usage_entry(T0, input_tokens=1, cwd="/gone/proj"),
        ])

        projects = {p.dir_name: p for p in scanner.scan_projects()}
        resolved = projects["-Users-a-proj"]
        assert resolved.status == PathStatus.RESOLVED
        assert resolved.path == str(real)
        assert resolved.name == "proj"
        assert len(resolved.sessions) == 2

        orphaned = projects["-gone-proj"]
        assert orphaned.status == PathStatus.ORPHANED
        assert orphaned.path == "Orphaned: /gone/proj"

    def test_empty_sessions_discarded(self, scanner, projects_root):
        d = projects_root / "-tmp"
        d.mkdir()
        (d / "empty.jsonl").write_text("")
        projects = scanner.scan_projects()
        assert len(projects) == 1
        assert projects[0].sessions == []
        assert projects[0].is_active is False

    def test_sessions_newest_first(self, scanner, projects_root):
        now = time.time()
        write_session(projects_root / "-tmp" / "old.jsonl", [{"x": 1}], mtime=now - 500)
        write_session(projects_root / "-tmp" / "new.jsonl", [{"x": 1}], mtime=now)
        project = scanner.scan_projects()[0]
        assert [s.id for s in project.sessions] == ["new", "old"]

    def test_sorted_by_recency_with_empty_last(self, scanner, projects_root):
        now = time.time()
        (projects_root / "-aaa-empty").mkdir()
        write_session(projects_root / "-bbb-old" / "s.jsonl", [{"x": 1}], mtime=now - 5 * DAY)
        write_session(projects_root / "-ccc-new" / "s.jsonl", [{"x": 1}], mtime=now)
        names = [p.dir_name for p in scanner.scan_projects()]
        assert names == ["-ccc-new", "-bbb-old", "-aaa-empty"]

    def test_activity_window(self, scanner, projects_root):
        now = time.time()
        write_session(projects_root / "-tmp" / "s.jsonl", [{"x": 1}], mtime=now - 3600)
        write_session(projects_root / "-usr" / "s.jsonl", [{"x": 1}], mtime=now - 2 * DAY)
        projects = {p.dir_name: p for p in scanner.scan_projects(now=now)}
        assert projects["-tmp"].is_active is True
        assert projects["-usr"].is_active is False

    def test_orphaned_forced_inactive(self, scanner, projects_root):
        write_session(projects_root / "-gone" / "s.jsonl", [{"cwd": "/gone/for/good"}])
        project = scanner.scan_projects()[0]
        assert project.status == PathStatus.ORPHANED
        assert project.is_active is False

    def test_unreadable_file_skipped(self, scanner, projects_root):
        good = write_session(projects_root / "-tmp" / "good.jsonl", [{"x": 1}])
        write_session(projects_root / "-tmp" / "bad.jsonl", [{"x": 1}])
        real_parse = project_scanner.parse_session

        def flaky(path):
            if path.name == "bad.jsonl":
                raise PermissionError("denied")
            return real_parse(path)

        with patch.object(project_scanner, "parse_session", side_effect=flaky):
            project = scanner.scan_projects()[0]
        assert [s.id for s in project.sessions] == [good.stem]

    def test_non_directories_ignored(self, scanner, projects_root):
        (projects_root / "stray.txt").write_text("x")
        assert scanner.scan_projects() == []


class TestScannerQueries:
    @pytest.fixture
    def populated(self, projects_root, tmp_path):
        now = time.time()
        write_session(projects_root / "-tmp" / "s.jsonl", [{"x": 1}], mtime=now)
        write_session(projects_root / "-usr" / "s.jsonl", [{"x": 1}], mtime=now - 3 * DAY)
        write_session(projects_root / "-gone-away" / "s.jsonl", [{"cwd": "/gone/away"}], mtime=now)
        return projects_root

    def test_get_project_by_name(self, scanner, populated):
        assert scanner.get_project_by_name("usr").dir_name == "-usr"
        assert scanner.get_project_by_name("missing") is None

    def test_get_active_projects(self, scanner, populated):
        assert [p.name for p in scanner.get_active_projects()] == ["tmp"]

    def test_find_projects_by_pattern(self, scanner, populated):
        assert [p.name for p in scanner.find_projects_by_pattern("US")] == ["usr"]
        assert [p.name for p in scanner.find_projects_by_pattern("orphaned")] == ["away"]

    def test_project_stats(self, scanner, populated):
        stats = scanner.get_project_stats()
        assert stats.total_projects == 3
        assert stats.active_projects == 1
        assert stats.orphaned_projects == 1
        assert stats.total_sessions == 3
        assert stats.most_recent_activity is not None
