"""Snapshot handed from the background refresh to the interactive side."""

from dataclasses import dataclass, field

from claude_usage_analytics.types.sessions import Project
from claude_usage_analytics.types.todos import ProjectTodoStats
from claude_usage_analytics.types.usage import UsageStats


@dataclass
class RefreshResult:
    projects: list[Project] = field(default_factory=list)
    usage_stats: UsageStats = field(default_factory=UsageStats)
    reset_time_str: str = ""
    project_todos: dict[str, ProjectTodoStats] = field(default_factory=dict)
    completed_at: float = 0.0
