"""Qt models for Claude usage analytics."""

from claude_usage_analytics.models.project_model import ProjectModel

__all__ = ["ProjectModel"]
