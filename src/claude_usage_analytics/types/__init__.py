"""Type definitions for Claude usage analytics."""

from claude_usage_analytics.types.usage import (
    BLOCK_DURATION,
    TokenUsage,
    UsageRecord,
    UsageStats,
    SessionBlock,
    ProjectAnalytics,
    DailyUsage,
    ModelUsage,
)
from claude_usage_analytics.types.sessions import (
    PathStatus,
    PathResolution,
    Session,
    Project,
    ProjectScanStats,
)
from claude_usage_analytics.types.pricing import ModelPricing, PricingCache
from claude_usage_analytics.types.analytics import (
    DailyUsageDetail,
    ModelUsageStats,
    HourlyUsage,
    CacheEfficiencyStats,
    CostBreakdown,
    ProjectUsageStats,
    SessionAnalytics,
    UsageAnalytics,
)
from claude_usage_analytics.types.todos import (
    TodoStatus,
    TodoPriority,
    TodoItem,
    SessionTodos,
    ProjectTodoStats,
)
from claude_usage_analytics.types.refresh import RefreshResult

__all__ = [
    "BLOCK_DURATION",
    "TokenUsage",
    "UsageRecord",
    "UsageStats",
    "SessionBlock",
    "ProjectAnalytics",
    "DailyUsage",
    "ModelUsage",
    "PathStatus",
    "PathResolution",
    "Session",
    "Project",
    "ProjectScanStats",
    "ModelPricing",
    "PricingCache",
    "DailyUsageDetail",
    "ModelUsageStats",
    "HourlyUsage",
    "CacheEfficiencyStats",
    "CostBreakdown",
    "ProjectUsageStats",
    "SessionAnalytics",
    "UsageAnalytics",
    "TodoStatus",
    "TodoPriority",
    "TodoItem",
    "SessionTodos",
    "ProjectTodoStats",
    "RefreshResult",
]
