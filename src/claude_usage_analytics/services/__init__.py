"""Services for Claude usage analytics."""

from claude_usage_analytics.services.usage_manager import UsageManager
from claude_usage_analytics.services.refresh_scheduler import RefreshScheduler
from claude_usage_analytics.services.project_scanner import ProjectScanner
from claude_usage_analytics.services.usage_calculator import UsageCalculator
from claude_usage_analytics.services.pricing import PricingResolver
from claude_usage_analytics.services.analytics import AnalyticsCalculator
from claude_usage_analytics.services.analytics_cache import TtlCache, RenderCache
from claude_usage_analytics.services.todo_scanner import TodoScanner
from claude_usage_analytics.services.config_manager import ConfigManager

__all__ = [
    "UsageManager",
    "RefreshScheduler",
    "ProjectScanner",
    "UsageCalculator",
    "PricingResolver",
    "AnalyticsCalculator",
    "TtlCache",
    "RenderCache",
    "TodoScanner",
    "ConfigManager",
]
