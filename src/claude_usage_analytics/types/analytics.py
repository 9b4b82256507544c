"""Types for the comprehensive usage analytics report."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class DailyUsageDetail:
    date: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    total_cost: float = 0.0
    session_count: int = 0
    message_count: int = 0
    models_used: list[str] = field(default_factory=list)


@dataclass
class ModelUsageStats:
    model_name: str
    total_tokens: int = 0
    total_cost: float = 0.0
    usage_count: int = 0
    first_used: Optional[datetime] = None
    last_used: Optional[datetime] = None
    avg_cost_per_message: float = 0.0


@dataclass
class HourlyUsage:
    hour: int
    tokens: int = 0
    cost: float = 0.0
    message_count: int = 0


@dataclass
class CacheEfficiencyStats:
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    cache_hit_rate: float = 0.0
    cost_savings: float = 0.0


@dataclass
class CostBreakdown:
    input_cost: float = 0.0
    output_cost: float = 0.0
    cache_creation_cost: float = 0.0
    cache_read_cost: float = 0.0
    total_cost: float = 0.0
    daily_average: float = 0.0
    projected_monthly: float = 0.0


@dataclass
class ProjectUsageStats:
    project_name: str
    total_tokens: int = 0
    total_cost: float = 0.0
    session_count: int = 0
    message_count: int = 0
    most_used_model: str = ""


@dataclass
class SessionAnalytics:
    session_id: str
    project_name: str
    start_time: datetime
    end_time: datetime
    duration_minutes: float = 0.0
    total_tokens: int = 0
    total_cost: float = 0.0
    message_count: int = 0
    models_used: list[str] = field(default_factory=list)


@dataclass
class UsageAnalytics:
    daily_usage: list[DailyUsageDetail] = field(default_factory=list)
    model_distribution: dict[str, ModelUsageStats] = field(default_factory=dict)
    hourly_patterns: list[HourlyUsage] = field(default_factory=list)
    cache_efficiency: CacheEfficiencyStats = field(default_factory=CacheEfficiencyStats)
    cost_breakdown: CostBreakdown = field(default_factory=CostBreakdown)
    project_usage: list[ProjectUsageStats] = field(default_factory=list)
    session_analytics: list[SessionAnalytics] = field(default_factory=list)
