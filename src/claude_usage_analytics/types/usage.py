"""Token usage records and aggregated usage statistics."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

BLOCK_DURATION = timedelta(hours=5)


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    @property
    def total(self) -> int:
        return (self.input_tokens + self.output_tokens +
                self.cache_creation_tokens + self.cache_read_tokens)

    @property
    def has_usage(self) -> bool:
        return self.total > 0


@dataclass
class UsageRecord:
    """One usage-bearing line of a session log."""
    timestamp: datetime
    usage: TokenUsage
    model: str = "unknown"
    cost_usd: float = 0.0
    service_tier: str = ""
    entry_type: str = ""
    cwd: str = ""
    session_id: str = ""


@dataclass
class UsageStats:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    total_cost: float = 0.0
    message_count: int = 0
    reset_time: Optional[datetime] = None
    is_subscription_user: bool = False

    @property
    def total_tokens(self) -> int:
        return (self.input_tokens + self.output_tokens +
                self.cache_creation_tokens + self.cache_read_tokens)

    @property
    def cache_efficiency(self) -> float:
        """Percentage of all tokens that were cache creation or cache reads."""
        total = self.total_tokens
        if total == 0:
            return 0.0
        return (self.cache_creation_tokens + self.cache_read_tokens) / total * 100.0

    @property
    def has_usage(self) -> bool:
        return self.total_tokens > 0

    def add_record(self, record: UsageRecord, computed_cost: float):
        """Accumulate one record.

        A positive ``costUSD`` in the log is authoritative and marks the scope
        as billed per token; otherwise the locally computed cost is used.
        """
        self.input_tokens += record.usage.input_tokens
        self.output_tokens += record.usage.output_tokens
        self.cache_creation_tokens += record.usage.cache_creation_tokens
        self.cache_read_tokens += record.usage.cache_read_tokens
        self.message_count += 1
        if record.cost_usd > 0:
            self.total_cost += record.cost_usd
            self.is_subscription_user = False
        else:
            self.total_cost += computed_cost
            self.is_subscription_user = True

    def merge(self, other: "UsageStats"):
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.cache_creation_tokens += other.cache_creation_tokens
        self.cache_read_tokens += other.cache_read_tokens
        self.total_cost += other.total_cost
        self.message_count += other.message_count
        if other.message_count:
            self.is_subscription_user = other.is_subscription_user


@dataclass
class SessionBlock:
    """A 5-hour quota window anchored to the hour its first record fell in."""
    start_time: datetime
    end_time: datetime
    usage_stats: UsageStats = field(default_factory=UsageStats)
    is_active: bool = False

    def contains(self, moment: datetime) -> bool:
        return self.start_time <= moment < self.end_time


@dataclass
class ProjectAnalytics:
    total_sessions: int = 0
    total_messages: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0
    first_session: Optional[datetime] = None
    last_session: Optional[datetime] = None
    cache_efficiency: float = 0.0
    session_blocks: list[SessionBlock] = field(default_factory=list)


@dataclass
class DailyUsage:
    date: str  # YYYY-MM-DD, local time
    usage_stats: UsageStats = field(default_factory=UsageStats)


@dataclass
class ModelUsage:
    model: str
    usage_stats: UsageStats = field(default_factory=UsageStats)
