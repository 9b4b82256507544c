"""Comprehensive usage analytics across all projects."""

import logging
from collections import Counter, defaultdict

from claude_usage_analytics.services.pricing import PricingResolver
from claude_usage_analytics.types import (
    CacheEfficiencyStats,
    CostBreakdown,
    DailyUsageDetail,
    HourlyUsage,
    ModelUsageStats,
    ProjectUsageStats,
    SessionAnalytics,
    UsageAnalytics,
    UsageRecord,
)
from claude_usage_analytics.utils.path_codec import display_name_from_sanitized
from claude_usage_analytics.utils.time_windows import local_date_key, to_local

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


class AnalyticsCalculator:
    """Builds a UsageAnalytics report from already loaded records."""

    def __init__(self, pricing: PricingResolver):
        self._pricing = pricing

    def _record_cost(self, record: UsageRecord) -> float:
        if record.cost_usd > 0:
            return record.cost_usd
        return self._pricing.calculate_cost_cached(record.usage, record.model)

    def generate(
        self,
        records_by_project: dict[str, list[UsageRecord]],
        project_names: dict[str, str] | None = None,
    ) -> UsageAnalytics:
        """``records_by_project`` is keyed by sanitized directory name;
        ``project_names`` maps those to display names.
        """
        project_names = project_names or {}
        named: dict[str, list[UsageRecord]] = defaultdict(list)
        for dir_name, records in records_by_project.items():
            name = project_names.get(dir_name) or display_name_from_sanitized(dir_name)
            named[name].extend(records)
        all_records = [(name, r) for name, records in named.items() for r in records]
        costs = [self._record_cost(r) for _, r in all_records]

        analytics = UsageAnalytics(
            daily_usage=self._daily(all_records, costs),
            model_distribution=self._models(all_records, costs),
            hourly_patterns=self._hourly(all_records, costs),
            cache_efficiency=self._cache_efficiency(all_records),
            cost_breakdown=self._cost_breakdown(all_records, costs),
            project_usage=self._projects(named),
            session_analytics=self._sessions(all_records, costs),
        )
        logger.debug("Generated analytics over %d records", len(all_records))
        return analytics

    def _daily(self, all_records, costs) -> list[DailyUsageDetail]:
        days: dict[str, DailyUsageDetail] = {}
        sessions: dict[str, set[str]] = defaultdict(set)
        models: dict[str, set[str]] = defaultdict(set)
        for (_, record), cost in zip(all_records, costs):
            key = local_date_key(record.timestamp)
            day = days.setdefault(key, DailyUsageDetail(date=key))
            day.input_tokens += record.usage.input_tokens
            day.output_tokens += record.usage.output_tokens
            day.cache_creation_tokens += record.usage.cache_creation_tokens
            day.cache_read_tokens += record.usage.cache_read_tokens
            day.total_cost += cost
            day.message_count += 1
            if record.session_id:
                sessions[key].add(record.session_id)
            models[key].add(record.model)
        for key, day in days.items():
            day.session_count = len(sessions[key])
            day.models_used = sorted(models[key])
        return [days[key] for key in sorted(days, reverse=True)]

    def _models(self, all_records, costs) -> dict[str, ModelUsageStats]:
        result: dict[str, ModelUsageStats] = {}
        for (_, record), cost in zip(all_records, costs):
            stats = result.setdefault(record.model, ModelUsageStats(model_name=record.model))
            stats.total_tokens += record.usage.total
            stats.total_cost += cost
            stats.usage_count += 1
            if stats.first_used is None or record.timestamp < stats.first_used:
                stats.first_used = record.timestamp
            if stats.last_used is None or record.timestamp > stats.last_used:
                stats.last_used = record.timestamp
        for stats in result.values():
            stats.avg_cost_per_message = stats.total_cost / stats.usage_count
        return result

    def _hourly(self, all_records, costs) -> list[HourlyUsage]:
        hours = [HourlyUsage(hour=h) for h in range(24)]
        for (_, record), cost in zip(all_records, costs):
            bucket = hours[to_local(record.timestamp).hour]
            bucket.tokens += record.usage.input_tokens + record.usage.output_tokens
            bucket.cost += cost
            bucket.message_count += 1
        return hours

    def _cache_efficiency(self, all_records) -> CacheEfficiencyStats:
        stats = CacheEfficiencyStats()
        for _, record in all_records:
            stats.cache_creation_tokens += record.usage.cache_creation_tokens
            stats.cache_read_tokens += record.usage.cache_read_tokens
            if record.usage.cache_read_tokens:
                pricing = self._pricing.resolve_cached(record.model)
                saved_per_token = pricing.input_cost_per_token - pricing.cache_read_cost_per_token
                stats.cost_savings += record.usage.cache_read_tokens * saved_per_token
        cached = stats.cache_creation_tokens + stats.cache_read_tokens
        if cached:
            stats.cache_hit_rate = stats.cache_read_tokens / cached * 100.0
        return stats

    def _cost_breakdown(self, all_records, costs) -> CostBreakdown:
        breakdown = CostBreakdown()
        days = set()
        for (_, record), cost in zip(all_records, costs):
            pricing = self._pricing.resolve_cached(record.model)
            breakdown.input_cost += record.usage.input_tokens * pricing.input_cost_per_token
            breakdown.output_cost += record.usage.output_tokens * pricing.output_cost_per_token
            breakdown.cache_creation_cost += (
                record.usage.cache_creation_tokens * pricing.cache_creation_cost_per_token
            )
            breakdown.cache_read_cost += record.usage.cache_read_tokens * pricing.cache_read_cost_per_token
            breakdown.total_cost += cost
            days.add(local_date_key(record.timestamp))
        if days:
            breakdown.daily_average = breakdown.total_cost / len(days)
            breakdown.projected_monthly = breakdown.daily_average * DAYS_PER_MONTH
        return breakdown

    def _projects(self, named: dict[str, list[UsageRecord]]) -> list[ProjectUsageStats]:
        result = []
        for name, records in named.items():
            if not records:
                continue
            model_counts = Counter(r.model for r in records)
            result.append(ProjectUsageStats(
                project_name=name,
                total_tokens=sum(r.usage.total for r in records),
                total_cost=sum(self._record_cost(r) for r in records),
                session_count=len({r.session_id for r in records}),
                message_count=len(records),
                most_used_model=model_counts.most_common(1)[0][0],
            ))
        result.sort(key=lambda p: p.total_cost, reverse=True)
        return result

    def _sessions(self, all_records, costs) -> list[SessionAnalytics]:
        sessions: dict[str, SessionAnalytics] = {}
        models: dict[str, set[str]] = defaultdict(set)
        for (name, record), cost in zip(all_records, costs):
            sid = record.session_id
            entry = sessions.get(sid)
            if entry is None:
                entry = sessions[sid] = SessionAnalytics(
                    session_id=sid,
                    project_name=name,
                    start_time=record.timestamp,
                    end_time=record.timestamp,
                )
            entry.start_time = min(entry.start_time, record.timestamp)
            entry.end_time = max(entry.end_time, record.timestamp)
            entry.total_tokens += record.usage.total
            entry.total_cost += cost
            entry.message_count += 1
            models[sid].add(record.model)
        for sid, entry in sessions.items():
            entry.duration_minutes = (entry.end_time - entry.start_time).total_seconds() / 60
            entry.models_used = sorted(models[sid])
        return sorted(sessions.values(), key=lambda s: s.total_cost, reverse=True)

