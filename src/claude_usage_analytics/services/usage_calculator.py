"""Usage aggregation over every session log, plus the 5-hour block tracker.

All queries share one loading step (``load_activity``) that reads each log
file once; the ``aggregate_*`` functions are pure and operate on the loaded
records. Costs use the pricing resolver's cache-only path, so no query here
ever goes to the network.
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from claude_usage_analytics.services.pricing import PricingResolver
from claude_usage_analytics.services.session_parser import parse_activity
from claude_usage_analytics.types import (
    DailyUsage,
    ModelUsage,
    Project,
    ProjectAnalytics,
    SessionBlock,
    UsageRecord,
    UsageStats,
)
from claude_usage_analytics.utils.time_windows import (
    block_end,
    format_reset_time,
    format_time_until,
    local_date_key,
    local_now,
    round_to_hour,
    seed_dates,
)

logger = logging.getLogger(__name__)

MAX_LOAD_WORKERS = 8

CostFn = Callable[[UsageRecord], float]


def load_file_activity(file_path: Path) -> tuple[list[UsageRecord], list[datetime]]:
    """Parse one log file; unreadable files yield nothing."""
    try:
        return parse_activity(file_path)
    except OSError as e:
        logger.warning("Skipping unreadable session file %s: %s", file_path, e)
        return [], []


def load_file_records(file_path: Path) -> list[UsageRecord]:
    records, _ = load_file_activity(file_path)
    return records


# ---------------------------------------------------------------------------
# Session blocks
# ---------------------------------------------------------------------------

def build_session_blocks(
    records: Iterable[UsageRecord],
    now: datetime | None = None,
    cost_fn: CostFn | None = None,
    timestamps: Iterable[datetime] = (),
) -> list[SessionBlock]:
    """Fold chronological activity into 5-hour blocks.

    Block boundaries come from every timestamp: the records' own plus
    ``timestamps`` (lines without usage, such as user prompts). A new block
    starts at the rounded-down hour of the first timestamp that falls at or
    after the current block's end. Only records contribute usage.
    """
    if now is None:
        now = local_now()
    records = sorted(records, key=lambda r: r.timestamp)
    moments = sorted([r.timestamp for r in records] + list(timestamps))

    blocks: list[SessionBlock] = []
    current: SessionBlock | None = None
    for moment in moments:
        if current is None or moment >= current.end_time:
            start = round_to_hour(moment)
            current = SessionBlock(start_time=start, end_time=block_end(start))
            blocks.append(current)

    index = 0
    for record in records:
        # Blocks are disjoint and in time order
        while record.timestamp >= blocks[index].end_time:
            index += 1
        blocks[index].usage_stats.add_record(record, cost_fn(record) if cost_fn else 0.0)
    for block in blocks:
        block.is_active = now < block.end_time
    return blocks


def find_active_block(blocks: list[SessionBlock], now: datetime | None = None) -> SessionBlock | None:
    if now is None:
        now = local_now()
    for block in blocks:
        if block.end_time > now:
            return block
    return None


def reset_time_for(blocks: list[SessionBlock], now: datetime | None = None) -> datetime:
    """End of the active block, or five hours from the current hour."""
    if now is None:
        now = local_now()
    active = find_active_block(blocks, now)
    if active is not None:
        return active.end_time
    return block_end(round_to_hour(now))


# ---------------------------------------------------------------------------
# Pure aggregations
# ---------------------------------------------------------------------------

def _flatten(by_project: dict[str, list]) -> Iterable:
    for items in by_project.values():
        yield from items


def aggregate_for_date(records: Iterable[UsageRecord], date_key: str, cost_fn: CostFn) -> UsageStats:
    stats = UsageStats()
    for record in records:
        if local_date_key(record.timestamp) == date_key:
            stats.add_record(record, cost_fn(record))
    return stats


def aggregate_daily(
    records: Iterable[UsageRecord],
    days: int,
    cost_fn: CostFn,
    now: datetime | None = None,
) -> list[DailyUsage]:
    """Per-day stats for the last ``days`` local dates, newest first.

    Every target date is present even without activity.
    """
    buckets = {key: UsageStats() for key in seed_dates(days, now)}
    for record in records:
        stats = buckets.get(local_date_key(record.timestamp))
        if stats is not None:
            stats.add_record(record, cost_fn(record))
    return [DailyUsage(date=key, usage_stats=stats)
            for key, stats in sorted(buckets.items(), reverse=True)]


def aggregate_by_model(records: Iterable[UsageRecord], cost_fn: CostFn) -> list[ModelUsage]:
    buckets: dict[str, UsageStats] = defaultdict(UsageStats)
    for record in records:
        buckets[record.model].add_record(record, cost_fn(record))
    usage = [ModelUsage(model=model, usage_stats=stats) for model, stats in buckets.items()]
    usage.sort(key=lambda m: m.usage_stats.input_tokens + m.usage_stats.output_tokens, reverse=True)
    return usage


def aggregate_stats(records: Iterable[UsageRecord], cost_fn: CostFn) -> UsageStats:
    stats = UsageStats()
    for record in records:
        stats.add_record(record, cost_fn(record))
    return stats


def project_analytics_from(
    project: Project,
    records: list[UsageRecord],
    cost_fn: CostFn,
    now: datetime | None = None,
    timestamps: Iterable[datetime] = (),
) -> ProjectAnalytics:
    stats = aggregate_stats(records, cost_fn)
    modified = [datetime.fromtimestamp(s.last_modified).astimezone() for s in project.sessions]
    eligible = stats.input_tokens + stats.cache_creation_tokens
    return ProjectAnalytics(
        total_sessions=len(project.sessions),
        total_messages=project.total_messages,
        total_tokens=stats.input_tokens + stats.output_tokens,
        estimated_cost=stats.total_cost,
        first_session=min(modified) if modified else None,
        last_session=max(modified) if modified else None,
        cache_efficiency=stats.cache_read_tokens / eligible * 100.0 if eligible else 0.0,
        session_blocks=build_session_blocks(records, now, cost_fn, timestamps),
    )


class UsageCalculator:
    """Computes usage statistics from the logs under a projects root."""

    def __init__(
        self,
        projects_root: str | Path,
        pricing: PricingResolver,
        max_workers: int = MAX_LOAD_WORKERS,
    ):
        self._projects_root = Path(projects_root)
        self._pricing = pricing
        self._max_workers = max_workers

    @property
    def pricing(self) -> PricingResolver:
        return self._pricing

    def record_cost(self, record: UsageRecord) -> float:
        return self._pricing.calculate_cost_cached(record.usage, record.model)

    def _project_dirs(self) -> list[Path]:
        if not self._projects_root.is_dir():
            return []
        return sorted(p for p in self._projects_root.iterdir() if p.is_dir())

    def load_activity(
        self,
        min_mtime: float | None = None,
        project_dirs: list[str] | None = None,
    ) -> tuple[dict[str, list[UsageRecord]], dict[str, list[datetime]]]:
        """Read every session log once, grouped by project directory name.

        Returns the usage records and, separately, the timestamp of every
        timestamped line (usage-bearing or not) for block boundaries.
        Files last modified before ``min_mtime`` are skipped; logs are
        append-only so such a file holds nothing newer than its mtime.
        """
        dirs = self._project_dirs()
        if project_dirs is not None:
            wanted = set(project_dirs)
            dirs = [d for d in dirs if d.name in wanted]

        def load_project(project_dir: Path) -> tuple[list[UsageRecord], list[datetime]]:
            records = []
            timestamps = []
            for jsonl_file in sorted(project_dir.glob("*.jsonl")):
                if min_mtime is not None:
                    try:
                        if jsonl_file.stat().st_mtime < min_mtime:
                            continue
                    except OSError as e:
                        logger.warning("Cannot stat %s: %s", jsonl_file, e)
                        continue
                file_records, file_timestamps = load_file_activity(jsonl_file)
                records.extend(file_records)
                timestamps.extend(file_timestamps)
            return records, timestamps

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            loaded = list(pool.map(load_project, dirs))
        records_by_project = {d.name: records for d, (records, _) in zip(dirs, loaded)}
        timestamps_by_project = {d.name: timestamps for d, (_, timestamps) in zip(dirs, loaded)}
        return records_by_project, timestamps_by_project

    def load_records(
        self,
        min_mtime: float | None = None,
        project_dirs: list[str] | None = None,
    ) -> dict[str, list[UsageRecord]]:
        records_by_project, _ = self.load_activity(min_mtime, project_dirs)
        return records_by_project

    def calculate_today_usage(self, now: datetime | None = None) -> UsageStats:
        stats, _ = self.calculate_refresh_snapshot(now)
        return stats

    def calculate_session_usage(self, session_path: str | Path) -> UsageStats:
        return aggregate_stats(load_file_records(Path(session_path)), self.record_cost)

    def calculate_daily_usage(self, days: int, now: datetime | None = None) -> list[DailyUsage]:
        if now is None:
            now = local_now()
        min_mtime = now.timestamp() - (days + 1) * 24 * 3600
        records = _flatten(self.load_records(min_mtime=min_mtime))
        return aggregate_daily(records, days, self.record_cost, now)

    def calculate_model_usage(self) -> list[ModelUsage]:
        return aggregate_by_model(_flatten(self.load_records()), self.record_cost)

    def calculate_project_analytics(self, project: Project, now: datetime | None = None) -> ProjectAnalytics:
        records, timestamps = self.load_activity(project_dirs=[project.dir_name])
        return project_analytics_from(
            project,
            records.get(project.dir_name, []),
            self.record_cost,
            now,
            timestamps.get(project.dir_name, []),
        )

    def calculate_session_blocks(self, now: datetime | None = None) -> list[SessionBlock]:
        records, timestamps = self.load_activity()
        return build_session_blocks(_flatten(records), now, self.record_cost, _flatten(timestamps))

    def calculate_reset_time(self, now: datetime | None = None) -> datetime:
        if now is None:
            now = local_now()
        return reset_time_for(self.calculate_session_blocks(now), now)

    def time_until_reset(self, now: datetime | None = None) -> str:
        if now is None:
            now = local_now()
        return format_time_until(self.calculate_reset_time(now), now)

    def calculate_refresh_snapshot(self, now: datetime | None = None) -> tuple[UsageStats, str]:
        """Today's stats and the reset-time string from a single pass over the logs."""
        if now is None:
            now = local_now()
        records_by_project, timestamps = self.load_activity()
        records = list(_flatten(records_by_project))
        stats = aggregate_for_date(records, local_date_key(now), self.record_cost)
        reset = reset_time_for(build_session_blocks(records, now, timestamps=_flatten(timestamps)), now)
        stats.reset_time = reset
        return stats, format_reset_time(reset)
