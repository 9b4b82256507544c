"""Interactive-side orchestrator: owns the current snapshot and the caches."""

import logging
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, Signal, Slot, Property

from claude_usage_analytics.services.analytics import AnalyticsCalculator
from claude_usage_analytics.services.analytics_cache import (
    DAILY_USAGE_TTL_S,
    GLOBAL_ANALYTICS_TTL_S,
    PROJECT_ANALYTICS_TTL_S,
    RENDER_IDLE_TTL_S,
    RenderCache,
    TtlCache,
)
from claude_usage_analytics.services.pricing import PricingResolver
from claude_usage_analytics.services.usage_calculator import UsageCalculator
from claude_usage_analytics.types import (
    DailyUsage,
    ModelUsage,
    Project,
    ProjectAnalytics,
    ProjectTodoStats,
    RefreshResult,
    UsageAnalytics,
    UsageStats,
)
from claude_usage_analytics.utils.time_windows import format_time_until

logger = logging.getLogger(__name__)

_GLOBAL_KEY = "all"
_MODELS_KEY = "models"


class UsageManager(QObject):
    """Holds the latest refresh snapshot and serves cached analytics.

    Snapshot state is only ever replaced through ``apply_refresh_result``,
    which runs on the thread that owns this object.
    """

    projects_changed = Signal()
    usage_changed = Signal()
    selection_changed = Signal()

    def __init__(
        self,
        projects_root: str | Path,
        pricing_cache_path: str | Path,
        parent=None,
        clock: Callable[[], float] | None = None,
    ):
        super().__init__(parent)
        self._projects_root = Path(projects_root)
        # Cache-only pricing; the network is only used by the refresh worker
        self._pricing = PricingResolver(pricing_cache_path, remote_enabled=False)
        self._calculator = UsageCalculator(self._projects_root, self._pricing)
        self._analytics = AnalyticsCalculator(self._pricing)

        self._projects: list[Project] = []
        self._selected_index = 0
        self._today = UsageStats()
        self._reset_time_str = ""
        self._project_todos: dict[str, ProjectTodoStats] = {}

        cache_args = {"clock": clock} if clock is not None else {}
        self._project_cache = TtlCache(PROJECT_ANALYTICS_TTL_S, **cache_args)
        self._daily_cache = TtlCache(DAILY_USAGE_TTL_S, **cache_args)
        self._global_cache = TtlCache(GLOBAL_ANALYTICS_TTL_S, **cache_args)
        self._render_cache = RenderCache(RENDER_IDLE_TTL_S, **cache_args)

    # -- Snapshot accessors --

    def get_projects(self) -> list[Project]:
        return self._projects

    def today_usage(self) -> UsageStats:
        return self._today

    def project_todos(self, project: Project) -> ProjectTodoStats:
        return self._project_todos.get(project.path, ProjectTodoStats())

    def _get_reset_time(self) -> str:
        return self._reset_time_str

    resetTime = Property(str, _get_reset_time, notify=usage_changed)

    def time_until_reset(self) -> str:
        if self._today.reset_time is None:
            return ""
        return format_time_until(self._today.reset_time)

    # -- Selection --

    def _get_selected_index(self) -> int:
        return self._selected_index

    selectedIndex = Property(int, _get_selected_index, notify=selection_changed)

    def selected_project(self) -> Project | None:
        if 0 <= self._selected_index < len(self._projects):
            return self._projects[self._selected_index]
        return None

    @Slot(int)
    def select_project(self, index: int):
        index = max(0, min(index, len(self._projects) - 1)) if self._projects else 0
        if index == self._selected_index:
            return
        self._selected_index = index
        self._render_cache.clear()
        self.selection_changed.emit()

    @Slot(str, result=bool)
    def select_project_by_name(self, name: str) -> bool:
        for i, project in enumerate(self._projects):
            if project.name == name:
                self.select_project(i)
                return True
        return False

    # -- Cached queries --

    def project_analytics(self, project: Project) -> ProjectAnalytics:
        return self._project_cache.get_or_compute(
            project.dir_name, lambda: self._calculator.calculate_project_analytics(project),
        )

    def daily_usage(self, days: int) -> list[DailyUsage]:
        return self._daily_cache.get_or_compute(
            days, lambda: self._calculator.calculate_daily_usage(days),
        )

    def model_usage(self) -> list[ModelUsage]:
        return self._global_cache.get_or_compute(_MODELS_KEY, self._calculator.calculate_model_usage)

    def comprehensive_analytics(self) -> UsageAnalytics:
        return self._global_cache.get_or_compute(_GLOBAL_KEY, self._compute_comprehensive)

    def _compute_comprehensive(self) -> UsageAnalytics:
        names = {p.dir_name: p.name for p in self._projects}
        return self._analytics.generate(self._calculator.load_records(), names)

    def render_text(self, key: str, compute: Callable[[], str]) -> str:
        """Display strings for the presentation layer, cached while in use."""
        self._render_cache.evict_idle()
        return self._render_cache.get_or_compute(key, compute)

    def invalidate_all(self):
        self._project_cache.clear()
        self._daily_cache.clear()
        self._global_cache.clear()
        self._render_cache.clear()

    # -- Snapshot application --

    @Slot(object)
    def apply_refresh_result(self, result: RefreshResult):
        """Swap in a completed refresh, keeping the selected project by name."""
        previous = self.selected_project()
        previous_name = previous.name if previous else None
        previous_index = self._selected_index

        self._projects = list(result.projects)
        self._today = result.usage_stats
        self._reset_time_str = result.reset_time_str
        self._project_todos = dict(result.project_todos)

        index = previous_index
        if previous_name is not None:
            for i, project in enumerate(self._projects):
                if project.name == previous_name:
                    index = i
                    break
        if self._projects:
            index = max(0, min(index, len(self._projects) - 1))
        else:
            index = 0

        # The worker may have stored a newer price table
        self._pricing.reload_if_changed()
        self.invalidate_all()
        self.projects_changed.emit()
        self.usage_changed.emit()
        if index != previous_index:
            self._selected_index = index
            self.selection_changed.emit()
        logger.debug("Applied refresh with %d projects", len(self._projects))
