"""Background refresh: full rescans on a worker thread, one at a time."""

import logging
import time
from pathlib import Path

from PySide6.QtCore import QObject, Signal, Slot, Property, QTimer, QThread

from claude_usage_analytics.services.pricing import (
    DEFAULT_TIMEOUT_S,
    Fetcher,
    PricingResolver,
    fetch_remote_pricing,
)
from claude_usage_analytics.services.project_scanner import ProjectScanner
from claude_usage_analytics.services.todo_scanner import TodoScanner, calculate_project_stats
from claude_usage_analytics.services.usage_calculator import UsageCalculator
from claude_usage_analytics.types import RefreshResult

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 5000


def run_full_refresh(
    projects_root: str | Path,
    todos_dir: str | Path,
    pricing: PricingResolver,
) -> RefreshResult:
    """Rescan everything from scratch with fresh component instances.

    This is the only place where the pricing table may be fetched over the
    network.
    """
    started = time.monotonic()
    pricing.update_cache_if_needed()

    projects = ProjectScanner(projects_root).scan_projects()
    usage_stats, reset_time_str = UsageCalculator(projects_root, pricing).calculate_refresh_snapshot()

    todos_by_project = TodoScanner(todos_dir, projects_root).scan_todos()
    project_todos = {
        path: calculate_project_stats(session_todos)
        for path, session_todos in todos_by_project.items()
    }

    logger.debug(
        "Refresh scanned %d projects in %.2fs", len(projects), time.monotonic() - started,
    )
    return RefreshResult(
        projects=projects,
        usage_stats=usage_stats,
        reset_time_str=reset_time_str,
        project_todos=project_todos,
        completed_at=time.time(),
    )


class _RefreshWorker(QThread):
    """Runs one full refresh; delivers the result (or None) via a queued signal."""

    result_ready = Signal(object)  # RefreshResult | None

    def __init__(
        self,
        projects_root: Path,
        todos_dir: Path,
        pricing_cache_path: Path,
        remote_enabled: bool,
        fetch_timeout: float,
        fetcher: Fetcher,
        parent=None,
    ):
        super().__init__(parent)
        self._projects_root = projects_root
        self._todos_dir = todos_dir
        self._pricing_cache_path = pricing_cache_path
        self._remote_enabled = remote_enabled
        self._fetch_timeout = fetch_timeout
        self._fetcher = fetcher

    def run(self):
        try:
            pricing = PricingResolver(
                self._pricing_cache_path,
                fetcher=self._fetcher,
                timeout=self._fetch_timeout,
                remote_enabled=self._remote_enabled,
            )
            result = run_full_refresh(self._projects_root, self._todos_dir, pricing)
        except Exception:
            logger.exception("Background refresh failed")
            self.result_ready.emit(None)
            return
        self.result_ready.emit(result)


class RefreshScheduler(QObject):
    """Idle → Refreshing → Idle, with at most one refresh in flight.

    Triggers arriving while a refresh runs are dropped. A failed refresh
    emits nothing; the next trigger simply tries again.
    """

    refresh_completed = Signal(object)  # RefreshResult
    refreshing_changed = Signal()

    def __init__(
        self,
        projects_root: str | Path,
        todos_dir: str | Path,
        pricing_cache_path: str | Path,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        remote_enabled: bool = True,
        fetch_timeout: float = DEFAULT_TIMEOUT_S,
        fetcher: Fetcher = fetch_remote_pricing,
        parent=None,
    ):
        super().__init__(parent)
        self._projects_root = Path(projects_root)
        self._todos_dir = Path(todos_dir)
        self._pricing_cache_path = Path(pricing_cache_path)
        self._remote_enabled = remote_enabled
        self._fetch_timeout = fetch_timeout
        self._fetcher = fetcher
        self._refreshing = False
        self._worker: _RefreshWorker | None = None

        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.trigger)

    def _get_refreshing(self) -> bool:
        return self._refreshing

    def _set_refreshing(self, value: bool):
        if self._refreshing != value:
            self._refreshing = value
            self.refreshing_changed.emit()

    refreshing = Property(bool, _get_refreshing, notify=refreshing_changed)

    def interval_ms(self) -> int:
        return self._timer.interval()

    @Slot(int)
    def set_interval_ms(self, interval_ms: int):
        self._timer.setInterval(interval_ms)

    @Slot()
    def start(self):
        """Start periodic refreshes and kick off the first one immediately."""
        self._timer.start()
        self.trigger()

    @Slot()
    def stop(self):
        self._timer.stop()

    @Slot(result=bool)
    def trigger(self) -> bool:
        """Request a refresh. Returns False if one is already running."""
        if self._refreshing:
            logger.debug("Refresh already in progress, trigger ignored")
            return False
        self._set_refreshing(True)

        worker = _RefreshWorker(
            self._projects_root,
            self._todos_dir,
            self._pricing_cache_path,
            self._remote_enabled,
            self._fetch_timeout,
            self._fetcher,
            self,
        )
        worker.result_ready.connect(self._on_result_ready)
        worker.finished.connect(worker.deleteLater)
        self._worker = worker
        worker.start()
        return True

    def _on_result_ready(self, result: RefreshResult | None):
        self._worker = None
        self._set_refreshing(False)
        if result is None:
            return
        self.refresh_completed.emit(result)

    def shutdown(self, timeout_ms: int = 5000):
        """Stop the timer and wait for a running refresh to finish."""
        self._timer.stop()
        if self._worker is not None and self._worker.isRunning():
            self._worker.wait(timeout_ms)
