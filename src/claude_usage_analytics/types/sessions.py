"""Session and project metadata types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

RECENT_WINDOW_S = 24 * 3600


class PathStatus(str, Enum):
    RESOLVED = "resolved"
    ORPHANED = "orphaned"
    UNKNOWN = "unknown"


@dataclass
class Session:
    id: str             # File stem
    file_path: str
    project_dir: str    # Sanitized project directory name
    last_modified: float
    message_count: int = 0

    def age_hours(self, now: float) -> float:
        return max(0.0, now - self.last_modified) / 3600

    def is_recent(self, now: float) -> bool:
        return now - self.last_modified < RECENT_WINDOW_S


@dataclass
class PathResolution:
    status: PathStatus
    path: str          # Real path, or an "Orphaned: ..." / "Unknown: ..." marker
    display_name: str


@dataclass
class Project:
    name: str           # Display name
    dir_name: str       # Sanitized directory name under the projects root
    path: str
    status: PathStatus = PathStatus.UNKNOWN
    sessions: list[Session] = field(default_factory=list)
    is_active: bool = False

    @property
    def most_recent_session(self) -> Optional[Session]:
        if not self.sessions:
            return None
        return max(self.sessions, key=lambda s: s.last_modified)

    @property
    def last_activity(self) -> Optional[float]:
        recent = self.most_recent_session
        return recent.last_modified if recent else None

    @property
    def total_messages(self) -> int:
        return sum(s.message_count for s in self.sessions)

    def active_within_days(self, days: int, now: float) -> bool:
        threshold = now - days * 24 * 3600
        return any(s.last_modified > threshold for s in self.sessions)

    def path_exists(self) -> bool:
        return self.status == PathStatus.RESOLVED and Path(self.path).exists()


@dataclass
class ProjectScanStats:
    total_projects: int = 0
    active_projects: int = 0
    orphaned_projects: int = 0
    total_sessions: int = 0
    most_recent_activity: Optional[datetime] = None
