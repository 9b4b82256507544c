"""QAbstractListModel exposing project snapshots to the presentation layer."""

from datetime import datetime

from PySide6.QtCore import QAbstractListModel, QModelIndex, Qt, Slot

from claude_usage_analytics.types import Project


class ProjectModel(QAbstractListModel):
    """Read-only list of Projects from the latest refresh."""

    NameRole = Qt.UserRole + 1
    PathRole = Qt.UserRole + 2
    StatusRole = Qt.UserRole + 3
    ActiveRole = Qt.UserRole + 4
    SessionCountRole = Qt.UserRole + 5
    LastActivityRole = Qt.UserRole + 6

    def __init__(self, parent=None):
        super().__init__(parent)
        self._projects: list[Project] = []

    def roleNames(self):
        return {
            self.NameRole: b"name",
            self.PathRole: b"path",
            self.StatusRole: b"status",
            self.ActiveRole: b"isActive",
            self.SessionCountRole: b"sessionCount",
            self.LastActivityRole: b"lastActivity",
        }

    def rowCount(self, parent=QModelIndex()):
        return len(self._projects)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid() or index.row() >= len(self._projects):
            return None

        project = self._projects[index.row()]

        if role in (self.NameRole, Qt.DisplayRole):
            return project.name
        elif role == self.PathRole:
            return project.path
        elif role == self.StatusRole:
            return project.status.value
        elif role == self.ActiveRole:
            return project.is_active
        elif role == self.SessionCountRole:
            return len(project.sessions)
        elif role == self.LastActivityRole:
            last = project.last_activity
            return datetime.fromtimestamp(last).strftime("%Y-%m-%d %H:%M") if last else ""
        return None

    def set_projects(self, projects: list[Project]):
        """Replace the entire project list."""
        self.beginResetModel()
        self._projects = list(projects)
        self.endResetModel()

    @Slot(int, result=str)
    def get_project_name(self, index: int) -> str:
        if 0 <= index < len(self._projects):
            return self._projects[index].name
        return ""
