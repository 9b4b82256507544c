"""Todo list types read from the Claude todos directory."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TodoStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class TodoPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        return self.value.title()


@dataclass
class TodoItem:
    content: str
    status: TodoStatus
    priority: TodoPriority
    id: str


@dataclass
class SessionTodos:
    session_id: str
    agent_id: str
    project_path: str
    last_modified: float
    todos: list[TodoItem] = field(default_factory=list)


@dataclass
class ProjectTodoStats:
    total_todos: int = 0
    completed_todos: int = 0
    in_progress_todos: int = 0
    pending_todos: int = 0
    completion_percentage: float = 0.0
    high_priority_remaining: int = 0
    recent_activity: Optional[float] = None
