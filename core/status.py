from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .task import Task


class TaskState(Enum):
    """Derived lifecycle state of a task: (code, icon, label)."""

    PENDING = ("PENDING", "🔄", "In Progress")
    SUBTASKS_PENDING = ("SUBTASKS_PENDING", "🔄", "In Progress")
    DONE = ("DONE", "✅", "Done")

    @property
    def label(self) -> str:
        return f"{self.value[1]} {self.value[2]}"

    @property
    def plain_label(self) -> str:
        return self.value[2]

    @classmethod
    def of(cls, task: "Task") -> "TaskState":
        if task.done:
            return cls.DONE
        if any(not s.done for s in task.subtasks):
            return cls.SUBTASKS_PENDING
        return cls.PENDING


def done_label(done: bool, *, plain: bool = False) -> str:
    state = TaskState.DONE if done else TaskState.PENDING
    return state.plain_label if plain else state.label
