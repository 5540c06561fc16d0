from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .dependency import Dependency, dependencies_from_list, dependencies_to_list
from .note import Note, notes_from_list
from .task import Task


@dataclass
class Request:
    """A user ask split into ordered tasks.

    Owns its tasks and notes. ``completed`` only flips through explicit
    request approval; finishing every task does not set it.
    """

    request_id: str
    original_request: str
    split_details: str = ""
    tasks: List[Task] = field(default_factory=list)
    completed: bool = False
    dependencies: Optional[List[Dependency]] = None
    notes: Optional[List[Note]] = None

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_note(self, note_id: str) -> Optional[Note]:
        return next((n for n in (self.notes or []) if n.id == note_id), None)

    def next_pending_task(self) -> Optional[Task]:
        """First task in insertion order that is not done."""
        return next((t for t in self.tasks if not t.done), None)

    def all_tasks_done(self) -> bool:
        return all(t.done for t in self.tasks)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "requestId": self.request_id,
            "originalRequest": self.original_request,
            "splitDetails": self.split_details,
            "tasks": [t.to_dict() for t in self.tasks],
            "completed": self.completed,
        }
        deps = dependencies_to_list(self.dependencies)
        if deps is not None:
            data["dependencies"] = deps
        if self.notes is not None:
            data["notes"] = [n.to_dict() for n in self.notes]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Request":
        if not isinstance(data, dict):
            raise ValueError("request must be object")
        raw_tasks = data.get("tasks") or []
        if not isinstance(raw_tasks, list):
            raise ValueError("tasks must be list")
        return cls(
            request_id=str(data.get("requestId", "") or ""),
            original_request=str(data.get("originalRequest", "") or ""),
            split_details=str(data.get("splitDetails", "") or ""),
            tasks=[Task.from_dict(t) for t in raw_tasks],
            completed=bool(data.get("completed", False)),
            dependencies=dependencies_from_list(data.get("dependencies")),
            notes=notes_from_list(data.get("notes")),
        )
