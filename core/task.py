from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .dependency import Dependency, dependencies_from_list, dependencies_to_list
from .status import TaskState
from .subtask import Subtask


@dataclass
class Task:
    id: str
    title: str
    description: str = ""
    done: bool = False
    approved: bool = False
    completed_details: str = ""
    subtasks: List[Subtask] = field(default_factory=list)
    dependencies: Optional[List[Dependency]] = None

    @property
    def state(self) -> TaskState:
        return TaskState.of(self)

    def find_subtask(self, subtask_id: str) -> Optional[Subtask]:
        return next((s for s in self.subtasks if s.id == subtask_id), None)

    def pending_subtasks(self) -> List[Subtask]:
        return [s for s in self.subtasks if not s.done]

    def all_subtasks_done(self) -> bool:
        return all(s.done for s in self.subtasks)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "done": self.done,
            "approved": self.approved,
            "completedDetails": self.completed_details,
            "subtasks": [s.to_dict() for s in self.subtasks],
        }
        deps = dependencies_to_list(self.dependencies)
        if deps is not None:
            data["dependencies"] = deps
        return data

    def summary(self) -> Dict[str, str]:
        return {"id": self.id, "title": self.title, "description": self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        if not isinstance(data, dict):
            raise ValueError("task must be object")
        raw_subtasks = data.get("subtasks") or []
        if not isinstance(raw_subtasks, list):
            raise ValueError("subtasks must be list")
        return cls(
            id=str(data.get("id", "") or ""),
            title=str(data.get("title", "") or ""),
            description=str(data.get("description", "") or ""),
            done=bool(data.get("done", False)),
            approved=bool(data.get("approved", False)),
            completed_details=str(data.get("completedDetails", "") or ""),
            subtasks=[Subtask.from_dict(s) for s in raw_subtasks],
            dependencies=dependencies_from_list(data.get("dependencies")),
        )
