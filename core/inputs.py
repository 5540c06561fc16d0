"""Plain input records for entity creation (planning, add tasks, add subtasks, notes)."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .dependency import Dependency, dependencies_from_list


@dataclass(frozen=True)
class NewSubtask:
    title: str
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewSubtask":
        return cls(title=str(data.get("title", "") or ""), description=str(data.get("description", "") or ""))


@dataclass(frozen=True)
class NewTask:
    title: str
    description: str = ""
    subtasks: List[NewSubtask] = field(default_factory=list)
    dependencies: Optional[List[Dependency]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewTask":
        return cls(
            title=str(data.get("title", "") or ""),
            description=str(data.get("description", "") or ""),
            subtasks=[NewSubtask.from_dict(s) for s in (data.get("subtasks") or [])],
            dependencies=dependencies_from_list(data.get("dependencies")),
        )


@dataclass(frozen=True)
class NewNote:
    title: str
    content: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewNote":
        return cls(title=str(data.get("title", "") or ""), content=str(data.get("content", "") or ""))
