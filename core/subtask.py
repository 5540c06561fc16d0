from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class Subtask:
    id: str
    title: str
    description: str = ""
    done: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "done": self.done,
        }

    def summary(self) -> Dict[str, str]:
        return {"id": self.id, "title": self.title}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subtask":
        if not isinstance(data, dict):
            raise ValueError("subtask must be object")
        return cls(
            id=str(data.get("id", "") or ""),
            title=str(data.get("title", "") or ""),
            description=str(data.get("description", "") or ""),
            done=bool(data.get("done", False)),
        )
