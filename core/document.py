from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .note import coerce_timestamp
from .request import Request

PROMPT_FIELDS = ("instructions", "taskPrefix", "taskSuffix")


@dataclass
class Prompts:
    """Global template applied to task descriptions at read time (never baked into tasks)."""

    instructions: Optional[str] = None
    task_prefix: Optional[str] = None
    task_suffix: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def has_content(self) -> bool:
        return bool(self.instructions or self.task_prefix or self.task_suffix)

    def apply(self, description: str) -> str:
        result = description
        if self.task_prefix:
            result = f"{self.task_prefix}\n\n{result}"
        if self.task_suffix:
            result = f"{result}\n\n{self.task_suffix}"
        return result

    def set_field(self, name: str, value: Optional[str]) -> None:
        setattr(self, _PROMPT_ATTRS[name], value)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "instructions": self.instructions,
            "taskPrefix": self.task_prefix,
            "taskSuffix": self.task_suffix,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        return {k: v for k, v in payload.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Prompts":
        if not isinstance(data, dict):
            raise ValueError("prompts must be object")

        def _opt(key: str) -> Optional[str]:
            raw = data.get(key)
            return None if raw is None else str(raw)

        return cls(
            instructions=_opt("instructions"),
            task_prefix=_opt("taskPrefix"),
            task_suffix=_opt("taskSuffix"),
            created_at=coerce_timestamp(data["createdAt"]) if data.get("createdAt") is not None else None,
            updated_at=coerce_timestamp(data["updatedAt"]) if data.get("updatedAt") is not None else None,
        )


_PROMPT_ATTRS = {
    "instructions": "instructions",
    "taskPrefix": "task_prefix",
    "taskSuffix": "task_suffix",
}


@dataclass
class TaskFlowDocument:
    """The whole active store: every request plus the optional prompt template."""

    requests: List[Request] = field(default_factory=list)
    prompts: Optional[Prompts] = None

    def find_request(self, request_id: str) -> Optional[Request]:
        return next((r for r in self.requests if r.request_id == request_id), None)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.prompts is not None:
            data["prompts"] = self.prompts.to_dict()
        data["requests"] = [r.to_dict() for r in self.requests]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskFlowDocument":
        if not isinstance(data, dict):
            raise ValueError("document must be object")
        raw_requests = data.get("requests") or []
        if not isinstance(raw_requests, list):
            raise ValueError("requests must be list")
        raw_prompts = data.get("prompts")
        return cls(
            requests=[Request.from_dict(r) for r in raw_requests],
            prompts=Prompts.from_dict(raw_prompts) if raw_prompts is not None else None,
        )
