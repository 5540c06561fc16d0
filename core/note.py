from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def coerce_timestamp(value: Any) -> str:
    """Normalize YAML timestamps to a JSON-safe string.

    YAML loaders may parse ISO-8601 values into datetime/date objects; keep
    the in-memory model stable by storing timestamps as strings.
    """
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


@dataclass
class Note:
    id: str
    title: str
    content: str
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        if not isinstance(data, dict):
            raise ValueError("note must be object")
        return cls(
            id=str(data.get("id", "") or ""),
            title=str(data.get("title", "") or ""),
            content=str(data.get("content", "") or ""),
            created_at=coerce_timestamp(data.get("createdAt")),
            updated_at=coerce_timestamp(data.get("updatedAt")),
        )


def notes_from_list(raw: Any) -> Optional[List[Note]]:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError("notes must be list")
    return [Note.from_dict(item) for item in raw]
