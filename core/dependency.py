from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class Dependency:
    """Descriptive metadata (library, service, doc) attached to a request or task."""

    name: str
    version: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "name": self.name,
            "version": self.version,
            "url": self.url,
            "description": self.description,
        }
        return {k: v for k, v in payload.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dependency":
        if not isinstance(data, dict):
            raise ValueError("dependency must be object")

        def _opt(key: str) -> Optional[str]:
            raw = data.get(key)
            return None if raw is None else str(raw)

        return cls(
            name=str(data.get("name", "") or ""),
            version=_opt("version"),
            url=_opt("url"),
            description=_opt("description"),
        )


def dependencies_from_list(raw: Any) -> Optional[List[Dependency]]:
    """Parse an optional dependency list, keeping None (absent) apart from []."""
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError("dependencies must be list")
    return [Dependency.from_dict(item) for item in raw]


def dependencies_to_list(deps: Optional[List[Dependency]]) -> Optional[List[Dict[str, Any]]]:
    if deps is None:
        return None
    return [dep.to_dict() for dep in deps]
