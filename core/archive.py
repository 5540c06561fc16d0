from dataclasses import dataclass, field
from typing import Any, Dict, List

from .note import coerce_timestamp
from .request import Request

ARCHIVE_VERSION = "1.0.0"

_ARCHIVE_ONLY_KEYS = ("archivedAt", "completedAt", "originalRequestId")


@dataclass
class ArchivedRequest:
    request: Request
    archived_at: str
    completed_at: str
    original_request_id: str

    @classmethod
    def from_request(cls, request: Request, *, now: str) -> "ArchivedRequest":
        return cls(
            request=request,
            archived_at=now,
            completed_at=now,
            original_request_id=request.request_id,
        )

    @property
    def original_request(self) -> str:
        return self.request.original_request

    def to_request(self) -> Request:
        """Active copy of the snapshot: archive fields dropped, completed reset."""
        data = self.request.to_dict()
        data["requestId"] = self.original_request_id
        data["completed"] = False
        return Request.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        data = self.request.to_dict()
        data["completed"] = True
        data["archivedAt"] = self.archived_at
        data["completedAt"] = self.completed_at
        data["originalRequestId"] = self.original_request_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchivedRequest":
        if not isinstance(data, dict):
            raise ValueError("archived request must be object")
        request_data = {k: v for k, v in data.items() if k not in _ARCHIVE_ONLY_KEYS}
        request = Request.from_dict(request_data)
        return cls(
            request=request,
            archived_at=coerce_timestamp(data.get("archivedAt")),
            completed_at=coerce_timestamp(data.get("completedAt")),
            original_request_id=str(data.get("originalRequestId") or request.request_id),
        )


@dataclass
class ArchiveInfo:
    created_at: str
    last_archived_at: str
    total_archived_requests: int = 0
    version: str = ARCHIVE_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "createdAt": self.created_at,
            "lastArchivedAt": self.last_archived_at,
            "totalArchivedRequests": self.total_archived_requests,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchiveInfo":
        if not isinstance(data, dict):
            raise ValueError("archiveInfo must be object")
        return cls(
            created_at=coerce_timestamp(data.get("createdAt")),
            last_archived_at=coerce_timestamp(data.get("lastArchivedAt")),
            total_archived_requests=int(data.get("totalArchivedRequests", 0) or 0),
            version=str(data.get("version", ARCHIVE_VERSION) or ARCHIVE_VERSION),
        )


@dataclass
class ArchiveDocument:
    archive_info: ArchiveInfo
    archived_requests: List[ArchivedRequest] = field(default_factory=list)

    @classmethod
    def empty(cls, now: str) -> "ArchiveDocument":
        return cls(archive_info=ArchiveInfo(created_at=now, last_archived_at=now))

    @staticmethod
    def looks_like_archive(data: Any) -> bool:
        return isinstance(data, dict) and "archivedRequests" in data and "archiveInfo" in data

    def find(self, request_id: str) -> int:
        for idx, item in enumerate(self.archived_requests):
            if item.original_request_id == request_id:
                return idx
        return -1

    def refresh_total(self) -> None:
        self.archive_info.total_archived_requests = len(self.archived_requests)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "archivedRequests": [a.to_dict() for a in self.archived_requests],
            "archiveInfo": self.archive_info.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchiveDocument":
        if not cls.looks_like_archive(data):
            raise ValueError("not an archive document")
        raw = data.get("archivedRequests") or []
        if not isinstance(raw, list):
            raise ValueError("archivedRequests must be list")
        return cls(
            archive_info=ArchiveInfo.from_dict(data.get("archiveInfo") or {}),
            archived_requests=[ArchivedRequest.from_dict(item) for item in raw],
        )
