"""Moves completed requests between the active store and the archive file."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from application.ports import ArchiveRepository, StoreRepository
from application.task_manager import Outcome
from core import ArchivedRequest, now_iso

logger = logging.getLogger("taskflow.archive")

DEFAULT_MAX_SIZE = 1000
DEFAULT_MAX_AGE_DAYS = 90


def _parse_iso(value: str) -> Optional[datetime]:
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ArchiveManager:
    def __init__(
        self,
        store: StoreRepository,
        archive: ArchiveRepository,
        max_size: int = DEFAULT_MAX_SIZE,
        max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    ):
        self.store = store
        self.archive = archive
        self.max_size = max_size
        self.max_age_days = max_age_days

    def archive_completed_requests(self, request_ids: Optional[Sequence[str]] = None) -> Outcome:
        with self.store.session() as session:
            document = session.document
            wanted = set(request_ids or [])
            moving = [r for r in document.requests if r.completed and (not wanted or r.request_id in wanted)]
            if not moving:
                return Outcome("no_completed_requests", extra={"filtered": bool(wanted)})
            archive = self.archive.load()
            stamp = now_iso()
            entries = [ArchivedRequest.from_request(r, now=stamp) for r in moving]
            moved_ids = {r.request_id for r in moving}
            # an earlier run may have written the archive but failed to save the store
            archive.archived_requests = [
                a for a in archive.archived_requests if a.original_request_id not in moved_ids
            ]
            archive.archived_requests.extend(entries)
            archive.archive_info.last_archived_at = stamp
            archive.refresh_total()
            document.requests = [r for r in document.requests if r.request_id not in moved_ids]
            self.archive.save(archive)
            session.mark_dirty()
        logger.info("Archived %d request(s): %s", len(entries), ", ".join(sorted(moved_ids)))
        rotation = self.rotate_archive_if_needed()
        return Outcome(
            "archived",
            items=entries,
            extra={"archiveFilePath": str(self.archive.path), "rotation": rotation.status},
        )

    def list_archived_requests(self, search_term: Optional[str] = None, limit: Optional[int] = None) -> Outcome:
        archive = self.archive.load()
        entries: List[ArchivedRequest] = list(archive.archived_requests)
        if search_term:
            needle = search_term.lower()
            entries = [
                e for e in entries
                if needle in e.original_request.lower() or needle in e.original_request_id.lower()
            ]
        if limit and limit > 0:
            entries = entries[:limit]
        return Outcome("archived_requests_listed", items=entries, extra={"archiveInfo": archive.archive_info})

    def restore_archived_request(self, request_id: str) -> Outcome:
        archive = self.archive.load()
        idx = archive.find(request_id)
        if idx < 0:
            return Outcome("archived_request_not_found")
        with self.store.session() as session:
            document = session.document
            if document.find_request(request_id) is not None:
                return Outcome("request_id_conflict", request=document.find_request(request_id))
            entry = archive.archived_requests.pop(idx)
            restored = entry.to_request()
            document.requests.append(restored)
            archive.refresh_total()
            session.mark_dirty()
        self.archive.save(archive)
        logger.info("Restored %s from archive", request_id)
        return Outcome("request_restored", request=restored)

    def rotate_archive_if_needed(
        self,
        max_size: Optional[int] = None,
        max_age_days: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Outcome:
        limit = max_size if max_size is not None else self.max_size
        age_days = max_age_days if max_age_days is not None else self.max_age_days
        archive = self.archive.load()
        current = now or datetime.now(timezone.utc)
        created = _parse_iso(archive.archive_info.created_at)
        too_big = len(archive.archived_requests) >= limit
        too_old = created is not None and current - created > timedelta(days=age_days)
        if not (too_big or too_old):
            return Outcome("no_rotation_needed")
        rotated = self.archive.rotate(archive, stamp=current.strftime("%Y-%m-%d"))
        return Outcome("archive_rotated", extra={"rotatedPath": str(rotated)})


__all__ = ["ArchiveManager", "DEFAULT_MAX_AGE_DAYS", "DEFAULT_MAX_SIZE"]
