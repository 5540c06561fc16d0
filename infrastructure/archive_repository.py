import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from application.ports import ArchiveRepository
from core import ArchiveDocument, now_iso
from infrastructure.file_format import FormatError, decode, encode

logger = logging.getLogger("taskflow.archive")


class FileArchiveRepository(ArchiveRepository):
    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def ext(self) -> str:
        return self.path.suffix.lower()

    def _read(self, path: Path) -> ArchiveDocument:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ArchiveDocument.empty(now_iso())
        try:
            data = decode(raw, path.suffix.lower())
        except FormatError as exc:
            logger.warning("Archive file %s unreadable (%s); starting empty", path, exc)
            return ArchiveDocument.empty(now_iso())
        if not ArchiveDocument.looks_like_archive(data):
            logger.warning("Archive file %s is not in archive format; starting empty", path)
            return ArchiveDocument.empty(now_iso())
        try:
            return ArchiveDocument.from_dict(data)
        except ValueError as exc:
            logger.warning("Archive file %s malformed (%s); starting empty", path, exc)
            return ArchiveDocument.empty(now_iso())

    def load(self) -> ArchiveDocument:
        return self._read(self.path)

    def rotated_paths(self) -> List[Path]:
        """Dated siblings written by :meth:`rotate`, oldest name first."""
        pattern = f"{self.path.stem}-*{self.path.suffix}"
        return sorted(p for p in self.path.parent.glob(pattern) if p != self.path)

    def load_history(self) -> List[ArchiveDocument]:
        """The live archive followed by every rotated one."""
        return [self.load()] + [self._read(p) for p in self.rotated_paths()]

    def save(self, archive: ArchiveDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(encode(archive.to_dict(), self.ext), encoding="utf-8")
        logger.info("Saved archive (%d request(s)) to %s", len(archive.archived_requests), self.path)

    def _rotated_path(self, stamp: str) -> Path:
        candidate = self.path.with_name(f"{self.path.stem}-{stamp}{self.path.suffix}")
        counter = 2
        while candidate.exists():
            candidate = self.path.with_name(f"{self.path.stem}-{stamp}-{counter}{self.path.suffix}")
            counter += 1
        return candidate

    def rotate(self, archive: ArchiveDocument, *, stamp: Optional[str] = None) -> Path:
        """Roll the current archive to a dated sibling file and install a fresh one."""
        stamp = stamp or datetime.now(timezone.utc).strftime("%Y-%m-%d")
        rotated = self._rotated_path(stamp)
        rotated.parent.mkdir(parents=True, exist_ok=True)
        rotated.write_text(encode(archive.to_dict(), self.ext), encoding="utf-8")
        self.save(ArchiveDocument.empty(now_iso()))
        logger.info("Rotated archive %s -> %s", self.path, rotated)
        return rotated
