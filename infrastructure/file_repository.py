import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from application.ports import StoreRepository
from core import TaskFlowDocument
from infrastructure.file_format import FormatError, decode, encode

logger = logging.getLogger("taskflow.store")


@dataclass
class FileStoreSession:
    document: TaskFlowDocument
    dirty: bool = False

    def mark_dirty(self) -> None:
        self.dirty = True


class FileStoreRepository(StoreRepository):
    """Whole-document store in a single JSON/YAML file.

    No locking: two processes saving the same file race and the last write wins.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def ext(self) -> str:
        return self.path.suffix.lower()

    def load(self) -> TaskFlowDocument:
        """Read the store; missing or unparseable files yield an empty document.

        Any other OSError (permissions, I/O) propagates.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Store file %s not found; starting empty", self.path)
            return TaskFlowDocument()
        try:
            return TaskFlowDocument.from_dict(decode(raw, self.ext))
        except (FormatError, ValueError) as exc:
            logger.warning("Store file %s unreadable (%s); starting empty", self.path, exc)
            return TaskFlowDocument()

    def save(self, document: TaskFlowDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(encode(document.to_dict(), self.ext), encoding="utf-8")
        logger.info("Saved %d request(s) to %s", len(document.requests), self.path)

    @contextmanager
    def session(self) -> Iterator[FileStoreSession]:
        """Load on enter, save on clean exit when dirty; changes are dropped on error."""
        current = FileStoreSession(document=self.load())
        yield current
        if current.dirty:
            self.save(current.document)
