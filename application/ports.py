from pathlib import Path
from typing import ContextManager, List, Optional, Protocol

from core import ArchiveDocument, TaskFlowDocument


class StoreSession(Protocol):
    document: TaskFlowDocument

    def mark_dirty(self) -> None:
        ...


class StoreRepository(Protocol):
    path: Path

    def load(self) -> TaskFlowDocument:
        ...

    def save(self, document: TaskFlowDocument) -> None:
        ...

    def session(self) -> ContextManager[StoreSession]:
        ...


class ArchiveRepository(Protocol):
    path: Path

    def load(self) -> ArchiveDocument:
        ...

    def load_history(self) -> List[ArchiveDocument]:
        ...

    def save(self, archive: ArchiveDocument) -> None:
        ...

    def rotate(self, archive: ArchiveDocument, *, stamp: Optional[str] = None) -> Path:
        ...
