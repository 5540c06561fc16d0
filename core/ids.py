"""Identifier allocation: ``<prefix>-<n>`` per scope.

Counters are never persisted. They are rebuilt from the entities on every
load by taking the highest numeric suffix per scope:

- ``req-N`` and ``note-N`` are global (active store + live and rotated archives).
- ``task-N`` and ``subtask-N`` are scoped to their owning request.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .archive import ArchiveDocument
from .document import TaskFlowDocument
from .inputs import NewSubtask, NewTask
from .request import Request
from .sanitize import sanitize_string
from .subtask import Subtask
from .task import Task

REQUEST_PREFIX = "req"
TASK_PREFIX = "task"
SUBTASK_PREFIX = "subtask"
NOTE_PREFIX = "note"


def parse_id_suffix(value: str, prefix: str) -> Optional[int]:
    head = f"{prefix}-"
    if not isinstance(value, str) or not value.startswith(head):
        return None
    try:
        return int(value[len(head):])
    except ValueError:
        return None


def max_suffix(values: Iterable[str], prefix: str) -> int:
    best = 0
    for value in values:
        num = parse_id_suffix(value, prefix)
        if num is not None and num > best:
            best = num
    return best


def format_id(prefix: str, number: int) -> str:
    return f"{prefix}-{number}"


@dataclass
class IdCounters:
    """Global counter state for requests and notes."""

    request: int = 0
    note: int = 0

    @classmethod
    def scan(cls, document: TaskFlowDocument, archives: Iterable[ArchiveDocument] = ()) -> "IdCounters":
        """Seed from the active document plus every archive (live and rotated)."""
        entries = [item for archive in archives for item in archive.archived_requests]
        requests = list(document.requests) + [item.request for item in entries]
        request_ids = [r.request_id for r in requests] + [item.original_request_id for item in entries]
        note_ids = [n.id for r in requests for n in (r.notes or [])]
        return cls(
            request=max_suffix(request_ids, REQUEST_PREFIX),
            note=max_suffix(note_ids, NOTE_PREFIX),
        )

    def next_request_id(self) -> str:
        self.request += 1
        return format_id(REQUEST_PREFIX, self.request)

    def next_note_id(self) -> str:
        self.note += 1
        return format_id(NOTE_PREFIX, self.note)


class TaskFactory:
    """Builds tasks/subtasks for one request with request-scoped numbering."""

    def __init__(self, task_counter: int = 0, subtask_counter: int = 0):
        self.task_counter = task_counter
        self.subtask_counter = subtask_counter

    @classmethod
    def for_request(cls, request: Optional[Request]) -> "TaskFactory":
        if request is None:
            return cls()
        task_ids = [t.id for t in request.tasks]
        subtask_ids = [s.id for t in request.tasks for s in t.subtasks]
        return cls(max_suffix(task_ids, TASK_PREFIX), max_suffix(subtask_ids, SUBTASK_PREFIX))

    def create_subtask(self, spec: NewSubtask) -> Subtask:
        self.subtask_counter += 1
        return Subtask(
            id=format_id(SUBTASK_PREFIX, self.subtask_counter),
            title=sanitize_string(spec.title),
            description=sanitize_string(spec.description),
            done=False,
        )

    def create_task(self, spec: NewTask) -> Task:
        self.task_counter += 1
        task_id = format_id(TASK_PREFIX, self.task_counter)
        return Task(
            id=task_id,
            title=sanitize_string(spec.title),
            description=sanitize_string(spec.description),
            subtasks=[self.create_subtask(s) for s in spec.subtasks],
            dependencies=list(spec.dependencies) if spec.dependencies is not None else None,
        )
