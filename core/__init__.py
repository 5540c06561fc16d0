from .status import TaskState, done_label
from .dependency import Dependency
from .note import Note, now_iso
from .subtask import Subtask
from .task import Task
from .request import Request
from .document import PROMPT_FIELDS, Prompts, TaskFlowDocument
from .archive import ARCHIVE_VERSION, ArchiveDocument, ArchiveInfo, ArchivedRequest
from .inputs import NewNote, NewSubtask, NewTask
from .ids import IdCounters, TaskFactory, parse_id_suffix
from .sanitize import sanitize_string

__all__ = [
    "TaskState",
    "done_label",
    "Dependency",
    "Note",
    "now_iso",
    "Subtask",
    "Task",
    "Request",
    "PROMPT_FIELDS",
    "Prompts",
    "TaskFlowDocument",
    # Archive
    "ARCHIVE_VERSION",
    "ArchiveDocument",
    "ArchiveInfo",
    "ArchivedRequest",
    # Creation
    "NewNote",
    "NewSubtask",
    "NewTask",
    "IdCounters",
    "TaskFactory",
    "parse_id_suffix",
    # Text repair
    "sanitize_string",
]
