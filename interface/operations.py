"""Closed set of operation kinds and their typed argument records.

Arguments arrive as JSON objects already checked against the tool schema;
``from_arguments`` turns them into frozen records the handlers consume.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from core import Dependency, NewNote, NewSubtask, NewTask
from core.dependency import dependencies_from_list


class Operation(str, Enum):
    PLAN_TASK = "plan_task"
    GET_NEXT_TASK = "get_next_task"
    MARK_TASK_DONE = "mark_task_done"
    APPROVE_TASK_COMPLETION = "approve_task_completion"
    APPROVE_REQUEST_COMPLETION = "approve_request_completion"
    OPEN_TASK_DETAILS = "open_task_details"
    LIST_REQUESTS = "list_requests"
    ADD_TASKS_TO_REQUEST = "add_tasks_to_request"
    UPDATE_TASK = "update_task"
    DELETE_TASK = "delete_task"
    ADD_SUBTASKS = "add_subtasks"
    MARK_SUBTASK_DONE = "mark_subtask_done"
    UPDATE_SUBTASK = "update_subtask"
    DELETE_SUBTASK = "delete_subtask"
    EXPORT_TASK_STATUS = "export_task_status"
    ADD_NOTE = "add_note"
    UPDATE_NOTE = "update_note"
    DELETE_NOTE = "delete_note"
    ADD_DEPENDENCY = "add_dependency"
    GET_PROMPTS = "get_prompts"
    SET_PROMPTS = "set_prompts"
    UPDATE_PROMPTS = "update_prompts"
    REMOVE_PROMPTS = "remove_prompts"
    ARCHIVE_COMPLETED_REQUESTS = "archive_completed_requests"
    LIST_ARCHIVED_REQUESTS = "list_archived_requests"
    RESTORE_ARCHIVED_REQUEST = "restore_archived_request"
    ROTATE_ARCHIVE = "rotate_archive"

    @classmethod
    def parse(cls, name: Any) -> Optional["Operation"]:
        try:
            return cls(str(name or "").strip())
        except ValueError:
            return None


def _opt_str(args: Dict[str, Any], key: str) -> Optional[str]:
    value = args.get(key)
    return None if value is None else str(value)


def _tasks(raw: Any) -> Tuple[NewTask, ...]:
    return tuple(NewTask.from_dict(item) for item in (raw or []))


@dataclass(frozen=True)
class PlanTaskArgs:
    original_request: str
    tasks: Tuple[NewTask, ...]
    split_details: Optional[str] = None
    output_path: Optional[str] = None
    dependencies: Optional[List[Dependency]] = None
    notes: Optional[Tuple[NewNote, ...]] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "PlanTaskArgs":
        raw_notes = args.get("notes")
        return cls(
            original_request=str(args["originalRequest"]),
            tasks=_tasks(args.get("tasks")),
            split_details=_opt_str(args, "splitDetails"),
            output_path=_opt_str(args, "outputPath"),
            dependencies=dependencies_from_list(args.get("dependencies")),
            notes=tuple(NewNote.from_dict(n) for n in raw_notes) if raw_notes is not None else None,
        )


@dataclass(frozen=True)
class RequestArgs:
    """Operations addressed by a request id only."""

    request_id: str

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "RequestArgs":
        return cls(request_id=str(args["requestId"]))


@dataclass(frozen=True)
class TaskRefArgs:
    request_id: str
    task_id: str

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "TaskRefArgs":
        return cls(request_id=str(args["requestId"]), task_id=str(args["taskId"]))


@dataclass(frozen=True)
class MarkTaskDoneArgs:
    request_id: str
    task_id: str
    completed_details: str = ""

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "MarkTaskDoneArgs":
        return cls(
            request_id=str(args["requestId"]),
            task_id=str(args["taskId"]),
            completed_details=str(args.get("completedDetails") or ""),
        )


@dataclass(frozen=True)
class OpenTaskDetailsArgs:
    task_id: str
    request_id: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "OpenTaskDetailsArgs":
        return cls(task_id=str(args["taskId"]), request_id=_opt_str(args, "requestId"))


@dataclass(frozen=True)
class NoArgs:
    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "NoArgs":
        return cls()


@dataclass(frozen=True)
class AddTasksArgs:
    request_id: str
    tasks: Tuple[NewTask, ...]

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "AddTasksArgs":
        return cls(request_id=str(args["requestId"]), tasks=_tasks(args.get("tasks")))


@dataclass(frozen=True)
class UpdateTaskArgs:
    request_id: str
    task_id: str
    title: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "UpdateTaskArgs":
        return cls(
            request_id=str(args["requestId"]),
            task_id=str(args["taskId"]),
            title=_opt_str(args, "title"),
            description=_opt_str(args, "description"),
        )


@dataclass(frozen=True)
class AddSubtasksArgs:
    request_id: str
    task_id: str
    subtasks: Tuple[NewSubtask, ...]

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "AddSubtasksArgs":
        return cls(
            request_id=str(args["requestId"]),
            task_id=str(args["taskId"]),
            subtasks=tuple(NewSubtask.from_dict(s) for s in (args.get("subtasks") or [])),
        )


@dataclass(frozen=True)
class SubtaskRefArgs:
    request_id: str
    task_id: str
    subtask_id: str

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "SubtaskRefArgs":
        return cls(
            request_id=str(args["requestId"]),
            task_id=str(args["taskId"]),
            subtask_id=str(args["subtaskId"]),
        )


@dataclass(frozen=True)
class UpdateSubtaskArgs:
    request_id: str
    task_id: str
    subtask_id: str
    title: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "UpdateSubtaskArgs":
        return cls(
            request_id=str(args["requestId"]),
            task_id=str(args["taskId"]),
            subtask_id=str(args["subtaskId"]),
            title=_opt_str(args, "title"),
            description=_opt_str(args, "description"),
        )


@dataclass(frozen=True)
class ExportArgs:
    request_id: str
    format: str = "markdown"
    output_path: Optional[str] = None
    filename: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "ExportArgs":
        return cls(
            request_id=str(args["requestId"]),
            format=str(args.get("format") or "markdown"),
            output_path=_opt_str(args, "outputPath"),
            filename=_opt_str(args, "filename"),
        )


@dataclass(frozen=True)
class AddNoteArgs:
    request_id: str
    title: str
    content: str

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "AddNoteArgs":
        return cls(request_id=str(args["requestId"]), title=str(args["title"]), content=str(args["content"]))


@dataclass(frozen=True)
class UpdateNoteArgs:
    request_id: str
    note_id: str
    title: Optional[str] = None
    content: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "UpdateNoteArgs":
        return cls(
            request_id=str(args["requestId"]),
            note_id=str(args["noteId"]),
            title=_opt_str(args, "title"),
            content=_opt_str(args, "content"),
        )


@dataclass(frozen=True)
class NoteRefArgs:
    request_id: str
    note_id: str

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "NoteRefArgs":
        return cls(request_id=str(args["requestId"]), note_id=str(args["noteId"]))


@dataclass(frozen=True)
class AddDependencyArgs:
    request_id: str
    dependency: Dependency
    task_id: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "AddDependencyArgs":
        return cls(
            request_id=str(args["requestId"]),
            dependency=Dependency.from_dict(args["dependency"]),
            task_id=_opt_str(args, "taskId"),
        )


@dataclass(frozen=True)
class PromptsArgs:
    """Template fields keyed by their API names; absent keys are left out."""

    fields: Dict[str, Optional[str]] = field(default_factory=dict)

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "PromptsArgs":
        keys = ("instructions", "taskPrefix", "taskSuffix")
        return cls(fields={k: _opt_str(args, k) for k in keys if k in args})


@dataclass(frozen=True)
class RemovePromptsArgs:
    fields: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "RemovePromptsArgs":
        raw = args.get("fields")
        return cls(fields=tuple(str(f) for f in raw) if raw else None)


@dataclass(frozen=True)
class ArchiveArgs:
    request_ids: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "ArchiveArgs":
        raw = args.get("requestIds")
        return cls(request_ids=tuple(str(r) for r in raw) if raw else None)


@dataclass(frozen=True)
class ListArchivedArgs:
    search_term: Optional[str] = None
    limit: Optional[int] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "ListArchivedArgs":
        limit = args.get("limit")
        return cls(search_term=_opt_str(args, "searchTerm"), limit=int(limit) if limit is not None else None)


@dataclass(frozen=True)
class RotateArchiveArgs:
    max_size: Optional[int] = None
    max_age_days: Optional[int] = None

    @classmethod
    def from_arguments(cls, args: Dict[str, Any]) -> "RotateArchiveArgs":
        size = args.get("maxSize")
        age = args.get("maxAgeDays")
        return cls(
            max_size=int(size) if size is not None else None,
            max_age_days=int(age) if age is not None else None,
        )


ARGUMENT_TYPES: Dict[Operation, Type[Any]] = {
    Operation.PLAN_TASK: PlanTaskArgs,
    Operation.GET_NEXT_TASK: RequestArgs,
    Operation.MARK_TASK_DONE: MarkTaskDoneArgs,
    Operation.APPROVE_TASK_COMPLETION: TaskRefArgs,
    Operation.APPROVE_REQUEST_COMPLETION: RequestArgs,
    Operation.OPEN_TASK_DETAILS: OpenTaskDetailsArgs,
    Operation.LIST_REQUESTS: NoArgs,
    Operation.ADD_TASKS_TO_REQUEST: AddTasksArgs,
    Operation.UPDATE_TASK: UpdateTaskArgs,
    Operation.DELETE_TASK: TaskRefArgs,
    Operation.ADD_SUBTASKS: AddSubtasksArgs,
    Operation.MARK_SUBTASK_DONE: SubtaskRefArgs,
    Operation.UPDATE_SUBTASK: UpdateSubtaskArgs,
    Operation.DELETE_SUBTASK: SubtaskRefArgs,
    Operation.EXPORT_TASK_STATUS: ExportArgs,
    Operation.ADD_NOTE: AddNoteArgs,
    Operation.UPDATE_NOTE: UpdateNoteArgs,
    Operation.DELETE_NOTE: NoteRefArgs,
    Operation.ADD_DEPENDENCY: AddDependencyArgs,
    Operation.GET_PROMPTS: NoArgs,
    Operation.SET_PROMPTS: PromptsArgs,
    Operation.UPDATE_PROMPTS: PromptsArgs,
    Operation.REMOVE_PROMPTS: RemovePromptsArgs,
    Operation.ARCHIVE_COMPLETED_REQUESTS: ArchiveArgs,
    Operation.LIST_ARCHIVED_REQUESTS: ListArchivedArgs,
    Operation.RESTORE_ARCHIVED_REQUEST: RequestArgs,
    Operation.ROTATE_ARCHIVE: RotateArchiveArgs,
}


def build_arguments(operation: Operation, args: Dict[str, Any]) -> Any:
    return ARGUMENT_TYPES[operation].from_arguments(args)
