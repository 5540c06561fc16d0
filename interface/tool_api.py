"""Tool-call boundary: argument validation, dispatch and result shaping.

Manager outcomes are turned into :class:`ToolResult` payloads. Missing entities,
locked items and id conflicts become ``status="error"`` with a stable ``code``;
workflow statuses such as ``already_done`` or ``subtasks_pending`` pass through
as their own status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import jsonschema

from application.archive_service import ArchiveManager
from application.task_manager import Outcome, TaskFlowManager
from config import Settings
from core import ArchivedRequest, Prompts, Request, TaskFlowDocument
from infrastructure.archive_repository import FileArchiveRepository
from infrastructure.file_repository import FileStoreRepository
from infrastructure.paths import resolve_export_path, resolve_task_file_path
from interface.formatters import format_requests_list, format_task_progress_table
from interface.operations import (
    AddDependencyArgs,
    AddNoteArgs,
    AddSubtasksArgs,
    AddTasksArgs,
    ArchiveArgs,
    ExportArgs,
    ListArchivedArgs,
    MarkTaskDoneArgs,
    NoArgs,
    NoteRefArgs,
    OpenTaskDetailsArgs,
    Operation,
    PlanTaskArgs,
    PromptsArgs,
    RemovePromptsArgs,
    RequestArgs,
    RotateArchiveArgs,
    SubtaskRefArgs,
    TaskRefArgs,
    UpdateNoteArgs,
    UpdateSubtaskArgs,
    UpdateTaskArgs,
    build_arguments,
)
from interface.reports import generate_planning_markdown, render_export
from interface.tool_specs import TOOL_SPECS

logger = logging.getLogger("taskflow.mcp")


@dataclass
class ToolResult:
    status: str
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    error_code: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": self.status}
        if self.error_code:
            payload["code"] = self.error_code
        payload["message"] = self.message
        for key, value in self.data.items():
            payload.setdefault(key, value)
        return payload


def error_result(code: str, message: str, **data: Any) -> ToolResult:
    return ToolResult(status="error", message=message, data=data, error_code=code)


@dataclass
class ToolContext:
    manager: TaskFlowManager
    archive: ArchiveManager
    settings: Settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToolContext":
        store = FileStoreRepository(settings.task_file)
        archive_repo = FileArchiveRepository(settings.archive_file)
        return cls(
            manager=TaskFlowManager(store, archive_repo),
            archive=ArchiveManager(
                store,
                archive_repo,
                max_size=settings.archive_max_size,
                max_age_days=settings.archive_max_age_days,
            ),
            settings=settings,
        )


_ERRORS: Dict[str, tuple] = {
    "request_not_found": ("NOT_FOUND", "Request not found"),
    "task_not_found": ("NOT_FOUND", "Task not found"),
    "subtask_not_found": ("NOT_FOUND", "Subtask not found"),
    "note_not_found": ("NOT_FOUND", "Note not found"),
    "archived_request_not_found": ("NOT_FOUND", "Archived request not found"),
    "request_completed_locked": ("INVALID_STATE", "Cannot add tasks to completed request"),
    "task_done_locked": ("INVALID_STATE", "Task is already done and can no longer be changed"),
    "subtask_done_locked": ("INVALID_STATE", "Subtask is already done and can no longer be changed"),
    "task_not_done": ("INVALID_STATE", "Task must be marked done before it can be approved"),
    "request_id_conflict": ("ID_CONFLICT", "A request with this id already exists in the active store"),
}


def _table(request: Optional[Request]) -> str:
    return f"\n{format_task_progress_table(request)}" if request is not None else ""


def _respond(outcome: Outcome, message: str, *, table: bool = True, **data: Any) -> ToolResult:
    """Map an outcome to a result; error-class statuses get their code and canned message."""
    request = outcome.request
    mapped = _ERRORS.get(outcome.status)
    if mapped is not None:
        code, text = mapped
        extra: Dict[str, Any] = {"reason": outcome.status}
        if request is not None:
            extra["requestId"] = request.request_id
        return error_result(code, text + (_table(request) if table else ""), **extra)
    if request is not None and "requestId" not in data:
        data = {"requestId": request.request_id, **data}
    return ToolResult(status=outcome.status, message=message + (_table(request) if table else ""), data=data)


def _prompts_dict(prompts: Optional[Prompts]) -> Optional[Dict[str, Any]]:
    return prompts.to_dict() if prompts is not None else None


# --------------------------------------------------------------------------- #
# Workflow
# --------------------------------------------------------------------------- #


def handle_plan_task(ctx: ToolContext, args: PlanTaskArgs) -> ToolResult:
    outcome = ctx.manager.plan(
        args.original_request,
        args.tasks,
        split_details=args.split_details,
        dependencies=args.dependencies,
        notes=args.notes,
    )
    request = outcome.request
    data: Dict[str, Any] = {"tasks": [t.summary() for t in request.tasks]}
    if args.output_path:
        target = resolve_task_file_path(args.output_path, ctx.settings.base_dir)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generate_planning_markdown(request), encoding="utf-8")
        data["planFile"] = str(target)
    return _respond(
        outcome,
        "Tasks have been successfully added. Please use 'get_next_task' to retrieve the first task.",
        **data,
    )


def _task_view_data(outcome: Outcome) -> Dict[str, Any]:
    data: Dict[str, Any] = {"task": outcome.extra.get("taskView")}
    for key in ("instructions", "requestCompleted", "otherRequestIds"):
        if key in outcome.extra:
            data[key] = outcome.extra[key]
    return data


def handle_get_next_task(ctx: ToolContext, args: RequestArgs) -> ToolResult:
    outcome = ctx.manager.get_next_task(args.request_id)
    if outcome.status == "next_task":
        return _respond(
            outcome,
            "Next task is ready. Task approval will be required after completion.",
            **_task_view_data(outcome),
        )
    if outcome.status == "all_tasks_done":
        return _respond(outcome, "All tasks have been completed. Awaiting completion approval.")
    if outcome.status == "already_completed":
        return _respond(outcome, "Request already completed.", table=False)
    return _respond(outcome, "No undone tasks found.")


def handle_mark_task_done(ctx: ToolContext, args: MarkTaskDoneArgs) -> ToolResult:
    outcome = ctx.manager.mark_task_done(args.request_id, args.task_id, args.completed_details)
    if outcome.status == "already_done":
        return _respond(outcome, "Task is already marked done.", table=False)
    if outcome.status == "subtasks_pending":
        return _respond(
            outcome,
            "Cannot mark task as done until all subtasks are completed.",
            pendingSubtasks=outcome.items,
        )
    task = outcome.task
    data = {}
    if task is not None:
        data["task"] = {**task.summary(), "completedDetails": task.completed_details}
    return _respond(outcome, f"Task {args.task_id} has been marked as done.", **data)


def handle_approve_task_completion(ctx: ToolContext, args: TaskRefArgs) -> ToolResult:
    outcome = ctx.manager.approve_task_completion(args.request_id, args.task_id)
    if outcome.status == "already_approved":
        return _respond(outcome, f"Task {args.task_id} was already approved.", table=False)
    return _respond(outcome, f"Task {args.task_id} has been approved.")


def handle_approve_request_completion(ctx: ToolContext, args: RequestArgs) -> ToolResult:
    outcome = ctx.manager.approve_request_completion(args.request_id)
    if outcome.status == "already_completed":
        return _respond(outcome, "Request already completed.", table=False)
    if outcome.status == "tasks_pending":
        return _respond(
            outcome,
            "Every task must be done and approved before the request can be completed.",
            pendingTasks=outcome.items,
        )
    if outcome.status != "request_completed":
        return _respond(outcome, "")
    data: Dict[str, Any] = {"archived": False}
    message = f"Request {args.request_id} has been marked as completed."
    if ctx.settings.auto_archive:
        archived = ctx.archive.archive_completed_requests([args.request_id])
        data["archived"] = archived.status == "archived"
        if data["archived"]:
            message += " It has been moved to the archive."
    return _respond(outcome, message, **data)


def handle_open_task_details(ctx: ToolContext, args: OpenTaskDetailsArgs) -> ToolResult:
    outcome = ctx.manager.open_task_details(args.task_id, args.request_id)
    return _respond(outcome, "Task details retrieved successfully.", table=False, **_task_view_data(outcome))


def handle_list_requests(ctx: ToolContext, args: NoArgs) -> ToolResult:
    outcome = ctx.manager.list_requests()
    requests: List[Request] = outcome.items
    rows = [
        {
            "requestId": r.request_id,
            "originalRequest": r.original_request,
            "totalTasks": len(r.tasks),
            "completedTasks": sum(1 for t in r.tasks if t.done),
            "completed": r.completed,
        }
        for r in requests
    ]
    listing = format_requests_list(TaskFlowDocument(requests=requests))
    return _respond(outcome, f"Current requests in the system:\n{listing}", requests=rows)


# --------------------------------------------------------------------------- #
# Editing
# --------------------------------------------------------------------------- #


def handle_add_tasks_to_request(ctx: ToolContext, args: AddTasksArgs) -> ToolResult:
    outcome = ctx.manager.add_tasks(args.request_id, args.tasks)
    return _respond(
        outcome,
        f"Added {len(outcome.items)} new tasks to request.",
        newTasks=[t.summary() for t in outcome.items],
    )


def handle_update_task(ctx: ToolContext, args: UpdateTaskArgs) -> ToolResult:
    outcome = ctx.manager.update_task(args.request_id, args.task_id, args.title, args.description)
    data = {"task": outcome.task.summary()} if outcome.task is not None else {}
    return _respond(outcome, f"Task {args.task_id} has been updated.", **data)


def handle_delete_task(ctx: ToolContext, args: TaskRefArgs) -> ToolResult:
    outcome = ctx.manager.delete_task(args.request_id, args.task_id)
    return _respond(outcome, f"Task {args.task_id} has been deleted.")


def handle_add_subtasks(ctx: ToolContext, args: AddSubtasksArgs) -> ToolResult:
    outcome = ctx.manager.add_subtasks(args.request_id, args.task_id, args.subtasks)
    return _respond(
        outcome,
        f"Added {len(outcome.items)} new subtasks to task {args.task_id}.",
        newSubtasks=[s.summary() for s in outcome.items],
    )


def handle_mark_subtask_done(ctx: ToolContext, args: SubtaskRefArgs) -> ToolResult:
    outcome = ctx.manager.mark_subtask_done(args.request_id, args.task_id, args.subtask_id)
    if outcome.status == "already_done":
        return _respond(outcome, "Subtask is already marked done.", table=False)
    data = {}
    if "allSubtasksDone" in outcome.extra:
        data["allSubtasksDone"] = outcome.extra["allSubtasksDone"]
    return _respond(outcome, f"Subtask {args.subtask_id} has been marked as done.", **data)


def handle_update_subtask(ctx: ToolContext, args: UpdateSubtaskArgs) -> ToolResult:
    outcome = ctx.manager.update_subtask(args.request_id, args.task_id, args.subtask_id, args.title, args.description)
    data = {"subtask": outcome.subtask.to_dict()} if outcome.subtask is not None else {}
    return _respond(outcome, f"Subtask {args.subtask_id} has been updated.", **data)


def handle_delete_subtask(ctx: ToolContext, args: SubtaskRefArgs) -> ToolResult:
    outcome = ctx.manager.delete_subtask(args.request_id, args.task_id, args.subtask_id)
    return _respond(outcome, f"Subtask {args.subtask_id} has been deleted.")


def handle_export_task_status(ctx: ToolContext, args: ExportArgs) -> ToolResult:
    outcome = ctx.manager.get_request(args.request_id)
    if outcome.request is None:
        return _respond(outcome, "")
    target: Path = resolve_export_path(
        outcome.request,
        output_path=args.output_path,
        filename=args.filename,
        fmt=args.format,
        base_dir=ctx.settings.base_dir,
    )
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_export(outcome.request, args.format, date.today()), encoding="utf-8")
    return ToolResult(
        status="exported",
        message=f"Task status has been exported to {target}.",
        data={"requestId": args.request_id, "outputPath": str(target), "format": args.format},
    )


# --------------------------------------------------------------------------- #
# Notes / dependencies
# --------------------------------------------------------------------------- #


def handle_add_note(ctx: ToolContext, args: AddNoteArgs) -> ToolResult:
    outcome = ctx.manager.add_note(args.request_id, args.title, args.content)
    data = {"note": outcome.note.to_dict()} if outcome.note is not None else {}
    return _respond(outcome, f'Note "{args.title}" has been added to request {args.request_id}.', table=False, **data)


def handle_update_note(ctx: ToolContext, args: UpdateNoteArgs) -> ToolResult:
    outcome = ctx.manager.update_note(args.request_id, args.note_id, args.title, args.content)
    data = {"note": outcome.note.to_dict()} if outcome.note is not None else {}
    return _respond(outcome, f"Note {args.note_id} has been updated.", table=False, **data)


def handle_delete_note(ctx: ToolContext, args: NoteRefArgs) -> ToolResult:
    outcome = ctx.manager.delete_note(args.request_id, args.note_id)
    return _respond(outcome, f"Note {args.note_id} has been deleted.", table=False)


def handle_add_dependency(ctx: ToolContext, args: AddDependencyArgs) -> ToolResult:
    outcome = ctx.manager.add_dependency(args.request_id, args.dependency, args.task_id)
    owner = f"task {args.task_id}" if args.task_id else f"request {args.request_id}"
    return _respond(
        outcome,
        f'Dependency "{args.dependency.name}" has been added to {owner}.',
        table=False,
        dependency=args.dependency.to_dict(),
    )


# --------------------------------------------------------------------------- #
# Prompts
# --------------------------------------------------------------------------- #


def handle_get_prompts(ctx: ToolContext, args: NoArgs) -> ToolResult:
    outcome = ctx.manager.get_prompts()
    prompts = outcome.extra.get("prompts")
    message = "Current prompts configuration retrieved." if prompts else "No prompts configuration found."
    return _respond(outcome, message, table=False, prompts=_prompts_dict(prompts))


def handle_set_prompts(ctx: ToolContext, args: PromptsArgs) -> ToolResult:
    outcome = ctx.manager.set_prompts(
        instructions=args.fields.get("instructions"),
        task_prefix=args.fields.get("taskPrefix"),
        task_suffix=args.fields.get("taskSuffix"),
    )
    return _respond(
        outcome,
        "Prompts configuration has been updated.",
        table=False,
        prompts=_prompts_dict(outcome.extra.get("prompts")),
    )


def handle_update_prompts(ctx: ToolContext, args: PromptsArgs) -> ToolResult:
    outcome = ctx.manager.update_prompts(args.fields)
    return _respond(
        outcome,
        "Prompts configuration has been updated.",
        table=False,
        prompts=_prompts_dict(outcome.extra.get("prompts")),
    )


def handle_remove_prompts(ctx: ToolContext, args: RemovePromptsArgs) -> ToolResult:
    outcome = ctx.manager.remove_prompts(args.fields)
    if outcome.status == "no_prompts":
        return _respond(outcome, "No prompts configuration to remove.", table=False)
    if outcome.status == "prompts_fields_removed":
        return _respond(
            outcome,
            f"Removed fields: {', '.join(outcome.items)}",
            table=False,
            prompts=_prompts_dict(outcome.extra.get("prompts")),
        )
    return _respond(outcome, "Prompts configuration has been completely removed.", table=False)


# --------------------------------------------------------------------------- #
# Archive
# --------------------------------------------------------------------------- #


def _archived_row(entry: ArchivedRequest) -> Dict[str, Any]:
    return {
        "requestId": entry.original_request_id,
        "originalRequest": entry.original_request,
        "tasksCount": len(entry.request.tasks),
        "completedAt": entry.completed_at,
        "archivedAt": entry.archived_at,
    }


def handle_archive_completed_requests(ctx: ToolContext, args: ArchiveArgs) -> ToolResult:
    outcome = ctx.archive.archive_completed_requests(args.request_ids)
    if outcome.status == "no_completed_requests":
        message = (
            "No completed requests found with the specified IDs."
            if outcome.extra.get("filtered")
            else "No completed requests found to archive."
        )
        return _respond(outcome, message, table=False)
    entries: List[ArchivedRequest] = outcome.items
    return _respond(
        outcome,
        f"Successfully archived {len(entries)} completed request(s).",
        table=False,
        archivedCount=len(entries),
        archivedRequests=[
            {"requestId": e.original_request_id, "originalRequest": e.original_request, "archivedAt": e.archived_at}
            for e in entries
        ],
        archiveFilePath=outcome.extra.get("archiveFilePath"),
        rotation=outcome.extra.get("rotation"),
    )


def handle_list_archived_requests(ctx: ToolContext, args: ListArchivedArgs) -> ToolResult:
    outcome = ctx.archive.list_archived_requests(args.search_term, args.limit)
    info = outcome.extra.get("archiveInfo")
    return _respond(
        outcome,
        f"Found {len(outcome.items)} archived request(s).",
        table=False,
        archivedRequests=[_archived_row(e) for e in outcome.items],
        archiveInfo=info.to_dict() if info is not None else None,
    )


def handle_restore_archived_request(ctx: ToolContext, args: RequestArgs) -> ToolResult:
    outcome = ctx.archive.restore_archived_request(args.request_id)
    if outcome.status != "request_restored":
        return _respond(outcome, "", table=False)
    restored = outcome.request
    return _respond(
        outcome,
        f"Request {args.request_id} has been restored from archive.",
        restoredRequest={
            "requestId": restored.request_id,
            "originalRequest": restored.original_request,
            "tasksCount": len(restored.tasks),
        },
    )


def handle_rotate_archive(ctx: ToolContext, args: RotateArchiveArgs) -> ToolResult:
    outcome = ctx.archive.rotate_archive_if_needed(args.max_size, args.max_age_days)
    if outcome.status == "archive_rotated":
        rotated = outcome.extra["rotatedPath"]
        return _respond(
            outcome,
            f"Archive rotated to {rotated}. New empty archive created.",
            table=False,
            rotatedPath=rotated,
        )
    return _respond(outcome, "Archive rotation not needed.", table=False)


Handler = Callable[[ToolContext, Any], ToolResult]

HANDLERS: Dict[Operation, Handler] = {
    Operation.PLAN_TASK: handle_plan_task,
    Operation.GET_NEXT_TASK: handle_get_next_task,
    Operation.MARK_TASK_DONE: handle_mark_task_done,
    Operation.APPROVE_TASK_COMPLETION: handle_approve_task_completion,
    Operation.APPROVE_REQUEST_COMPLETION: handle_approve_request_completion,
    Operation.OPEN_TASK_DETAILS: handle_open_task_details,
    Operation.LIST_REQUESTS: handle_list_requests,
    Operation.ADD_TASKS_TO_REQUEST: handle_add_tasks_to_request,
    Operation.UPDATE_TASK: handle_update_task,
    Operation.DELETE_TASK: handle_delete_task,
    Operation.ADD_SUBTASKS: handle_add_subtasks,
    Operation.MARK_SUBTASK_DONE: handle_mark_subtask_done,
    Operation.UPDATE_SUBTASK: handle_update_subtask,
    Operation.DELETE_SUBTASK: handle_delete_subtask,
    Operation.EXPORT_TASK_STATUS: handle_export_task_status,
    Operation.ADD_NOTE: handle_add_note,
    Operation.UPDATE_NOTE: handle_update_note,
    Operation.DELETE_NOTE: handle_delete_note,
    Operation.ADD_DEPENDENCY: handle_add_dependency,
    Operation.GET_PROMPTS: handle_get_prompts,
    Operation.SET_PROMPTS: handle_set_prompts,
    Operation.UPDATE_PROMPTS: handle_update_prompts,
    Operation.REMOVE_PROMPTS: handle_remove_prompts,
    Operation.ARCHIVE_COMPLETED_REQUESTS: handle_archive_completed_requests,
    Operation.LIST_ARCHIVED_REQUESTS: handle_list_archived_requests,
    Operation.RESTORE_ARCHIVED_REQUEST: handle_restore_archived_request,
    Operation.ROTATE_ARCHIVE: handle_rotate_archive,
}

_unhandled = [op.value for op in Operation if op not in HANDLERS or op.value not in TOOL_SPECS]
if _unhandled:
    raise RuntimeError(f"Operations without handler or schema: {', '.join(_unhandled)}")


def validate_arguments(operation: Operation, arguments: Dict[str, Any]) -> Optional[ToolResult]:
    schema = TOOL_SPECS[operation.value]["schema"]
    try:
        jsonschema.validate(instance=arguments, schema=schema)
    except jsonschema.ValidationError as exc:
        path = "/".join(str(p) for p in exc.absolute_path)
        return error_result(
            "INVALID_ARGUMENTS",
            f"Invalid arguments for {operation.value}: {exc.message}",
            path=path or None,
        )
    return None


def process_tool_call(ctx: ToolContext, name: Any, arguments: Any) -> ToolResult:
    operation = Operation.parse(name)
    if operation is None:
        return error_result("UNKNOWN_TOOL", f"Unknown tool: {name}")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        return error_result("INVALID_ARGUMENTS", "arguments must be an object")
    rejected = validate_arguments(operation, arguments)
    if rejected is not None:
        return rejected
    try:
        return HANDLERS[operation](ctx, build_arguments(operation, arguments))
    except Exception as exc:
        logger.exception("Tool %s failed", operation.value)
        return error_result("INTERNAL_ERROR", f"Error: {exc}")


__all__ = [
    "HANDLERS",
    "ToolContext",
    "ToolResult",
    "error_result",
    "process_tool_call",
    "validate_arguments",
]
