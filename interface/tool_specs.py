"""MCP tool descriptions and JSON Schemas (one entry per operation)."""

from typing import Any, Dict

_STR: Dict[str, Any] = {"type": "string"}

DEPENDENCY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": _STR,
        "version": _STR,
        "url": _STR,
        "description": _STR,
    },
    "required": ["name"],
}

SUBTASK_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"title": _STR, "description": _STR},
    "required": ["title", "description"],
}

NOTE_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"title": _STR, "content": _STR},
    "required": ["title", "content"],
}

TASK_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": _STR,
        "description": _STR,
        "subtasks": {"type": "array", "items": SUBTASK_INPUT_SCHEMA},
        "dependencies": {"type": "array", "items": DEPENDENCY_SCHEMA},
    },
    "required": ["title", "description"],
}


def _obj(properties: Dict[str, Any], *required: str) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": list(required)}


_WORKFLOW = (
    "Workflow: plan_task -> get_next_task -> (mark_subtask_done for each subtask) -> mark_task_done. "
    "After each completed task, stop and ask the user for approval (approve_task_completion) "
    "before calling get_next_task again, unless the user said approval is not needed."
)

TOOL_SPECS: Dict[str, Dict[str, Any]] = {
    "plan_task": {
        "description": (
            "Register a new user request and plan its tasks. Requires 'originalRequest' and 'tasks'; "
            "tasks may carry subtasks and dependencies. Optional: 'splitDetails', 'dependencies', 'notes', "
            "and 'outputPath' to also write the plan as Markdown (absolute paths recommended). " + _WORKFLOW
        ),
        "schema": _obj(
            {
                "originalRequest": _STR,
                "tasks": {"type": "array", "items": TASK_INPUT_SCHEMA},
                "splitDetails": _STR,
                "outputPath": _STR,
                "dependencies": {"type": "array", "items": DEPENDENCY_SCHEMA},
                "notes": {"type": "array", "items": NOTE_INPUT_SCHEMA},
            },
            "originalRequest",
            "tasks",
        ),
    },
    "get_next_task": {
        "description": (
            "Return the next pending task of 'requestId' with a progress table. "
            "'all_tasks_done' means every task is finished: confirm with the user, then call "
            "approve_request_completion or add more tasks."
        ),
        "schema": _obj({"requestId": _STR}, "requestId"),
    },
    "mark_task_done": {
        "description": (
            "Mark a task done once its subtasks are complete. Returns 'subtasks_pending' with the "
            "blocking subtasks otherwise. Wait for user approval before the next get_next_task."
        ),
        "schema": _obj(
            {"requestId": _STR, "taskId": _STR, "completedDetails": _STR},
            "requestId",
            "taskId",
        ),
    },
    "approve_task_completion": {
        "description": "Record the user's approval of a task that is already marked done.",
        "schema": _obj({"requestId": _STR, "taskId": _STR}, "requestId", "taskId"),
    },
    "approve_request_completion": {
        "description": (
            "Mark the whole request completed. Every task must be done and approved; "
            "otherwise 'tasks_pending' lists what is missing."
        ),
        "schema": _obj({"requestId": _STR}, "requestId"),
    },
    "open_task_details": {
        "description": (
            "Inspect a task by 'taskId'. Task ids are numbered per request; pass 'requestId' "
            "to disambiguate, otherwise the first request owning the id wins."
        ),
        "schema": _obj({"taskId": _STR, "requestId": _STR}, "taskId"),
    },
    "list_requests": {
        "description": "List every active request with task totals.",
        "schema": _obj({}),
    },
    "add_tasks_to_request": {
        "description": "Append tasks (with optional subtasks and dependencies) to a request that is not completed.",
        "schema": _obj(
            {"requestId": _STR, "tasks": {"type": "array", "items": TASK_INPUT_SCHEMA}},
            "requestId",
            "tasks",
        ),
    },
    "update_task": {
        "description": "Change the title and/or description of a task that is not done yet.",
        "schema": _obj(
            {"requestId": _STR, "taskId": _STR, "title": _STR, "description": _STR},
            "requestId",
            "taskId",
        ),
    },
    "delete_task": {
        "description": "Delete a task that is not done yet.",
        "schema": _obj({"requestId": _STR, "taskId": _STR}, "requestId", "taskId"),
    },
    "add_subtasks": {
        "description": "Add subtasks to a task that is not done yet.",
        "schema": _obj(
            {"requestId": _STR, "taskId": _STR, "subtasks": {"type": "array", "items": SUBTASK_INPUT_SCHEMA}},
            "requestId",
            "taskId",
            "subtasks",
        ),
    },
    "mark_subtask_done": {
        "description": "Mark a subtask done. The response says whether all subtasks of the task are now done.",
        "schema": _obj(
            {"requestId": _STR, "taskId": _STR, "subtaskId": _STR},
            "requestId",
            "taskId",
            "subtaskId",
        ),
    },
    "update_subtask": {
        "description": "Change the title and/or description of a subtask that is not done yet.",
        "schema": _obj(
            {"requestId": _STR, "taskId": _STR, "subtaskId": _STR, "title": _STR, "description": _STR},
            "requestId",
            "taskId",
            "subtaskId",
        ),
    },
    "delete_subtask": {
        "description": "Delete a subtask that is not done yet.",
        "schema": _obj(
            {"requestId": _STR, "taskId": _STR, "subtaskId": _STR},
            "requestId",
            "taskId",
            "subtaskId",
        ),
    },
    "export_task_status": {
        "description": (
            "Write a status snapshot of a request to disk as Markdown, JSON or HTML. "
            "'outputPath' may be a directory or a full file path; 'filename' overrides the generated name."
        ),
        "schema": _obj(
            {
                "requestId": _STR,
                "format": {"type": "string", "enum": ["markdown", "json", "html"]},
                "outputPath": {"type": "string", "description": "Directory or full file path where to save the export"},
                "filename": {"type": "string", "description": "Optional custom filename (auto-generated if not provided)"},
            },
            "requestId",
        ),
    },
    "add_note": {
        "description": "Attach a free-form note (preferences, guidelines, context) to a request.",
        "schema": _obj({"requestId": _STR, "title": _STR, "content": _STR}, "requestId", "title", "content"),
    },
    "update_note": {
        "description": "Change the title and/or content of a note.",
        "schema": _obj(
            {"requestId": _STR, "noteId": _STR, "title": _STR, "content": _STR},
            "requestId",
            "noteId",
        ),
    },
    "delete_note": {
        "description": "Delete a note from a request.",
        "schema": _obj({"requestId": _STR, "noteId": _STR}, "requestId", "noteId"),
    },
    "add_dependency": {
        "description": "Attach a dependency to a request, or to one of its tasks when 'taskId' is given.",
        "schema": _obj(
            {"requestId": _STR, "taskId": _STR, "dependency": DEPENDENCY_SCHEMA},
            "requestId",
            "dependency",
        ),
    },
    "get_prompts": {
        "description": "Show the global prompt template applied to task descriptions.",
        "schema": _obj({}),
    },
    "set_prompts": {
        "description": (
            "Replace the global prompt template. 'taskPrefix' and 'taskSuffix' wrap every task "
            "description returned by get_next_task/open_task_details; 'instructions' is returned alongside."
        ),
        "schema": _obj({"instructions": _STR, "taskPrefix": _STR, "taskSuffix": _STR}),
    },
    "update_prompts": {
        "description": "Change only the given fields of the global prompt template.",
        "schema": _obj({"instructions": _STR, "taskPrefix": _STR, "taskSuffix": _STR}),
    },
    "remove_prompts": {
        "description": "Remove the given template fields, or the whole template when 'fields' is omitted.",
        "schema": _obj(
            {
                "fields": {
                    "type": "array",
                    "items": {"type": "string", "enum": ["instructions", "taskPrefix", "taskSuffix"]},
                }
            }
        ),
    },
    "archive_completed_requests": {
        "description": "Move completed requests (all, or only 'requestIds') into the archive file.",
        "schema": _obj({"requestIds": {"type": "array", "items": _STR}}),
    },
    "list_archived_requests": {
        "description": "List archived requests, optionally filtered by 'searchTerm' and capped by 'limit'.",
        "schema": _obj({"searchTerm": _STR, "limit": {"type": "integer", "minimum": 1}}),
    },
    "restore_archived_request": {
        "description": "Move an archived request back into the active store (marked not completed).",
        "schema": _obj({"requestId": _STR}, "requestId"),
    },
    "rotate_archive": {
        "description": (
            "Roll the archive file to a dated copy when it holds at least 'maxSize' requests "
            "or is older than 'maxAgeDays' days."
        ),
        "schema": _obj({"maxSize": {"type": "integer", "minimum": 1}, "maxAgeDays": {"type": "integer", "minimum": 0}}),
    },
}


__all__ = ["DEPENDENCY_SCHEMA", "NOTE_INPUT_SCHEMA", "SUBTASK_INPUT_SCHEMA", "TASK_INPUT_SCHEMA", "TOOL_SPECS"]
