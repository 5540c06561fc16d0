"""Markdown tables and progress numbers derived from requests (read-only)."""

from typing import Dict

from core import Request, Task, TaskFlowDocument, done_label
from util.display import clip_display

ORIGINAL_REQUEST_COLUMNS = 30


def table_cell(text: str) -> str:
    """Keep a value inside one Markdown table cell: escape pipes, fold line breaks."""
    value = (text or "").replace("|", "\\|")
    return "<br>".join(value.splitlines())


def _percent(done: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(done * 100 / total + 0.5)


def compute_progress(request: Request) -> Dict[str, int]:
    total = len(request.tasks)
    done = sum(1 for t in request.tasks if t.done)
    return {"total": total, "done": done, "remaining": total - done, "percent": _percent(done, total)}


def compute_subtask_progress(task: Task) -> Dict[str, int]:
    total = len(task.subtasks)
    done = sum(1 for s in task.subtasks if s.done)
    return {"total": total, "done": done, "remaining": total - done, "percent": _percent(done, total)}


def format_task_progress_table(request: Request) -> str:
    lines = [
        "",
        "Progress Status:",
        "| Task ID | Title | Description | Status | Subtasks |",
        "|----------|----------|------|------|----------|",
    ]
    for task in request.tasks:
        if task.subtasks:
            progress = compute_subtask_progress(task)
            counts = f"{progress['done']}/{progress['total']}"
        else:
            counts = "None"
        title, description = table_cell(task.title), table_cell(task.description)
        lines.append(f"| {task.id} | {title} | {description} | {done_label(task.done)} | {counts} |")
        for sub in task.subtasks:
            title, description = table_cell(sub.title), table_cell(sub.description)
            lines.append(f"| └─ {sub.id} | {title} | {description} | {done_label(sub.done)} | - |")
    return "\n".join(lines) + "\n"


def format_requests_list(document: TaskFlowDocument) -> str:
    lines = [
        "",
        "Requests List:",
        "| Request ID | Original Request | Total Tasks | Completed |",
        "|------------|------------------|-------------|-----------|",
    ]
    for request in document.requests:
        progress = compute_progress(request)
        short = table_cell(clip_display(request.original_request, ORIGINAL_REQUEST_COLUMNS))
        lines.append(f"| {request.request_id} | {short} | {progress['total']} | {progress['done']} |")
    return "\n".join(lines) + "\n"


__all__ = [
    "compute_progress",
    "compute_subtask_progress",
    "format_requests_list",
    "format_task_progress_table",
    "table_cell",
]
