"""Export renderers: planning Markdown, status Markdown/HTML, JSON snapshot."""

import json
from datetime import date
from html import escape
from typing import List, Optional

from core import Dependency, Request, Task, done_label
from interface.formatters import compute_progress, compute_subtask_progress, table_cell

_HTML_STYLE = """    body { font-family: Arial, sans-serif; line-height: 1.6; max-width: 1000px; margin: 0 auto; padding: 20px; }
    h1, h2, h3 { color: #333; }
    .progress-bar { background-color: #f0f0f0; border-radius: 4px; height: 20px; margin-bottom: 20px; }
    .progress-bar-fill { background-color: #4CAF50; height: 100%; border-radius: 4px; }
    .task { border: 1px solid #ddd; padding: 15px; margin-bottom: 15px; border-radius: 4px; }
    .task-header { display: flex; justify-content: space-between; align-items: center; }
    .task-status { padding: 5px 10px; border-radius: 4px; font-size: 14px; }
    .status-done { background-color: #E8F5E9; color: #2E7D32; }
    .status-progress { background-color: #E3F2FD; color: #1565C0; }
    .note { background-color: #FFF8E1; padding: 10px; border-left: 4px solid #FFC107; margin-bottom: 15px; }
    table { border-collapse: collapse; width: 100%; }
    th, td { text-align: left; padding: 8px; border-bottom: 1px solid #ddd; }
    th { background-color: #f2f2f2; }"""


def render_dependencies(deps: Optional[List[Dependency]], fmt: str = "md") -> str:
    if not deps:
        return ""
    if fmt == "md":
        lines = []
        for dep in deps:
            line = f"- **{dep.name}**"
            if dep.version:
                line += f" ({dep.version})"
            if dep.description:
                line += f": {dep.description}"
            if dep.url:
                line += f" - [Link]({dep.url})"
            lines.append(line)
        return "\n".join(lines)
    items = []
    for dep in deps:
        ver = f" ({escape(dep.version)})" if dep.version else ""
        desc = f": {escape(dep.description)}" if dep.description else ""
        link = f' - <a href="{escape(dep.url)}">Link</a>' if dep.url else ""
        items.append(f"<li>{escape(dep.name)}{ver}{desc}{link}</li>")
    return f"<ul>{''.join(items)}</ul>"


def _dependency_names(deps: List[Dependency]) -> str:
    return ", ".join(d.name + (f" ({d.version})" if d.version else "") for d in deps)


def generate_planning_markdown(request: Request) -> str:
    out = [f"# Project Plan: {request.original_request}\n\n"]
    if request.split_details and request.split_details != request.original_request:
        out.append(f"## Details\n{request.split_details}\n\n")
    if request.dependencies:
        out.append("## Dependencies\n\n")
        out.append(render_dependencies(request.dependencies, "md"))
        out.append("\n\n")
    if request.notes:
        out.append("## Notes\n\n")
        for note in request.notes:
            out.append(f"### {note.title}\n{note.content}\n\n")

    out.append("## Tasks Overview\n")
    for task in request.tasks:
        out.append(f"- [ ] {task.title}\n")
        for sub in task.subtasks:
            out.append(f"  - [ ] {sub.title}\n")
        if task.dependencies:
            out.append(f"  - Dependencies: {_dependency_names(task.dependencies)}\n")
    out.append("\n")

    out.append("## Detailed Tasks\n\n")
    for idx, task in enumerate(request.tasks, start=1):
        out.append(f"### {idx}. {task.title}\n")
        out.append(f"**Description:** {task.description}\n\n")
        if task.dependencies:
            out.append("**Dependencies:**\n")
            out.append(render_dependencies(task.dependencies, "md"))
            out.append("\n")
        if task.subtasks:
            out.append("**Subtasks:**\n")
            for sub in task.subtasks:
                out.append(f"- [ ] {sub.title}\n")
                out.append(f"  - Description: {sub.description}\n")
            out.append("\n")

    out.append("## Progress Tracking\n\n")
    out.append("| Task | Status | Completion Date |\n")
    out.append("|------|--------|----------------|\n")
    for task in request.tasks:
        out.append(f"| {table_cell(task.title)} | {done_label(task.done)} | {'YYYY-MM-DD' if task.done else ''} |\n")
    return "".join(out)


def _today(today: Optional[date]) -> str:
    return (today or date.today()).isoformat()


def generate_markdown_status(request: Request, today: Optional[date] = None) -> str:
    progress = compute_progress(request)
    out = [
        f"# Task Status Report: {request.original_request}\n\n",
        f"*Generated on: {_today(today)}*\n\n",
        f"## Overall Progress: {progress['percent']}%\n\n",
        f"- **Total Tasks:** {progress['total']}\n",
        f"- **Completed Tasks:** {progress['done']}\n",
        f"- **Remaining Tasks:** {progress['remaining']}\n\n",
    ]
    if request.notes:
        out.append("## Notes\n\n")
        for note in request.notes:
            out.append(f"### {note.title}\n{note.content}\n\n")
            out.append(f"*Last updated: {note.updated_at}*\n\n")

    out.append("## Task Status\n\n")
    for idx, task in enumerate(request.tasks, start=1):
        label = done_label(task.done)
        out.append(f"### {idx}. {task.title} ({label})\n")
        out.append(f"**Description:** {task.description}\n\n")
        out.append(f"**Status:** {label}\n")
        if task.done and task.completed_details:
            out.append(f"**Completion Details:** {task.completed_details}\n\n")
        if task.subtasks:
            sp = compute_subtask_progress(task)
            out.append(f"**Subtask Progress:** {sp['percent']}% ({sp['done']}/{sp['total']})\n\n")
            out.append("| Subtask | Description | Status |\n")
            out.append("|---------|-------------|--------|\n")
            for sub in task.subtasks:
                out.append(f"| {table_cell(sub.title)} | {table_cell(sub.description)} | {done_label(sub.done)} |\n")
            out.append("\n")
        if task.dependencies:
            out.append("**Dependencies:**\n")
            out.append(render_dependencies(task.dependencies, "md"))
            out.append("\n")
    return "".join(out)


def _status_span(done: bool) -> str:
    css = "status-done" if done else "status-progress"
    return f'<span class="task-status {css}">{done_label(done, plain=True)}</span>'


def _render_html_notes(request: Request) -> str:
    if not request.notes:
        return ""
    blocks = [
        f"""
  <div class="note">
    <h3>{escape(n.title)}</h3>
    <p>{escape(n.content)}</p>
    <p><small>Last updated: {escape(n.updated_at)}</small></p>
  </div>"""
        for n in request.notes
    ]
    return "<h2>Notes</h2>" + "".join(blocks)


def _render_html_task(idx: int, task: Task) -> str:
    subtasks = ""
    if task.subtasks:
        sp = compute_subtask_progress(task)
        rows = "".join(
            f"""
      <tr>
        <td>{escape(s.title)}</td>
        <td>{escape(s.description)}</td>
        <td>{_status_span(s.done)}</td>
      </tr>"""
            for s in task.subtasks
        )
        subtasks = f"""
    <p><strong>Subtask Progress:</strong> {sp['percent']}% ({sp['done']}/{sp['total']})</p>
    <table>
      <tr>
        <th>Subtask</th>
        <th>Description</th>
        <th>Status</th>
      </tr>{rows}
    </table>"""
    deps = ""
    if task.dependencies:
        deps = f"<p><strong>Dependencies:</strong></p>{render_dependencies(task.dependencies, 'html')}"
    completion = ""
    if task.done and task.completed_details:
        completion = f"<p><strong>Completion Details:</strong> {escape(task.completed_details)}</p>"
    return f"""
  <div class="task">
    <div class="task-header">
      <h3>{idx}. {escape(task.title)}</h3>
      {_status_span(task.done)}
    </div>
    <p><strong>Description:</strong> {escape(task.description)}</p>
    {completion}
    {subtasks}
    {deps}
  </div>"""


def generate_html_status(request: Request, today: Optional[date] = None) -> str:
    progress = compute_progress(request)
    title = escape(request.original_request)
    tasks = "".join(_render_html_task(idx, task) for idx, task in enumerate(request.tasks, start=1))
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Task Status: {title}</title>
  <style>
{_HTML_STYLE}
  </style>
</head>
<body>
  <h1>Task Status: {title}</h1>
  <p><em>Generated on: {_today(today)}</em></p>

  <h2>Overall Progress: {progress['percent']}%</h2>
  <div class="progress-bar">
    <div class="progress-bar-fill" style="width:{progress['percent']}%"></div>
  </div>
  <p>
    <strong>Total Tasks:</strong> {progress['total']} |
    <strong>Completed:</strong> {progress['done']} |
    <strong>Remaining:</strong> {progress['remaining']}
  </p>
  {_render_html_notes(request)}
  <h2>Task Status</h2>
  {tasks}
</body>
</html>"""


def request_to_json(request: Request) -> str:
    return json.dumps(request.to_dict(), ensure_ascii=False, indent=2)


def render_export(request: Request, fmt: str, today: Optional[date] = None) -> str:
    if fmt == "markdown":
        return generate_markdown_status(request, today)
    if fmt == "html":
        return generate_html_status(request, today)
    if fmt == "json":
        return request_to_json(request)
    raise ValueError(f"Unsupported format: {fmt}")


__all__ = [
    "generate_html_status",
    "generate_markdown_status",
    "generate_planning_markdown",
    "render_dependencies",
    "render_export",
    "request_to_json",
]
