from core import Request, Subtask, Task, TaskFlowDocument
from interface.formatters import (
    compute_progress,
    compute_subtask_progress,
    format_requests_list,
    format_task_progress_table,
    table_cell,
)
from util.display import clip_display, display_width


def _request() -> Request:
    first = Task(
        id="task-1",
        title="Parse",
        description="parse input",
        subtasks=[Subtask(id="subtask-1", title="Lex", description="tokens", done=True), Subtask(id="subtask-2", title="Tree")],
    )
    second = Task(id="task-2", title="Emit", description="write output", done=True)
    third = Task(id="task-3", title="Ship", description="release")
    return Request(request_id="req-1", original_request="Build a compiler", tasks=[first, second, third])


def test_progress_numbers():
    assert compute_progress(_request()) == {"total": 3, "done": 1, "remaining": 2, "percent": 33}
    assert compute_subtask_progress(_request().tasks[0]) == {"total": 2, "done": 1, "remaining": 1, "percent": 50}
    assert compute_progress(Request(request_id="req-2", original_request="x"))["percent"] == 0


def test_percent_rounds_half_up():
    request = Request(
        request_id="req-1",
        original_request="x",
        tasks=[Task(id=f"task-{i}", title="t", done=i == 1) for i in range(1, 9)],
    )
    assert compute_progress(request)["percent"] == 13


def test_progress_table_rows():
    table = format_task_progress_table(_request())
    lines = table.strip().splitlines()
    assert lines[0] == "Progress Status:"
    assert lines[1] == "| Task ID | Title | Description | Status | Subtasks |"
    assert "| task-1 | Parse | parse input | 🔄 In Progress | 1/2 |" in lines
    assert "| └─ subtask-1 | Lex | tokens | ✅ Done | - |" in lines
    assert "| task-2 | Emit | write output | ✅ Done | None |" in lines


def test_requests_list_clips_by_display_width():
    doc = TaskFlowDocument(
        requests=[
            Request(request_id="req-1", original_request="short"),
            Request(request_id="req-2", original_request="x" * 40, tasks=[Task(id="task-1", title="t", done=True)]),
            Request(request_id="req-3", original_request="界" * 20),
        ]
    )
    text = format_requests_list(doc)
    assert "| req-1 | short | 0 | 0 |" in text
    assert f"| req-2 | {'x' * 30}... | 1 | 1 |" in text
    assert f"| req-3 | {'界' * 15}... | 0 | 0 |" in text


def test_display_helpers():
    assert display_width("abc") == 3
    assert display_width("界界") == 4
    assert clip_display("abc", 5) == "abc"
    assert clip_display("abcdef", 3) == "abc..."
    assert clip_display("界界界", 5) == "界界..."


def test_table_cells_escape_pipes_and_newlines():
    assert table_cell("a|b") == "a\\|b"
    assert table_cell("one\ntwo\r\nthree") == "one<br>two<br>three"
    assert table_cell("") == ""

    request = Request(
        request_id="req-1",
        original_request="x",
        tasks=[Task(id="task-1", title="a|b", description="Steps:\n- one")],
    )
    lines = format_task_progress_table(request).strip().splitlines()
    assert "| task-1 | a\\|b | Steps:<br>- one | 🔄 In Progress | None |" in lines
    assert all(line.startswith("|") for line in lines[1:])
