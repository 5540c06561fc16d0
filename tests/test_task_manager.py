from pathlib import Path

import pytest

from application.task_manager import TaskFlowManager
from core import Dependency, NewNote, NewSubtask, NewTask, Subtask, Task, TaskState
from infrastructure.archive_repository import FileArchiveRepository
from infrastructure.file_repository import FileStoreRepository


def _manager(tmp_path: Path, name: str = "tasks.json") -> TaskFlowManager:
    store = FileStoreRepository(tmp_path / name)
    archive = FileArchiveRepository(tmp_path / f"archive{Path(name).suffix}")
    return TaskFlowManager(store, archive)


def _two_tasks():
    return [
        NewTask(
            title="Task one",
            description="first",
            subtasks=[NewSubtask(title="Sub A", description="a"), NewSubtask(title="Sub B", description="b")],
        ),
        NewTask(title="Task two", description="second"),
    ]


def _plan(manager: TaskFlowManager):
    return manager.plan("Build the thing", _two_tasks())


class TestGatingScenario:
    def test_walkthrough(self, tmp_path: Path):
        manager = _manager(tmp_path)
        planned = _plan(manager)
        assert planned.status == "planned"
        req = planned.request.request_id

        nxt = manager.get_next_task(req)
        assert nxt.status == "next_task"
        assert nxt.task.id == "task-1"

        blocked = manager.mark_task_done(req, "task-1")
        assert blocked.status == "subtasks_pending"
        assert [s["id"] for s in blocked.items] == ["subtask-1", "subtask-2"]

        assert manager.mark_subtask_done(req, "task-1", "subtask-1").extra["allSubtasksDone"] is False
        assert manager.mark_subtask_done(req, "task-1", "subtask-2").extra["allSubtasksDone"] is True

        done = manager.mark_task_done(req, "task-1", "All good")
        assert done.status == "task_marked_done"
        assert done.task.completed_details == "All good"

        assert manager.get_next_task(req).task.id == "task-2"
        manager.mark_task_done(req, "task-2")

        final = manager.get_next_task(req)
        assert final.status == "all_tasks_done"
        assert final.request.completed is False

    def test_yaml_store(self, tmp_path: Path):
        manager = _manager(tmp_path, "tasks.yaml")
        req = _plan(manager).request.request_id
        assert manager.get_next_task(req).task.title == "Task one"
        assert "requestId: req-1" in (tmp_path / "tasks.yaml").read_text(encoding="utf-8")


def test_plan_defaults_and_sanitizes(tmp_path: Path):
    manager = _manager(tmp_path)
    outcome = manager.plan(
        "Read guide.mdnnThen act",
        [NewTask(title="T", description="Steps:n- one")],
        dependencies=[Dependency(name="requests")],
        notes=[NewNote(title="Note", content="keep it short")],
    )
    request = outcome.request
    assert request.original_request == "Read guide.md\n\nThen act"
    assert request.split_details == request.original_request
    assert request.tasks[0].description == "Steps:\n- one"
    assert request.dependencies[0].name == "requests"
    assert request.notes[0].id == "note-1"
    assert request.notes[0].created_at


def test_ids_unique_across_reloads(tmp_path: Path):
    first = _plan(_manager(tmp_path)).request
    second = _plan(_manager(tmp_path)).request
    assert first.request_id == "req-1"
    assert second.request_id == "req-2"

    manager = _manager(tmp_path)
    added = manager.add_tasks(first.request_id, [NewTask(title="Extra", subtasks=[NewSubtask(title="x")])])
    assert [t.id for t in added.items] == ["task-3"]
    assert added.items[0].subtasks[0].id == "subtask-3"

    reloaded = _manager(tmp_path)
    again = reloaded.add_tasks(first.request_id, [NewTask(title="Again")])
    assert again.items[0].id == "task-4"
    ids = [t.id for t in reloaded.get_request(first.request_id).request.tasks]
    assert len(ids) == len(set(ids))


def test_note_ids_are_global(tmp_path: Path):
    manager = _manager(tmp_path)
    a = _plan(manager).request.request_id
    b = _plan(manager).request.request_id
    assert manager.add_note(a, "one", "x").note.id == "note-1"
    assert manager.add_note(b, "two", "y").note.id == "note-2"


class TestIdempotenceAndImmutability:
    def test_mark_done_twice(self, tmp_path: Path):
        manager = _manager(tmp_path)
        req = _plan(manager).request.request_id
        manager.mark_task_done(req, "task-2", "first")
        again = manager.mark_task_done(req, "task-2", "second")
        assert again.status == "already_done"
        assert manager.get_request(req).request.find_task("task-2").completed_details == "first"

    def test_mark_subtask_done_twice(self, tmp_path: Path):
        manager = _manager(tmp_path)
        req = _plan(manager).request.request_id
        manager.mark_subtask_done(req, "task-1", "subtask-1")
        assert manager.mark_subtask_done(req, "task-1", "subtask-1").status == "already_done"

    def test_done_task_is_locked(self, tmp_path: Path):
        manager = _manager(tmp_path)
        req = _plan(manager).request.request_id
        manager.mark_task_done(req, "task-2")

        assert manager.update_task(req, "task-2", title="New").status == "task_done_locked"
        assert manager.delete_task(req, "task-2").status == "task_done_locked"
        assert manager.add_subtasks(req, "task-2", [NewSubtask(title="late")]).status == "task_done_locked"
        task = manager.get_request(req).request.find_task("task-2")
        assert task.title == "Task two"
        assert task.subtasks == []

    def test_done_subtask_is_locked(self, tmp_path: Path):
        manager = _manager(tmp_path)
        req = _plan(manager).request.request_id
        manager.mark_subtask_done(req, "task-1", "subtask-1")
        assert manager.update_subtask(req, "task-1", "subtask-1", title="x").status == "subtask_done_locked"
        assert manager.delete_subtask(req, "task-1", "subtask-1").status == "subtask_done_locked"
        assert manager.get_request(req).request.find_task("task-1").find_subtask("subtask-1").title == "Sub A"


def test_add_subtasks_continues_ids_and_regates_task(tmp_path: Path):
    manager = _manager(tmp_path)
    req = _plan(manager).request.request_id
    added = manager.add_subtasks(req, "task-2", [NewSubtask(title="Check", description="c")])
    assert added.status == "subtasks_added"
    assert [s.id for s in added.items] == ["subtask-3"]
    assert added.task.state is TaskState.SUBTASKS_PENDING

    gated = manager.mark_task_done(req, "task-2", "done")
    assert gated.status == "subtasks_pending"
    assert gated.items == [{"id": "subtask-3", "title": "Check"}]

    manager.mark_subtask_done(req, "task-2", "subtask-3")
    assert manager.mark_task_done(req, "task-2", "done").status == "task_marked_done"


def test_task_state():
    task = Task(id="task-1", title="t")
    assert task.state is TaskState.PENDING
    task.subtasks = [Subtask(id="subtask-1", title="s")]
    assert task.state is TaskState.SUBTASKS_PENDING
    task.subtasks[0].done = True
    assert task.state is TaskState.PENDING
    task.done = True
    assert task.state is TaskState.DONE


def test_update_only_overwrites_given_fields(tmp_path: Path):
    manager = _manager(tmp_path)
    req = _plan(manager).request.request_id
    updated = manager.update_task(req, "task-1", title="Renamed", description="")
    assert updated.task.title == "Renamed"
    assert updated.task.description == "first"
    sub = manager.update_subtask(req, "task-1", "subtask-2", description="changed")
    assert sub.subtask.title == "Sub B"
    assert sub.subtask.description == "changed"


def test_not_found_statuses(tmp_path: Path):
    manager = _manager(tmp_path)
    req = _plan(manager).request.request_id
    assert manager.get_next_task("req-99").status == "request_not_found"
    assert manager.mark_task_done(req, "task-99").status == "task_not_found"
    assert manager.mark_subtask_done(req, "task-1", "subtask-99").status == "subtask_not_found"
    assert manager.update_note(req, "note-9", title="x").status == "note_not_found"
    assert manager.open_task_details("task-99").status == "task_not_found"


class TestApproval:
    def test_request_completion_requires_done_and_approved(self, tmp_path: Path):
        manager = _manager(tmp_path)
        req = manager.plan("Small", [NewTask(title="Only")]).request.request_id

        assert manager.approve_task_completion(req, "task-1").status == "task_not_done"
        pending = manager.approve_request_completion(req)
        assert pending.status == "tasks_pending"
        assert pending.items[0]["id"] == "task-1"

        manager.mark_task_done(req, "task-1")
        assert manager.approve_request_completion(req).status == "tasks_pending"
        assert manager.approve_task_completion(req, "task-1").status == "task_approved"
        assert manager.approve_task_completion(req, "task-1").status == "already_approved"

        assert manager.approve_request_completion(req).status == "request_completed"
        assert manager.approve_request_completion(req).status == "already_completed"
        assert manager.get_next_task(req).status == "already_completed"
        assert manager.add_tasks(req, [NewTask(title="late")]).status == "request_completed_locked"

    def test_open_task_details_flags_completed_request(self, tmp_path: Path):
        manager = _manager(tmp_path)
        req = manager.plan("Small", [NewTask(title="Only")]).request.request_id
        manager.mark_task_done(req, "task-1")
        manager.approve_task_completion(req, "task-1")
        manager.approve_request_completion(req)
        found = manager.open_task_details("task-1", req)
        assert found.status == "task_found"
        assert found.extra["requestCompleted"] is True


def test_open_task_details_across_requests(tmp_path: Path):
    manager = _manager(tmp_path)
    a = _plan(manager).request.request_id
    b = _plan(manager).request.request_id
    found = manager.open_task_details("task-2")
    assert found.request.request_id == a
    assert found.extra["otherRequestIds"] == [b]
    scoped = manager.open_task_details("task-2", b)
    assert scoped.request.request_id == b
    assert "otherRequestIds" not in scoped.extra


class TestPrompts:
    def test_prompts_applied_at_read_time_only(self, tmp_path: Path):
        manager = _manager(tmp_path)
        req = _plan(manager).request.request_id
        manager.set_prompts(instructions="Be brief", task_prefix="PRE", task_suffix="POST")

        nxt = manager.get_next_task(req)
        assert nxt.extra["taskView"]["description"] == "PRE\n\nfirst\n\nPOST"
        assert nxt.extra["instructions"] == "Be brief"
        assert manager.get_request(req).request.find_task("task-1").description == "first"

    def test_update_and_remove(self, tmp_path: Path):
        manager = _manager(tmp_path)
        assert manager.remove_prompts().status == "no_prompts"
        assert manager.get_prompts().extra["prompts"] is None

        updated = manager.update_prompts({"taskSuffix": "END"})
        assert updated.status == "prompts_updated"
        created = updated.extra["prompts"].created_at

        again = manager.update_prompts({"instructions": "Hi"})
        assert again.extra["prompts"].task_suffix == "END"
        assert again.extra["prompts"].created_at == created

        partial = manager.remove_prompts(["taskSuffix"])
        assert partial.status == "prompts_fields_removed"
        assert partial.extra["prompts"].instructions == "Hi"

        cleared = manager.remove_prompts(["instructions"])
        assert cleared.extra["prompts"] is None
        assert manager.get_prompts().extra["prompts"] is None

    def test_set_replaces_everything(self, tmp_path: Path):
        manager = _manager(tmp_path)
        manager.set_prompts(instructions="a", task_prefix="b")
        outcome = manager.set_prompts(task_suffix="c")
        prompts = outcome.extra["prompts"]
        assert prompts.instructions is None
        assert prompts.task_prefix is None
        assert prompts.task_suffix == "c"
        assert manager.remove_prompts().status == "prompts_removed"


def test_notes_and_dependencies(tmp_path: Path):
    manager = _manager(tmp_path)
    req = _plan(manager).request.request_id

    note = manager.add_note(req, "Title", "Body").note
    updated = manager.update_note(req, note.id, content="New body")
    assert updated.note.title == "Title"
    assert updated.note.content == "New body"
    assert manager.delete_note(req, note.id).status == "note_deleted"
    assert manager.get_request(req).request.notes == []

    on_task = manager.add_dependency(req, Dependency(name="pyyaml", version="6"), task_id="task-1")
    assert on_task.status == "dependency_added_to_task"
    on_request = manager.add_dependency(req, Dependency(name="pytest"))
    assert on_request.status == "dependency_added_to_request"
    stored = manager.get_request(req).request
    assert stored.find_task("task-1").dependencies[0].version == "6"
    assert stored.dependencies[0].name == "pytest"


def test_list_requests(tmp_path: Path):
    manager = _manager(tmp_path)
    _plan(manager)
    _plan(manager)
    listed = manager.list_requests()
    assert listed.status == "requests_listed"
    assert [r.request_id for r in listed.items] == ["req-1", "req-2"]


def test_io_failure_propagates(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    manager = TaskFlowManager(FileStoreRepository(blocker / "tasks.json"))
    with pytest.raises(OSError):
        _plan(manager)
