"""Request/task lifecycle engine.

Every public method opens the store through a session (load, mutate, save)
and returns an :class:`Outcome`. Business-rule violations (missing entities,
locked done items, subtask gating) are reported as statuses, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from application.ports import ArchiveRepository, StoreRepository
from core import (
    PROMPT_FIELDS,
    Dependency,
    IdCounters,
    NewNote,
    NewTask,
    NewSubtask,
    Note,
    Prompts,
    Request,
    Subtask,
    Task,
    TaskFactory,
    TaskState,
    TaskFlowDocument,
    now_iso,
    sanitize_string,
)


@dataclass
class Outcome:
    status: str
    request: Optional[Request] = None
    task: Optional[Task] = None
    subtask: Optional[Subtask] = None
    note: Optional[Note] = None
    items: List[Any] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


def _prompted_task(task: Task, prompts: Optional[Prompts]) -> Dict[str, Any]:
    """Task view with the prompt template applied to the description."""
    view = task.to_dict()
    if prompts is not None:
        view["description"] = prompts.apply(task.description)
    return view


def _prompt_extra(task: Task, prompts: Optional[Prompts]) -> Dict[str, Any]:
    extra: Dict[str, Any] = {"taskView": _prompted_task(task, prompts)}
    if prompts is not None and prompts.instructions:
        extra["instructions"] = prompts.instructions
    return extra


class TaskFlowManager:
    def __init__(self, store: StoreRepository, archive: Optional[ArchiveRepository] = None):
        self.store = store
        self.archive = archive

    def _counters(self, document: TaskFlowDocument) -> IdCounters:
        archives = self.archive.load_history() if self.archive is not None else []
        return IdCounters.scan(document, archives)

    # ------------------------------------------------------------------ #
    # Planning
    # ------------------------------------------------------------------ #

    def plan(
        self,
        original_request: str,
        tasks: Sequence[NewTask],
        split_details: Optional[str] = None,
        dependencies: Optional[List[Dependency]] = None,
        notes: Optional[Sequence[NewNote]] = None,
    ) -> Outcome:
        with self.store.session() as session:
            document = session.document
            counters = self._counters(document)
            factory = TaskFactory()
            original = sanitize_string(original_request)
            request = Request(
                request_id=counters.next_request_id(),
                original_request=original,
                split_details=sanitize_string(split_details) if split_details else original,
                tasks=[factory.create_task(spec) for spec in tasks],
                dependencies=list(dependencies) if dependencies is not None else None,
            )
            if notes is not None:
                stamp = now_iso()
                request.notes = [
                    Note(
                        id=counters.next_note_id(),
                        title=sanitize_string(spec.title),
                        content=sanitize_string(spec.content),
                        created_at=stamp,
                        updated_at=stamp,
                    )
                    for spec in notes
                ]
            document.requests.append(request)
            session.mark_dirty()
            return Outcome("planned", request=request)

    # ------------------------------------------------------------------ #
    # Walking tasks
    # ------------------------------------------------------------------ #

    def get_next_task(self, request_id: str) -> Outcome:
        with self.store.session() as session:
            document = session.document
            request = document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            if request.completed:
                return Outcome("already_completed", request=request)
            task = request.next_pending_task()
            if task is None:
                if request.all_tasks_done():
                    return Outcome("all_tasks_done", request=request)
                return Outcome("no_next_task", request=request)
            return Outcome("next_task", request=request, task=task, extra=_prompt_extra(task, document.prompts))

    def mark_task_done(self, request_id: str, task_id: str, completed_details: str = "") -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            task = request.find_task(task_id)
            if task is None:
                return Outcome("task_not_found", request=request)
            if task.done:
                return Outcome("already_done", request=request, task=task)
            if task.state is TaskState.SUBTASKS_PENDING:
                return Outcome(
                    "subtasks_pending",
                    request=request,
                    task=task,
                    items=[s.summary() for s in task.pending_subtasks()],
                )
            task.done = True
            task.completed_details = sanitize_string(completed_details or "")
            session.mark_dirty()
            return Outcome("task_marked_done", request=request, task=task)

    def approve_task_completion(self, request_id: str, task_id: str) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            task = request.find_task(task_id)
            if task is None:
                return Outcome("task_not_found", request=request)
            if not task.done:
                return Outcome("task_not_done", request=request, task=task)
            if task.approved:
                return Outcome("already_approved", request=request, task=task)
            task.approved = True
            session.mark_dirty()
            return Outcome("task_approved", request=request, task=task)

    def approve_request_completion(self, request_id: str) -> Outcome:
        """Flip ``completed`` once every task is done and approved."""
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            if request.completed:
                return Outcome("already_completed", request=request)
            blocking = [t for t in request.tasks if not (t.done and t.approved)]
            if blocking:
                items = [{"id": t.id, "title": t.title, "done": t.done, "approved": t.approved} for t in blocking]
                return Outcome("tasks_pending", request=request, items=items)
            request.completed = True
            session.mark_dirty()
            return Outcome("request_completed", request=request)

    def open_task_details(self, task_id: str, request_id: Optional[str] = None) -> Outcome:
        with self.store.session() as session:
            document = session.document
            if request_id:
                request = document.find_request(request_id)
                if request is None:
                    return Outcome("request_not_found")
                candidates: Iterable[Request] = [request]
            else:
                candidates = document.requests
            matches = [(r, r.find_task(task_id)) for r in candidates]
            matches = [(r, t) for r, t in matches if t is not None]
            if not matches:
                return Outcome("task_not_found")
            request, task = matches[0]
            extra = _prompt_extra(task, document.prompts)
            if request.completed:
                extra["requestCompleted"] = True
            others = [r.request_id for r, _ in matches[1:]]
            if others:
                extra["otherRequestIds"] = others
            return Outcome("task_found", request=request, task=task, extra=extra)

    def list_requests(self) -> Outcome:
        with self.store.session() as session:
            return Outcome("requests_listed", items=list(session.document.requests))

    # ------------------------------------------------------------------ #
    # Task / subtask editing
    # ------------------------------------------------------------------ #

    def add_tasks(self, request_id: str, tasks: Sequence[NewTask]) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            if request.completed:
                return Outcome("request_completed_locked", request=request)
            factory = TaskFactory.for_request(request)
            created = [factory.create_task(spec) for spec in tasks]
            request.tasks.extend(created)
            session.mark_dirty()
            return Outcome("tasks_added", request=request, items=created)

    def update_task(
        self,
        request_id: str,
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            task = request.find_task(task_id)
            if task is None:
                return Outcome("task_not_found", request=request)
            if task.done:
                return Outcome("task_done_locked", request=request, task=task)
            if title:
                task.title = sanitize_string(title)
            if description:
                task.description = sanitize_string(description)
            session.mark_dirty()
            return Outcome("task_updated", request=request, task=task)

    def delete_task(self, request_id: str, task_id: str) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            task = request.find_task(task_id)
            if task is None:
                return Outcome("task_not_found", request=request)
            if task.done:
                return Outcome("task_done_locked", request=request, task=task)
            request.tasks = [t for t in request.tasks if t.id != task_id]
            session.mark_dirty()
            return Outcome("task_deleted", request=request, task=task)

    def add_subtasks(self, request_id: str, task_id: str, subtasks: Sequence[NewSubtask]) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            task = request.find_task(task_id)
            if task is None:
                return Outcome("task_not_found", request=request)
            if task.done:
                return Outcome("task_done_locked", request=request, task=task)
            factory = TaskFactory.for_request(request)
            created = [factory.create_subtask(spec) for spec in subtasks]
            task.subtasks.extend(created)
            session.mark_dirty()
            return Outcome("subtasks_added", request=request, task=task, items=created)

    def _locate_subtask(self, document: TaskFlowDocument, request_id: str, task_id: str, subtask_id: str):
        request = document.find_request(request_id)
        if request is None:
            return Outcome("request_not_found"), None, None, None
        task = request.find_task(task_id)
        if task is None:
            return Outcome("task_not_found", request=request), request, None, None
        subtask = task.find_subtask(subtask_id)
        if subtask is None:
            return Outcome("subtask_not_found", request=request, task=task), request, task, None
        return None, request, task, subtask

    def mark_subtask_done(self, request_id: str, task_id: str, subtask_id: str) -> Outcome:
        with self.store.session() as session:
            miss, request, task, subtask = self._locate_subtask(session.document, request_id, task_id, subtask_id)
            if miss is not None:
                return miss
            if subtask.done:
                return Outcome("already_done", request=request, task=task, subtask=subtask)
            subtask.done = True
            session.mark_dirty()
            return Outcome(
                "subtask_marked_done",
                request=request,
                task=task,
                subtask=subtask,
                extra={"allSubtasksDone": task.all_subtasks_done()},
            )

    def update_subtask(
        self,
        request_id: str,
        task_id: str,
        subtask_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Outcome:
        with self.store.session() as session:
            miss, request, task, subtask = self._locate_subtask(session.document, request_id, task_id, subtask_id)
            if miss is not None:
                return miss
            if subtask.done:
                return Outcome("subtask_done_locked", request=request, task=task, subtask=subtask)
            if title:
                subtask.title = sanitize_string(title)
            if description:
                subtask.description = sanitize_string(description)
            session.mark_dirty()
            return Outcome("subtask_updated", request=request, task=task, subtask=subtask)

    def delete_subtask(self, request_id: str, task_id: str, subtask_id: str) -> Outcome:
        with self.store.session() as session:
            miss, request, task, subtask = self._locate_subtask(session.document, request_id, task_id, subtask_id)
            if miss is not None:
                return miss
            if subtask.done:
                return Outcome("subtask_done_locked", request=request, task=task, subtask=subtask)
            task.subtasks = [s for s in task.subtasks if s.id != subtask_id]
            session.mark_dirty()
            return Outcome("subtask_deleted", request=request, task=task, subtask=subtask)

    # ------------------------------------------------------------------ #
    # Notes and dependencies
    # ------------------------------------------------------------------ #

    def add_note(self, request_id: str, title: str, content: str) -> Outcome:
        with self.store.session() as session:
            document = session.document
            request = document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            counters = self._counters(document)
            stamp = now_iso()
            note = Note(
                id=counters.next_note_id(),
                title=sanitize_string(title),
                content=sanitize_string(content),
                created_at=stamp,
                updated_at=stamp,
            )
            if request.notes is None:
                request.notes = []
            request.notes.append(note)
            session.mark_dirty()
            return Outcome("note_added", request=request, note=note)

    def update_note(
        self,
        request_id: str,
        note_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            note = request.find_note(note_id)
            if note is None:
                return Outcome("note_not_found", request=request)
            if title:
                note.title = sanitize_string(title)
            if content:
                note.content = sanitize_string(content)
            note.updated_at = now_iso()
            session.mark_dirty()
            return Outcome("note_updated", request=request, note=note)

    def delete_note(self, request_id: str, note_id: str) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            note = request.find_note(note_id)
            if note is None:
                return Outcome("note_not_found", request=request)
            request.notes = [n for n in request.notes or [] if n.id != note_id]
            session.mark_dirty()
            return Outcome("note_deleted", request=request, note=note)

    def add_dependency(self, request_id: str, dependency: Dependency, task_id: Optional[str] = None) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            extra = {"dependency": dependency.to_dict()}
            if task_id:
                task = request.find_task(task_id)
                if task is None:
                    return Outcome("task_not_found", request=request)
                task.dependencies = (task.dependencies or []) + [dependency]
                session.mark_dirty()
                return Outcome("dependency_added_to_task", request=request, task=task, extra=extra)
            request.dependencies = (request.dependencies or []) + [dependency]
            session.mark_dirty()
            return Outcome("dependency_added_to_request", request=request, extra=extra)

    # ------------------------------------------------------------------ #
    # Prompt template
    # ------------------------------------------------------------------ #

    def get_prompts(self) -> Outcome:
        with self.store.session() as session:
            return Outcome("prompts_retrieved", extra={"prompts": session.document.prompts})

    def set_prompts(
        self,
        instructions: Optional[str] = None,
        task_prefix: Optional[str] = None,
        task_suffix: Optional[str] = None,
    ) -> Outcome:
        """Replace the whole template, keeping the original creation time."""
        with self.store.session() as session:
            document = session.document
            stamp = now_iso()
            created = document.prompts.created_at if document.prompts and document.prompts.created_at else stamp
            document.prompts = Prompts(
                instructions=instructions,
                task_prefix=task_prefix,
                task_suffix=task_suffix,
                created_at=created,
                updated_at=stamp,
            )
            session.mark_dirty()
            return Outcome("prompts_set", extra={"prompts": document.prompts})

    def update_prompts(self, updates: Dict[str, Optional[str]]) -> Outcome:
        """Overwrite only the given fields (keys are instructions/taskPrefix/taskSuffix)."""
        with self.store.session() as session:
            document = session.document
            stamp = now_iso()
            if document.prompts is None:
                document.prompts = Prompts(created_at=stamp)
            for name in PROMPT_FIELDS:
                if name in updates and updates[name] is not None:
                    document.prompts.set_field(name, updates[name])
            document.prompts.updated_at = stamp
            session.mark_dirty()
            return Outcome("prompts_updated", extra={"prompts": document.prompts})

    def remove_prompts(self, fields: Optional[Sequence[str]] = None) -> Outcome:
        with self.store.session() as session:
            document = session.document
            if document.prompts is None:
                return Outcome("no_prompts")
            if not fields:
                document.prompts = None
                session.mark_dirty()
                return Outcome("prompts_removed")
            for name in fields:
                if name in PROMPT_FIELDS:
                    document.prompts.set_field(name, None)
            document.prompts.updated_at = now_iso()
            if not document.prompts.has_content():
                document.prompts = None
            session.mark_dirty()
            return Outcome("prompts_fields_removed", items=list(fields), extra={"prompts": document.prompts})

    # ------------------------------------------------------------------ #
    # Read-only lookups used by exports
    # ------------------------------------------------------------------ #

    def get_request(self, request_id: str) -> Outcome:
        with self.store.session() as session:
            request = session.document.find_request(request_id)
            if request is None:
                return Outcome("request_not_found")
            return Outcome("request_found", request=request)


__all__ = ["Outcome", "TaskFlowManager"]
