"""
Task repository over a single Markdown document.

Reads always re-parse the current document text; writes go through
apply_edit() inside MarkdownDocument.edit(), so each mutation is one atomic
read-modify-write and the returned Task is re-read from the new text.
"""

import logging
from typing import List, Optional

from mdtasks.config import KanbanConfig, resolve_config
from mdtasks.document import MarkdownDocument
from mdtasks.editor.task_editor import (
    CreateTaskInfo,
    TaskEdit,
    TaskNotFoundError,
    apply_edit,
)
from mdtasks.models.path import TaskPath
from mdtasks.models.status import Status
from mdtasks.models.task import ParseResult, Task
from mdtasks.parsers.task_parser import parse_content
from mdtasks.utils.ids import generate_task_id

log = logging.getLogger(__name__)


class TaskRepository:
    """
    Use-cases over the tasks of one document.

    Errors from the parser and editor (MarkdownParseError, SerializerError,
    InvalidStatusError) propagate to the caller; ValueError is raised for
    an empty or multi-line title.
    """

    def __init__(self, document: MarkdownDocument, fallback_config: Optional[KanbanConfig] = None) -> None:
        self._document = document
        self._fallback = fallback_config or KanbanConfig()
        self._last_warnings: List[str] = []

    @property
    def document(self) -> MarkdownDocument:
        return self._document

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _parse(self, text: Optional[str] = None) -> ParseResult:
        if text is None:
            text = self._document.read()
        result = parse_content(
            text,
            default_status=self._fallback.default_status,
            default_done_status=self._fallback.default_done_status,
        )
        if result.warnings and result.warnings != self._last_warnings:
            for warning in result.warnings:
                log.warning(warning)
        self._last_warnings = list(result.warnings)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_all(self) -> List[Task]:
        return [Task.from_parsed(t) for t in self._parse().tasks]

    def find_by_id(self, task_id: str) -> Task:
        parsed = self._parse().find_by_id(task_id)
        if parsed is None:
            raise TaskNotFoundError(task_id)
        return Task.from_parsed(parsed)

    def find_by_path(self, path: TaskPath) -> List[Task]:
        return [Task.from_parsed(t) for t in self._parse().find_by_path(path)]

    def available_paths(self) -> List[TaskPath]:
        """Root followed by every distinct heading path, in document order."""
        paths = [TaskPath.root()]
        for path in self._parse().headings:
            if path not in paths:
                paths.append(path)
        return paths

    def warnings(self) -> List[str]:
        return list(self._parse().warnings)

    def get_config(self) -> KanbanConfig:
        return resolve_config(self._parse().config, self._fallback)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _done_statuses(self, config: KanbanConfig) -> Optional[List[str]]:
        return list(config.done_statuses) if config.sync_checkbox_with_done else None

    def _reread(self, text: str, task_id: str) -> Task:
        parsed = self._parse(text).find_by_id(task_id)
        if parsed is None:
            raise TaskNotFoundError(task_id)
        return Task.from_parsed(parsed)

    def create_task(self, title: str, path: Optional[TaskPath] = None, status: Optional[str] = None) -> Task:
        """
        Add a task under path (root if None).

        The status defaults to the resolved default_status; the checkbox is
        ticked when sync is on and the status is a done status.
        """
        title = _clean_title(title)
        path = path or TaskPath.root()
        config = self.get_config()
        new_status = Status.create(status if status is not None else config.default_status)

        edit = TaskEdit(
            create=CreateTaskInfo(title=title, path=path, status=new_status),
            done_statuses=self._done_statuses(config),
        )
        text = self._document.edit(lambda current: apply_edit(current, edit))
        log.info("Created task %r in %s", title, path)
        return self._reread(text, generate_task_id(path, title))

    def update_task(
        self,
        task_id: str,
        title: Optional[str] = None,
        path: Optional[TaskPath] = None,
        status: Optional[str] = None,
    ) -> Task:
        """
        Change any of title, path and status of an existing task.

        A title or path change gives the task a new ID; the returned Task
        carries it.
        """
        expected = self.find_by_id(task_id)
        new_title = _clean_title(title) if title is not None else None
        new_status = Status.create(status) if status is not None else None
        config = self.get_config()
        done_statuses = self._done_statuses(config)

        if new_title is not None:
            expected = expected.with_title(new_title)
        if path is not None:
            expected = expected.with_path(path)
        if new_status is not None:
            expected = expected.with_status(new_status, done_statuses)

        edit = TaskEdit(
            task_id=task_id,
            new_title=new_title,
            new_status=new_status,
            new_path=path,
            done_statuses=done_statuses,
        )
        text = self._document.edit(lambda text: apply_edit(text, edit))
        log.info("Updated task %s", task_id)

        updated = self._reread(text, generate_task_id(expected.path, expected.title))
        if updated.status != expected.status or updated.is_checked != expected.is_checked:
            log.warning("Task %s did not take the requested status", updated.id)
        return updated

    def change_status(self, task_id: str, status: str) -> Task:
        return self.update_task(task_id, status=status)

    def move_task(self, task_id: str, path: TaskPath, status: Optional[str] = None) -> Task:
        return self.update_task(task_id, path=path, status=status)

    def delete_task(self, task_id: str) -> None:
        edit = TaskEdit(task_id=task_id, delete=True)
        self._document.edit(lambda text: apply_edit(text, edit))
        log.info("Deleted task %s", task_id)

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------

    def save(self) -> None:
        self._document.save()

    def revert(self) -> None:
        self._document.revert()


def _clean_title(title: str) -> str:
    cleaned = title.strip()
    if not cleaned:
        raise ValueError("Task title must not be empty")
    if "\n" in cleaned:
        raise ValueError("Task title must be a single line")
    return cleaned
