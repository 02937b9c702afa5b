"""
Core task data models.

ParsedTask is the transient, line-addressed record produced by one parse of
a document. Task is the entity handed to callers outside the engine; it has
no line numbers because those are only valid for the text they came from.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from mdtasks.models.path import TaskPath
from mdtasks.models.status import Status

TaskMetadata = Dict[str, str]


@dataclass
class FrontmatterConfig:
    """
    Kanban settings read from a document's front-matter.

    Every field is optional; missing fields are filled per-field from the
    fallback configuration (see config.resolve_config).
    """

    statuses: Optional[List[str]] = None
    done_statuses: Optional[List[str]] = None
    default_status: Optional[str] = None
    default_done_status: Optional[str] = None
    sort_by: Optional[str] = None
    sync_checkbox_with_done: Optional[bool] = None


@dataclass
class ParsedTask:
    """A checklist item recovered from one parse, with its 1-based line range."""

    id: str
    title: str
    status: Status
    path: TaskPath
    is_checked: bool
    metadata: TaskMetadata = field(default_factory=dict)
    start_line: int = 0
    end_line: int = 0

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass
class ParsedHeading:
    """A heading's path, level and 1-based line in the full document."""

    path: TaskPath
    level: int
    line: int


@dataclass
class ParseResult:
    """Everything a single parse recovers from a document."""

    tasks: List[ParsedTask] = field(default_factory=list)
    headings: List[TaskPath] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    config: Optional[FrontmatterConfig] = None
    heading_lines: List[ParsedHeading] = field(default_factory=list)

    def find_by_id(self, task_id: str) -> Optional[ParsedTask]:
        """First task with this ID in document order (canonical for duplicates)."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def find_by_path(self, path: TaskPath) -> List[ParsedTask]:
        return [t for t in self.tasks if t.path == path]

    def has_heading(self, path: TaskPath) -> bool:
        return path in self.headings


@dataclass(frozen=True)
class Task:
    """Immutable task entity; every update returns a new instance."""

    id: str
    title: str
    status: Status
    path: TaskPath
    is_checked: bool = False
    metadata: TaskMetadata = field(default_factory=dict)

    @classmethod
    def from_parsed(cls, parsed: ParsedTask) -> Task:
        return cls(
            id=parsed.id,
            title=parsed.title,
            status=parsed.status,
            path=parsed.path,
            is_checked=parsed.is_checked,
            metadata=dict(parsed.metadata),
        )

    def with_status(
        self, status: Status, done_statuses: Optional[Iterable[str]] = None
    ) -> Task:
        """
        Change the status. The checked flag follows the done-set only when one
        is supplied; otherwise it is left as-is.
        """
        is_checked = self.is_checked
        if done_statuses is not None:
            is_checked = status.is_done(done_statuses)
        return replace(self, status=status, is_checked=is_checked)

    def with_title(self, title: str) -> Task:
        return replace(self, title=title)

    def with_path(self, path: TaskPath) -> Task:
        return replace(self, path=path)
