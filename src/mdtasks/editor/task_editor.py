"""
Task editor: structure-preserving edits to a Markdown document.

Every edit re-parses the given text, works out which lines are affected and
splices only those. Text outside the affected range (front-matter, other
tasks, prose, formatting) comes back byte-for-byte unchanged.

Main API:
    apply_edit(text, edit) -> str

Raises SerializerError subclasses for edits that cannot be applied.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from mdtasks.models.path import TaskPath
from mdtasks.models.status import Status
from mdtasks.models.task import ParsedTask, ParseResult
from mdtasks.parsers.blocks import interrupts_paragraph
from mdtasks.parsers.task_parser import parse_content

_CHECKBOX_MARK_RE = re.compile(r"^(\s*(?:[-*+]|\d{1,9}[.)])\s+)\[([ xX])\]")
_TITLE_LINE_RE = re.compile(r"^(\s*(?:[-*+]|\d{1,9}[.)])\s+\[[ xX]\]\s*)(.*)$")
_CONTENT_COLUMN_RE = re.compile(r"^(\s*(?:[-*+]|\d{1,9}[.)])\s+)")
_STATUS_LINE_RE = re.compile(r"^(\s*)([-*+])\s+status\s*:")
_LIST_LINE_RE = re.compile(r"^(\s*)[-*+]\s+\S")


class SerializerError(Exception):
    """An edit could not be applied to the document."""


class TaskNotFoundError(SerializerError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class MissingTaskIdError(SerializerError):
    def __init__(self):
        super().__init__("Task ID is required for update and delete")


class TargetHeadingNotFoundError(SerializerError):
    def __init__(self, path: TaskPath):
        self.path = path
        super().__init__(f"Heading not found: {path}")


@dataclass
class CreateTaskInfo:
    title: str
    path: TaskPath
    status: Status


@dataclass
class TaskEdit:
    """
    One edit request.

    Either ``create`` is set, or ``task_id`` names an existing task together
    with any combination of new title / status / path, or ``delete``.
    ``done_statuses`` decides checkbox state when a status is written; when
    it is None the checkbox is left untouched.
    """

    task_id: Optional[str] = None
    new_title: Optional[str] = None
    new_status: Optional[Status] = None
    new_path: Optional[TaskPath] = None
    delete: bool = False
    create: Optional[CreateTaskInfo] = None
    done_statuses: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------

def _split_lines(text: str) -> Tuple[List[str], bool]:
    """Split on newlines, remembering whether the text ended with one."""
    if not text:
        return [], False
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
        return lines, True
    return lines, False


def _join_lines(lines: List[str], trailing_newline: bool) -> str:
    if not lines:
        return ""
    return "\n".join(lines) + ("\n" if trailing_newline else "")


def _leading_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _set_checkbox(line: str, checked: bool) -> str:
    m = _CHECKBOX_MARK_RE.match(line)
    if not m:
        return line
    if (m.group(2) != " ") == checked:
        return line
    mark = "[x]" if checked else "[ ]"
    return m.group(1) + mark + line[m.end():]


def _metadata_indent(segment: List[str]) -> str:
    """Indentation for a new metadata line under the task on segment[0]."""
    task_indent = _leading_width(segment[0])
    for line in segment[1:]:
        m = _LIST_LINE_RE.match(line)
        if m and len(m.group(1)) > task_indent:
            return m.group(1)
    m = _CONTENT_COLUMN_RE.match(segment[0])
    width = len(m.group(1)) if m else task_indent + 2
    return " " * width


def _edit_segment(
    segment: List[str],
    new_title: Optional[str],
    new_status: Optional[Status],
    done_statuses: Optional[Iterable[str]],
) -> List[str]:
    """Apply title/status changes to a task's own lines."""
    segment = list(segment)

    if new_title:
        m = _TITLE_LINE_RE.match(segment[0])
        if m:
            segment[0] = m.group(1) + new_title

    if new_status is not None:
        if done_statuses is not None:
            segment[0] = _set_checkbox(segment[0], new_status.is_done(done_statuses))
        for i in range(1, len(segment)):
            m = _STATUS_LINE_RE.match(segment[i])
            if m:
                segment[i] = f"{m.group(1)}{m.group(2)} status: {new_status}"
                break
        else:
            segment.insert(1, f"{_metadata_indent(segment)}- status: {new_status}")

    return segment


def _insert_lines(lines: List[str], index: int, new_lines: List[str]) -> None:
    """
    Splice new_lines in at index. A blank line is added after them when the
    following line would otherwise continue the last inserted line (e.g. the
    text line of a setext heading).
    """
    after = index + len(new_lines)
    lines[index:index] = new_lines
    if after < len(lines) and not interrupts_paragraph(lines[after]):
        lines.insert(after, "")


def _dedent_segment(segment: List[str]) -> List[str]:
    """Shift a task's lines left so the task line starts at column 0."""
    indent = _leading_width(segment[0])
    if not indent:
        return list(segment)
    return [line[min(indent, _leading_width(line)):] for line in segment]


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------

def _require_heading(result: ParseResult, path: TaskPath) -> None:
    if not path.is_root() and not result.has_heading(path):
        raise TargetHeadingNotFoundError(path)


def _insertion_index(result: ParseResult, path: TaskPath, line_count: int) -> int:
    """
    0-based line index at which new task lines should be inserted for path.

    After the last task already under the path; otherwise at the end of the
    heading's direct content (root: before the first heading).
    """
    siblings = result.find_by_path(path)
    if siblings:
        return siblings[-1].end_line

    headings = result.heading_lines
    if path.is_root():
        return headings[0].line - 1 if headings else line_count

    for i, heading in enumerate(headings):
        if heading.path == path:
            if i + 1 < len(headings):
                return headings[i + 1].line - 1
            return line_count
    return line_count


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _find_task(result: ParseResult, task_id: str) -> ParsedTask:
    task = result.find_by_id(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


def _create(text: str, info: CreateTaskInfo, done_statuses: Optional[List[str]]) -> str:
    result = parse_content(text)
    _require_heading(result, info.path)

    checked = done_statuses is not None and info.status.is_done(done_statuses)
    new_lines = [
        f"- [{'x' if checked else ' '}] {info.title}",
        f"  - status: {info.status}",
    ]

    lines, trailing = _split_lines(text)
    index = _insertion_index(result, info.path, len(lines))
    _insert_lines(lines, index, new_lines)
    return _join_lines(lines, trailing)


def _move(text: str, result: ParseResult, task: ParsedTask, edit: TaskEdit) -> str:
    _require_heading(result, edit.new_path)

    lines, trailing = _split_lines(text)
    start = task.start_line - 1
    end = start + task.line_count
    segment = _edit_segment(lines[start:end], edit.new_title, edit.new_status, edit.done_statuses)
    segment = _dedent_segment(segment)

    # Insertion point depends on the document without the task, so re-parse
    del lines[start:end]
    remaining = _join_lines(lines, trailing)
    after = parse_content(remaining)
    lines, trailing = _split_lines(remaining)
    index = _insertion_index(after, edit.new_path, len(lines))
    _insert_lines(lines, index, segment)
    return _join_lines(lines, trailing)


def apply_edit(text: str, edit: TaskEdit) -> str:
    """
    Apply one edit and return the new document text.

    Raises:
        MissingTaskIdError: update/delete without a task ID
        TaskNotFoundError: no task with that ID (duplicates resolve to the first)
        TargetHeadingNotFoundError: create/move to a path with no heading
        MarkdownParseError: the document itself cannot be parsed
    """
    if edit.create is not None:
        return _create(text, edit.create, edit.done_statuses)

    if not edit.task_id:
        raise MissingTaskIdError()

    result = parse_content(text)
    task = _find_task(result, edit.task_id)
    lines, trailing = _split_lines(text)
    start = task.start_line - 1
    end = start + task.line_count

    if edit.delete:
        del lines[start:end]
        return _join_lines(lines, trailing)

    if edit.new_path is not None and edit.new_path != task.path:
        return _move(text, result, task, edit)

    if not edit.new_title and edit.new_status is None:
        return text

    lines[start:end] = _edit_segment(
        lines[start:end], edit.new_title, edit.new_status, edit.done_statuses
    )
    return _join_lines(lines, trailing)
