"""
Task tool handlers.

Core logic lives in handle_* functions (return dicts).
MCP wrappers in register_task_tools() serialize to JSON strings.
The REST routes call the same handlers.
"""

import json
import logging
from typing import Dict, List, Optional, Union

from mcp.server.fastmcp import FastMCP

from mdtasks.config import KanbanConfig
from mdtasks.editor.task_editor import SerializerError, TaskNotFoundError
from mdtasks.models.path import TaskPath
from mdtasks.models.status import normalize_status
from mdtasks.models.task import Task
from mdtasks.parsers.frontmatter import MarkdownParseError

log = logging.getLogger(__name__)

# Errors a caller can cause; anything else is a bug and propagates
_DOMAIN_ERRORS = (SerializerError, MarkdownParseError, ValueError)

_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


def _task_to_dict(task: Task) -> dict:
    """Serialize a Task to a JSON-serializable dict."""
    return {
        "id": task.id,
        "title": task.title,
        "status": str(task.status),
        "path": str(task.path),
        "path_segments": task.path.to_list(),
        "is_checked": task.is_checked,
        "metadata": dict(task.metadata),
    }


def _error(e: Exception) -> dict:
    log.debug("Request failed: %s", e)
    result = {"error": str(e)}
    if isinstance(e, TaskNotFoundError):
        result["not_found"] = True
    return result


def _parse_path(path: Optional[str]) -> TaskPath:
    return TaskPath.from_string(path) if path else TaskPath.root()


# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------


def sort_tasks(tasks: List[Task], sort_by: str) -> List[Task]:
    """
    Order tasks for display. Sorting is stable, so ties keep document order.

    markdown: document order
    alphabetical: title, case-insensitive
    priority: metadata "priority" high < medium < low, anything else last
    due: metadata "due" ascending, missing last
    """
    if sort_by == "alphabetical":
        return sorted(tasks, key=lambda t: t.title.lower())
    if sort_by == "priority":
        return sorted(
            tasks,
            key=lambda t: _PRIORITY_RANK.get(t.metadata.get("priority", "").strip().lower(), 3),
        )
    if sort_by == "due":
        return sorted(
            tasks,
            key=lambda t: (0, t.metadata["due"]) if t.metadata.get("due") else (1, ""),
        )
    return list(tasks)


def build_board(tasks: List[Task], config: KanbanConfig) -> dict:
    """
    Group tasks into status columns.

    Columns follow config.statuses; statuses found on tasks but not
    configured get their own columns afterwards, in order of first use.
    """
    order = [normalize_status(s) for s in config.statuses]
    done = {normalize_status(s) for s in config.done_statuses}
    columns: Dict[str, List[Task]] = {status: [] for status in order}
    for task in tasks:
        columns.setdefault(str(task.status), []).append(task)

    return {
        "sort_by": config.sort_by,
        "columns": [
            {
                "status": status,
                "is_done": status in done,
                "configured": status in order,
                "tasks": [_task_to_dict(t) for t in sort_tasks(column, config.sort_by)],
            }
            for status, column in columns.items()
        ],
    }


# ---------------------------------------------------------------------------
# Handler functions (return dicts, shared by MCP tools and REST API)
# ---------------------------------------------------------------------------


def handle_task_list(
    repo,
    *,
    status: Optional[str] = None,
    path: Optional[str] = None,
    include_nested: bool = False,
) -> Union[List[dict], dict]:
    try:
        tasks = repo.find_all()
    except _DOMAIN_ERRORS as e:
        return _error(e)
    if status:
        wanted = {normalize_status(s) for s in status.split(",") if s.strip()}
        tasks = [t for t in tasks if str(t.status) in wanted]
    if path is not None:
        target = _parse_path(path)
        if include_nested:
            tasks = [t for t in tasks if t.path.starts_with(target)]
        else:
            tasks = [t for t in tasks if t.path == target]
    return [_task_to_dict(t) for t in tasks]


def handle_task_get(repo, *, task_id: str) -> dict:
    try:
        return _task_to_dict(repo.find_by_id(task_id))
    except _DOMAIN_ERRORS as e:
        return _error(e)


def handle_task_add(
    repo,
    *,
    title: str,
    path: Optional[str] = None,
    status: Optional[str] = None,
) -> dict:
    try:
        task = repo.create_task(title, _parse_path(path), status=status)
    except _DOMAIN_ERRORS as e:
        return _error(e)
    return _task_to_dict(task)


def handle_task_update(
    repo,
    *,
    task_id: str,
    title: Optional[str] = None,
    status: Optional[str] = None,
    path: Optional[str] = None,
) -> dict:
    new_path = _parse_path(path) if path is not None else None
    try:
        task = repo.update_task(task_id, title=title, path=new_path, status=status)
    except _DOMAIN_ERRORS as e:
        return _error(e)
    return _task_to_dict(task)


def handle_task_move(repo, *, task_id: str, path: str, status: Optional[str] = None) -> dict:
    try:
        task = repo.move_task(task_id, _parse_path(path), status=status)
    except _DOMAIN_ERRORS as e:
        return _error(e)
    return _task_to_dict(task)


def handle_task_delete(repo, *, task_id: str) -> dict:
    try:
        repo.delete_task(task_id)
    except _DOMAIN_ERRORS as e:
        return _error(e)
    return {"deleted": task_id}


def handle_task_paths(repo) -> dict:
    try:
        paths = repo.available_paths()
    except _DOMAIN_ERRORS as e:
        return _error(e)
    return {"paths": [{"path": str(p), "segments": p.to_list()} for p in paths]}


def handle_board_config(repo) -> dict:
    try:
        return repo.get_config().model_dump()
    except _DOMAIN_ERRORS as e:
        return _error(e)


def handle_board(repo) -> dict:
    try:
        config = repo.get_config()
        board = build_board(repo.find_all(), config)
        board["warnings"] = repo.warnings()
    except _DOMAIN_ERRORS as e:
        return _error(e)
    return board


def handle_document_save(repo) -> dict:
    try:
        repo.save()
    except OSError as e:
        log.exception("Failed to save %s", repo.document.path)
        return _error(e)
    return {"saved": str(repo.document.path), "dirty": repo.document.dirty}


def handle_document_revert(repo) -> dict:
    try:
        repo.revert()
    except OSError as e:
        log.exception("Failed to revert %s", repo.document.path)
        return _error(e)
    return {"reverted": str(repo.document.path), "dirty": repo.document.dirty}


# ---------------------------------------------------------------------------
# MCP tool registration (thin wrappers)
# ---------------------------------------------------------------------------


def register_task_tools(mcp: FastMCP, repo) -> None:
    """Register all task-related MCP tools onto the FastMCP instance."""

    @mcp.tool()
    def task_list(
        status: Optional[str] = None,
        path: Optional[str] = None,
        include_nested: bool = False,
    ) -> str:
        """
        List tasks in document order.

        Args:
            status: Comma-separated statuses to include (e.g. "todo,in-progress").
                    Omit for all tasks.
            path: Heading path such as "Work / Project A"; "(root)" or "" for
                  tasks above the first heading. Omit for all paths.
            include_nested: With path, also include tasks under sub-headings

        Returns:
            JSON array of task objects
        """
        return json.dumps(
            handle_task_list(repo, status=status, path=path, include_nested=include_nested),
            indent=2,
        )

    @mcp.tool()
    def task_get(task_id: str) -> str:
        """
        Get a single task by ID.

        Args:
            task_id: The 12-character hex task ID

        Returns:
            JSON task object, or error message
        """
        return json.dumps(handle_task_get(repo, task_id=task_id), indent=2)

    @mcp.tool()
    def task_add(
        title: str,
        path: Optional[str] = None,
        status: Optional[str] = None,
    ) -> str:
        """
        Add a new task under a heading.

        The task goes after the last task already under that heading, or at
        the end of the heading's own content. The heading must exist.

        Args:
            title: Task title (single line)
            path: Heading path such as "Work / Project A"; omit for root
            status: Initial status; defaults to the board's default status

        Returns:
            JSON object with the new task
        """
        return json.dumps(
            handle_task_add(repo, title=title, path=path, status=status), indent=2
        )

    @mcp.tool()
    def task_update(
        task_id: str,
        title: Optional[str] = None,
        status: Optional[str] = None,
        path: Optional[str] = None,
    ) -> str:
        """
        Update a task's title, status and/or heading path.

        Only fields you pass will be changed. Changing the title or path
        changes the task's ID; the response carries the new one.

        Args:
            task_id: The task ID to update
            title: New title
            status: New status. With checkbox sync on, the checkbox follows
                    whether the status is a done status.
            path: New heading path (moves the task)

        Returns:
            Updated task JSON or error message
        """
        return json.dumps(
            handle_task_update(repo, task_id=task_id, title=title, status=status, path=path),
            indent=2,
        )

    @mcp.tool()
    def task_move(task_id: str, path: str, status: Optional[str] = None) -> str:
        """
        Move a task (with its metadata) under another heading.

        Args:
            task_id: The task ID to move
            path: Destination heading path; "(root)" for the top of the document
            status: Optional new status applied in the same edit

        Returns:
            Moved task JSON or error message
        """
        return json.dumps(
            handle_task_move(repo, task_id=task_id, path=path, status=status), indent=2
        )

    @mcp.tool()
    def task_delete(task_id: str) -> str:
        """
        Delete a task together with its metadata lines.

        Args:
            task_id: The task ID to delete

        Returns:
            JSON confirmation or error message
        """
        return json.dumps(handle_task_delete(repo, task_id=task_id), indent=2)

    @mcp.tool()
    def task_paths() -> str:
        """
        List the heading paths tasks can be added or moved to.

        Returns:
            JSON with "paths", root first, then headings in document order
        """
        return json.dumps(handle_task_paths(repo), indent=2)

    @mcp.tool()
    def board_config() -> str:
        """
        Show the resolved board configuration (front-matter over defaults).

        Returns:
            JSON with statuses, done_statuses, defaults, sort_by and sync flag
        """
        return json.dumps(handle_board_config(repo), indent=2)

    @mcp.tool()
    def board() -> str:
        """
        Show tasks grouped into kanban columns by status.

        Returns:
            JSON with "columns" (configured statuses first) and any
            duplicate-task "warnings"
        """
        return json.dumps(handle_board(repo), indent=2)

    @mcp.tool()
    def document_save() -> str:
        """
        Write unsaved edits to disk.

        Returns:
            JSON confirmation or error message
        """
        return json.dumps(handle_document_save(repo), indent=2)

    @mcp.tool()
    def document_revert() -> str:
        """
        Discard unsaved edits and reload the document from disk.

        Returns:
            JSON confirmation or error message
        """
        return json.dumps(handle_document_revert(repo), indent=2)
