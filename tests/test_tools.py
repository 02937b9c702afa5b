"""
Tests for tools/task_tools.py: handlers and MCP wrappers.

Uses a real TaskRepository over a temp document and a fake MCP object that
captures registered tools.
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from mdtasks.config import KanbanConfig
from mdtasks.document import MarkdownDocument
from mdtasks.models import Status, Task, TaskPath
from mdtasks.repository import TaskRepository
from mdtasks.tools.task_tools import build_board, register_task_tools, sort_tasks
from mdtasks.utils.ids import generate_task_id


SAMPLE = """\
---
kanban:
  statuses: [todo, doing, done]
  doneStatuses: [done]
  sortBy: priority
---
# Work
- [ ] Write report
  - status: doing
  - priority: low
- [ ] Review PR
  - priority: high
- [ ] Fix build
  - status: blocked

# Personal
- [x] Buy milk
"""


class _FakeMCP:
    """Minimal fake to capture tool registrations."""

    def __init__(self):
        self._tools = {}

    def tool(self, *args, **kwargs):
        """Decorator that records functions by name."""
        def decorator(fn):
            self._tools[fn.__name__] = fn
            return fn
        return decorator

    def get(self, name: str):
        return self._tools[name]


@pytest.fixture
def setup(tmp_path):
    path = tmp_path / "TASKS.md"
    path.write_text(SAMPLE, encoding="utf-8")
    repo = TaskRepository(MarkdownDocument(path))

    mcp = _FakeMCP()
    register_task_tools(mcp, repo)

    return mcp, repo, path


def _call(mcp, name, **kwargs):
    return json.loads(mcp.get(name)(**kwargs))


def _id(title, *segments):
    return generate_task_id(TaskPath.create(segments), title)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegistration:
    def test_all_tools_registered(self, setup):
        mcp, _, _ = setup
        assert set(mcp._tools) == {
            "task_list", "task_get", "task_add", "task_update", "task_move",
            "task_delete", "task_paths", "board_config", "board",
            "document_save", "document_revert",
        }


# ---------------------------------------------------------------------------
# Task tools
# ---------------------------------------------------------------------------

class TestTaskList:
    def test_list_all(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_list")
        assert [t["title"] for t in data] == ["Write report", "Review PR", "Fix build", "Buy milk"]

    def test_task_shape(self, setup):
        mcp, _, _ = setup
        task = _call(mcp, "task_list")[0]
        assert task == {
            "id": _id("Write report", "Work"),
            "title": "Write report",
            "status": "doing",
            "path": "Work",
            "path_segments": ["Work"],
            "is_checked": False,
            "metadata": {"priority": "low"},
        }

    def test_filter_by_status(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_list", status="Todo, done")
        assert [t["title"] for t in data] == ["Review PR", "Buy milk"]

    def test_filter_by_path(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_list", path="Personal")
        assert [t["title"] for t in data] == ["Buy milk"]

    def test_filter_root(self, setup):
        mcp, _, _ = setup
        assert _call(mcp, "task_list", path="(root)") == []

    def test_include_nested(self, setup):
        mcp, _, _ = setup
        assert len(_call(mcp, "task_list", path="", include_nested=True)) == 4


class TestTaskGet:
    def test_get(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_get", task_id=_id("Buy milk", "Personal"))
        assert data["is_checked"]
        assert data["status"] == "done"

    def test_not_found(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_get", task_id="nonexistent")
        assert "error" in data
        assert data["not_found"]


class TestTaskAdd:
    def test_add(self, setup):
        mcp, repo, _ = setup
        data = _call(mcp, "task_add", title="Plan", path="Work")
        assert data["id"] == _id("Plan", "Work")
        assert data["status"] == "todo"
        assert repo.find_by_id(data["id"]).title == "Plan"

    def test_add_root(self, setup):
        mcp, repo, _ = setup
        data = _call(mcp, "task_add", title="Inbox item")
        assert data["path"] == "(root)"
        assert repo.document.read().startswith("---")

    def test_add_missing_heading(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_add", title="x", path="Nope")
        assert "error" in data
        assert "not_found" not in data

    def test_add_blank_title(self, setup):
        mcp, _, _ = setup
        assert "error" in _call(mcp, "task_add", title=" ")


class TestTaskUpdate:
    def test_update_status(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_update", task_id=_id("Review PR", "Work"), status="done")
        assert data["status"] == "done"
        assert data["is_checked"]
        assert data["metadata"] == {"priority": "high"}

    def test_update_path_moves(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_update", task_id=_id("Fix build", "Work"), path="Personal")
        assert data["path"] == "Personal"
        assert data["id"] == _id("Fix build", "Personal")

    def test_update_not_found(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_update", task_id="nonexistent", title="x")
        assert data["not_found"]

    def test_blank_status(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_update", task_id=_id("Review PR", "Work"), status="  ")
        assert "error" in data


class TestTaskMove:
    def test_move_with_status(self, setup):
        mcp, repo, _ = setup
        data = _call(mcp, "task_move", task_id=_id("Write report", "Work"), path="Personal", status="done")
        assert data["path"] == "Personal"
        assert data["is_checked"]
        text = repo.document.read()
        assert "# Personal\n- [x] Buy milk\n- [x] Write report\n  - status: done\n  - priority: low\n" in text

    def test_move_to_missing_heading(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_move", task_id=_id("Write report", "Work"), path="Nope")
        assert "Heading not found" in data["error"]


class TestTaskDelete:
    def test_delete(self, setup):
        mcp, repo, _ = setup
        task_id = _id("Fix build", "Work")
        assert _call(mcp, "task_delete", task_id=task_id) == {"deleted": task_id}
        assert "Fix build" not in repo.document.read()

    def test_delete_missing(self, setup):
        mcp, _, _ = setup
        assert _call(mcp, "task_delete", task_id="nonexistent")["not_found"]


class TestPathsAndConfig:
    def test_paths(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "task_paths")
        assert [p["path"] for p in data["paths"]] == ["(root)", "Work", "Personal"]
        assert data["paths"][0]["segments"] == []

    def test_board_config(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "board_config")
        assert data["statuses"] == ["todo", "doing", "done"]
        assert data["sort_by"] == "priority"
        assert data["sync_checkbox_with_done"] is True


# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------

class TestBoard:
    def test_columns(self, setup):
        mcp, _, _ = setup
        data = _call(mcp, "board")
        assert [c["status"] for c in data["columns"]] == ["todo", "doing", "done", "blocked"]
        assert [c["configured"] for c in data["columns"]] == [True, True, True, False]
        assert [c["is_done"] for c in data["columns"]] == [False, False, True, False]
        assert data["warnings"] == []

    def test_column_contents(self, setup):
        mcp, _, _ = setup
        columns = {c["status"]: c for c in _call(mcp, "board")["columns"]}
        assert [t["title"] for t in columns["todo"]["tasks"]] == ["Review PR"]
        assert [t["title"] for t in columns["blocked"]["tasks"]] == ["Fix build"]


def _task(title, **metadata):
    path = TaskPath.root()
    return Task(
        id=generate_task_id(path, title),
        title=title,
        status=Status.create("todo"),
        path=path,
        metadata=metadata,
    )


class TestSortTasks:
    def test_markdown_keeps_order(self):
        tasks = [_task("b"), _task("a")]
        assert sort_tasks(tasks, "markdown") == tasks

    def test_alphabetical_ignores_case(self):
        tasks = [_task("beta"), _task("Alpha"), _task("gamma")]
        assert [t.title for t in sort_tasks(tasks, "alphabetical")] == ["Alpha", "beta", "gamma"]

    def test_priority(self):
        tasks = [_task("none"), _task("low", priority="low"), _task("high", priority="High"), _task("med", priority="medium")]
        assert [t.title for t in sort_tasks(tasks, "priority")] == ["high", "med", "low", "none"]

    def test_due_missing_last(self):
        tasks = [_task("none"), _task("late", due="2025-05-01"), _task("early", due="2025-01-01")]
        assert [t.title for t in sort_tasks(tasks, "due")] == ["early", "late", "none"]

    def test_build_board_empty_columns(self):
        board = build_board([], KanbanConfig())
        assert [c["status"] for c in board["columns"]] == ["todo", "in-progress", "done"]
        assert all(c["tasks"] == [] for c in board["columns"])


# ---------------------------------------------------------------------------
# Document lifecycle
# ---------------------------------------------------------------------------

class TestDocumentTools:
    def test_save(self, setup):
        mcp, _, path = setup
        _call(mcp, "task_delete", task_id=_id("Fix build", "Work"))
        assert "Fix build" in path.read_text(encoding="utf-8")
        data = _call(mcp, "document_save")
        assert data == {"saved": str(path), "dirty": False}
        assert "Fix build" not in path.read_text(encoding="utf-8")

    def test_revert(self, setup):
        mcp, repo, _ = setup
        _call(mcp, "task_delete", task_id=_id("Fix build", "Work"))
        data = _call(mcp, "document_revert")
        assert data["dirty"] is False
        assert "Fix build" in repo.document.read()
