"""
Tests for the REST API (api/app.py, api/task_routes.py).
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from mdtasks.api import create_app
from mdtasks.document import MarkdownDocument
from mdtasks.models import TaskPath
from mdtasks.repository import TaskRepository
from mdtasks.utils.ids import generate_task_id


SAMPLE = """\
# Work
- [ ] Write report
  - status: in-progress
- [ ] Review PR

# Personal
- [x] Buy milk
"""

REVIEW_ID = generate_task_id(TaskPath.create(["Work"]), "Review PR")


@pytest.fixture
def setup(tmp_path):
    path = tmp_path / "TASKS.md"
    path.write_text(SAMPLE, encoding="utf-8")
    repo = TaskRepository(MarkdownDocument(path))
    return TestClient(create_app(repo)), repo, path


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TestTaskRoutes:
    def test_list(self, setup):
        client, _, _ = setup
        resp = client.get("/api/tasks")
        assert resp.status_code == 200
        assert [t["title"] for t in resp.json()] == ["Write report", "Review PR", "Buy milk"]

    def test_list_filtered(self, setup):
        client, _, _ = setup
        resp = client.get("/api/tasks", params={"status": "done"})
        assert [t["title"] for t in resp.json()] == ["Buy milk"]
        resp = client.get("/api/tasks", params={"path": "Work"})
        assert len(resp.json()) == 2

    def test_get(self, setup):
        client, _, _ = setup
        resp = client.get(f"/api/tasks/{REVIEW_ID}")
        assert resp.status_code == 200
        assert resp.json()["status"] == "todo"

    def test_get_unknown_is_404(self, setup):
        client, _, _ = setup
        resp = client.get("/api/tasks/000000000000")
        assert resp.status_code == 404
        assert "Task not found" in resp.json()["detail"]

    def test_add(self, setup):
        client, repo, _ = setup
        resp = client.post("/api/tasks", json={"title": "Call mom", "path": "Personal"})
        assert resp.status_code == 201
        assert resp.json()["path"] == "Personal"
        assert "- [x] Buy milk\n- [ ] Call mom\n  - status: todo\n" in repo.document.read()

    def test_add_under_missing_heading_is_400(self, setup):
        client, _, _ = setup
        resp = client.post("/api/tasks", json={"title": "x", "path": "Nope"})
        assert resp.status_code == 400

    def test_add_blank_title_is_400(self, setup):
        client, _, _ = setup
        resp = client.post("/api/tasks", json={"title": "  "})
        assert resp.status_code == 400

    def test_add_without_title_is_422(self, setup):
        client, _, _ = setup
        resp = client.post("/api/tasks", json={"path": "Work"})
        assert resp.status_code == 422

    def test_patch_status(self, setup):
        client, _, _ = setup
        resp = client.patch(f"/api/tasks/{REVIEW_ID}", json={"status": "done"})
        assert resp.status_code == 200
        assert resp.json()["is_checked"] is True

    def test_patch_path(self, setup):
        client, _, _ = setup
        resp = client.patch(f"/api/tasks/{REVIEW_ID}", json={"path": "Personal"})
        assert resp.status_code == 200
        assert resp.json()["id"] == generate_task_id(TaskPath.create(["Personal"]), "Review PR")

    def test_patch_unknown_is_404(self, setup):
        client, _, _ = setup
        resp = client.patch("/api/tasks/000000000000", json={"title": "x"})
        assert resp.status_code == 404

    def test_delete(self, setup):
        client, _, _ = setup
        resp = client.delete(f"/api/tasks/{REVIEW_ID}")
        assert resp.status_code == 200
        assert resp.json() == {"deleted": REVIEW_ID}
        assert client.get(f"/api/tasks/{REVIEW_ID}").status_code == 404


# ---------------------------------------------------------------------------
# Board and document
# ---------------------------------------------------------------------------

class TestBoardRoutes:
    def test_paths(self, setup):
        client, _, _ = setup
        data = client.get("/api/paths").json()
        assert [p["path"] for p in data["paths"]] == ["(root)", "Work", "Personal"]

    def test_config_defaults(self, setup):
        client, _, _ = setup
        data = client.get("/api/config").json()
        assert data["statuses"] == ["todo", "in-progress", "done"]
        assert data["sort_by"] == "markdown"

    def test_board(self, setup):
        client, _, _ = setup
        data = client.get("/api/board").json()
        columns = {c["status"]: [t["title"] for t in c["tasks"]] for c in data["columns"]}
        assert columns == {
            "todo": ["Review PR"],
            "in-progress": ["Write report"],
            "done": ["Buy milk"],
        }

    def test_save_and_revert(self, setup):
        client, _, path = setup
        client.delete(f"/api/tasks/{REVIEW_ID}")
        resp = client.post("/api/document/revert")
        assert resp.status_code == 200
        assert resp.json()["dirty"] is False

        client.delete(f"/api/tasks/{REVIEW_ID}")
        resp = client.post("/api/document/save")
        assert resp.status_code == 200
        assert "Review PR" not in path.read_text(encoding="utf-8")
