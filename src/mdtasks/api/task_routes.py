"""REST API routes for task operations."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from mdtasks.tools.task_tools import (
    handle_board,
    handle_board_config,
    handle_document_revert,
    handle_document_save,
    handle_task_add,
    handle_task_delete,
    handle_task_get,
    handle_task_list,
    handle_task_paths,
    handle_task_update,
)


class TaskAddBody(BaseModel):
    title: str
    path: Optional[str] = None
    status: Optional[str] = None


class TaskUpdateBody(BaseModel):
    title: Optional[str] = None
    status: Optional[str] = None
    path: Optional[str] = None


def _check(result):
    """Map a handler error dict to an HTTP error: unknown task 404, anything else 400."""
    if isinstance(result, dict) and "error" in result:
        status_code = 404 if result.get("not_found") else 400
        raise HTTPException(status_code=status_code, detail=result["error"])
    return result


def register_task_routes(app_router: APIRouter, repo) -> None:
    """Attach task REST routes that use the shared repository."""

    @app_router.get("/tasks")
    def list_tasks(
        status: Optional[str] = Query(None),
        path: Optional[str] = Query(None),
        include_nested: bool = Query(False),
    ):
        return _check(
            handle_task_list(repo, status=status, path=path, include_nested=include_nested)
        )

    @app_router.get("/tasks/{task_id}")
    def get_task(task_id: str):
        return _check(handle_task_get(repo, task_id=task_id))

    @app_router.post("/tasks", status_code=201)
    def add_task(body: TaskAddBody):
        return _check(handle_task_add(repo, **body.model_dump()))

    @app_router.patch("/tasks/{task_id}")
    def update_task(task_id: str, body: TaskUpdateBody):
        return _check(handle_task_update(repo, task_id=task_id, **body.model_dump()))

    @app_router.delete("/tasks/{task_id}")
    def delete_task(task_id: str):
        return _check(handle_task_delete(repo, task_id=task_id))

    @app_router.get("/paths")
    def list_paths():
        return _check(handle_task_paths(repo))

    @app_router.get("/config")
    def get_config():
        return _check(handle_board_config(repo))

    @app_router.get("/board")
    def get_board():
        return _check(handle_board(repo))

    @app_router.post("/document/save")
    def save_document():
        return _check(handle_document_save(repo))

    @app_router.post("/document/revert")
    def revert_document():
        return _check(handle_document_revert(repo))
