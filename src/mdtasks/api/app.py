"""FastAPI application factory for the task board REST API."""

from fastapi import APIRouter, FastAPI

from mdtasks.api.task_routes import register_task_routes


def create_app(repo) -> FastAPI:
    """Build and return a FastAPI app wired to the given TaskRepository."""
    app = FastAPI(title="mdtasks", docs_url="/api/docs", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_task_routes(api, repo)
    app.include_router(api)

    return app
