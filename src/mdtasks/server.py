"""
mdtasks MCP server entry point.

Startup sequence:
1. Read MDTASKS_FILE and board fallback settings from environment
2. Load the document into memory
3. Start DocumentWatcher daemon thread
4. Register all MCP tools
5. Start REST API server in background thread (if API_ENABLED)
6. Run MCP server (stdio transport)

Environment:
    MDTASKS_FILE   Markdown document holding the tasks (required)
    AUTO_SAVE      write every edit through to disk (default true)
    API_ENABLED    serve the REST API (default true)
    API_PORT       REST API port (default 9400)
    POLL_INTERVAL  seconds between checks for external changes
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from mdtasks.config import load_fallback_config
from mdtasks.document import MarkdownDocument
from mdtasks.repository import TaskRepository
from mdtasks.tools import register_task_tools
from mdtasks.watcher import DocumentWatcher

log = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


def _start_api_server(repo: TaskRepository, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from mdtasks.api.app import create_app

    app = create_app(repo)
    log.info("Starting REST API on port %d", port)
    try:
        uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning")
    except Exception:
        log.exception("REST API server stopped")


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    file_env = os.environ.get("MDTASKS_FILE", "")
    if not file_env:
        log.error("MDTASKS_FILE environment variable is not set")
        sys.exit(1)

    doc_path = Path(file_env)
    if doc_path.exists() and not doc_path.is_file():
        log.error("MDTASKS_FILE is not a file: %s", doc_path)
        sys.exit(1)

    auto_save = _env_flag("AUTO_SAVE", "true")
    fallback = load_fallback_config()
    log.info("Document: %s (auto-save %s)", doc_path, "on" if auto_save else "off")

    document = MarkdownDocument(doc_path, auto_save=auto_save)
    repo = TaskRepository(document, fallback)
    log.info("Loaded %d tasks", len(repo.find_all()))

    # Pick up edits made to the file by other programs
    watcher = DocumentWatcher(document)
    watcher.start()

    # Start REST API in a daemon thread
    if _env_flag("API_ENABLED", "true"):
        api_port = int(os.environ.get("API_PORT", "9400"))
        api_thread = threading.Thread(
            target=_start_api_server, args=(repo, api_port), daemon=True
        )
        api_thread.start()

    # Create MCP server and register tools
    mcp = FastMCP("mdtasks")
    register_task_tools(mcp, repo)

    log.info("Starting mdtasks server")
    try:
        mcp.run(transport="stdio")
    finally:
        watcher.stop()
        if document.dirty:
            log.warning("Exiting with unsaved edits to %s", doc_path)


if __name__ == "__main__":
    main()
