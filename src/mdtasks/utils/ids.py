"""
Task ID generation utilities.
"""

import hashlib

from mdtasks.models.path import TaskPath

TASK_ID_LENGTH = 12


def generate_task_id(path: TaskPath, title: str, length: int = TASK_ID_LENGTH) -> str:
    """
    Derive a deterministic hex task ID from a task's path and title.

    The same (path, title) pair always yields the same ID, so re-parsing an
    unchanged document reproduces every ID. Hashing keeps the ID independent
    of any "::" a title may itself contain.

    Args:
        path: Heading path enclosing the task
        title: Raw task title
        length: Length of the ID in hex characters (default 12)

    Returns:
        Lowercase hex string, e.g. "3f9a1c0be27d"
    """
    digest = hashlib.sha256(f"{path}::{title}".encode("utf-8")).hexdigest()
    return digest[:length]
