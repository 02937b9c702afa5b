from .path import TaskPath
from .status import InvalidStatusError, Status
from .task import (
    FrontmatterConfig,
    ParsedHeading,
    ParsedTask,
    ParseResult,
    Task,
    TaskMetadata,
)

__all__ = [
    "TaskPath",
    "Status",
    "InvalidStatusError",
    "FrontmatterConfig",
    "ParsedHeading",
    "ParsedTask",
    "ParseResult",
    "Task",
    "TaskMetadata",
]
