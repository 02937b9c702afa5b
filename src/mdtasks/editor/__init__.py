from .task_editor import (
    CreateTaskInfo,
    MissingTaskIdError,
    SerializerError,
    TargetHeadingNotFoundError,
    TaskEdit,
    TaskNotFoundError,
    apply_edit,
)

__all__ = [
    "CreateTaskInfo",
    "MissingTaskIdError",
    "SerializerError",
    "TargetHeadingNotFoundError",
    "TaskEdit",
    "TaskNotFoundError",
    "apply_edit",
]
