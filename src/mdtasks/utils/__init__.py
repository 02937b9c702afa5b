from .ids import TASK_ID_LENGTH, generate_task_id

__all__ = ["TASK_ID_LENGTH", "generate_task_id"]
