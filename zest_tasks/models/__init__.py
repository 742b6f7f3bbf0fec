from zest_tasks.models.user import User
from zest_tasks.models.workflow import Workflow
from zest_tasks.models.task import Task, Tag, TaskPriority, TaskStatus, task_tags

__all__ = [
    "User",
    "Workflow",
    "Task",
    "Tag",
    "TaskPriority",
    "TaskStatus",
    "task_tags",
]
