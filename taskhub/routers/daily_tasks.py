# PURPOSE: /daily-tasks, same rules as /tasks; due date defaults to end of today.

from .tasks import make_task_router

router = make_task_router("daily", "/daily-tasks", "daily-tasks")
