# PURPOSE: who may do what to a task.
# Each check returns an error message when the action is forbidden, else None.

from typing import Optional

from .db_models import TaskDB


def is_participant(task: TaskDB, user_id: int) -> bool:
    """Owner, assignee and supervisor can see a task and comment on it."""
    return user_id in (task.owner_id, task.assignee_id, task.supervisor_id)


def check_update(task: TaskDB, user_id: int, changes: dict) -> Optional[str]:
    """Validate a PATCH against the assignee/supervisor rules."""
    is_assignee = task.assignee_id == user_id
    is_supervisor = task.supervisor_id == user_id

    if not (is_assignee or is_supervisor):
        return "Not authorized to update this task"

    new_status = changes.get("status")
    if new_status == "completed" and not is_assignee:
        return "Only the assignee can mark a task as completed"
    if new_status == "reviewed" and not is_supervisor:
        return "Only the supervisor can mark a task as reviewed"

    reassigning = any(
        field in changes and changes[field] != getattr(task, field)
        for field in ("assignee_id", "supervisor_id")
    )
    if reassigning and not is_supervisor:
        return "Only the supervisor can reassign a task"
    return None


def check_delete(task: TaskDB, user_id: int) -> Optional[str]:
    if task.supervisor_id != user_id:
        return "Only the supervisor can delete tasks"
    return None


def check_comment(task: TaskDB, user_id: int) -> Optional[str]:
    if not is_participant(task, user_id):
        return "Not authorized to comment on this task"
    return None
