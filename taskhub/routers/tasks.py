# taskhub/routers/tasks.py
# PURPOSE: CRUD + comments for tasks. The same routes serve daily tasks
# (see daily_tasks.py); each router is bound to one task kind.

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..api.deps import parse_limit, parse_offset, parse_priority, parse_status
from ..auth import get_current_user
from ..db import get_db
from ..db_models import TaskDB, UserDB
from ..models import CommentCreate, Priority, Status, Task, TaskCreate, TaskUpdate
from .. import permissions, store_db

logger = logging.getLogger("taskhub.tasks")

# Fields that may be cleared with an explicit null
_NULLABLE_FIELDS = {"due_date"}


def _ensure_user_exists(db: Session, user_id: int, label: str) -> None:
    if store_db.get_user(db, user_id) is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")


def make_task_router(kind: str, prefix: str, tag: str) -> APIRouter:
    """Build the task routes for one kind ("task" or "daily")."""
    router = APIRouter(prefix=prefix, tags=[tag])

    def _load(db: Session, task_id: int) -> TaskDB:
        row = store_db.get_task(db, kind, task_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Task not found")
        return row

    @router.get("/", response_model=List[Task])
    async def list_tasks(
        response: Response,
        status: Optional[Status] = Depends(parse_status),
        priority: Optional[Priority] = Depends(parse_priority),
        limit: int = Depends(parse_limit),
        offset: int = Depends(parse_offset),
        db: Session = Depends(get_db),
        user: UserDB = Depends(get_current_user),
    ):
        total = store_db.count_tasks(db, kind, user_id=user.id, status=status, priority=priority)
        rows = store_db.list_tasks(
            db, kind, user_id=user.id,
            status=status, priority=priority,
            limit=limit, offset=offset,
        )
        response.headers["X-Total-Count"] = str(total)
        return [Task.model_validate(row) for row in rows]

    @router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
    async def create_task(
        item: TaskCreate,
        response: Response,
        db: Session = Depends(get_db),
        user: UserDB = Depends(get_current_user),
    ):
        _ensure_user_exists(db, item.assignee_id, "Assigned user")
        _ensure_user_exists(db, item.supervisor_id, "Supervisor")
        row = store_db.create_task(db, kind, item, owner_id=user.id)
        logger.info(
            "task created kind=%s task_id=%s owner_id=%s assignee_id=%s supervisor_id=%s",
            kind, row.id, user.id, row.assignee_id, row.supervisor_id,
        )
        response.headers["Location"] = f"/api{prefix}/{row.id}"
        return Task.model_validate(row)

    @router.get("/{task_id}", response_model=Task)
    async def get_task(
        task_id: int,
        db: Session = Depends(get_db),
        user: UserDB = Depends(get_current_user),
    ):
        row = _load(db, task_id)
        if not permissions.is_participant(row, user.id):
            raise HTTPException(status_code=403, detail="Not authorized to view this task")
        return Task.model_validate(row)

    @router.patch("/{task_id}", response_model=Task)
    async def patch_task(
        task_id: int,
        item: TaskUpdate,
        db: Session = Depends(get_db),
        user: UserDB = Depends(get_current_user),
    ):
        row = _load(db, task_id)
        changes = {
            field: value
            for field, value in item.model_dump(exclude_unset=True).items()
            if value is not None or field in _NULLABLE_FIELDS
        }
        denied = permissions.check_update(row, user.id, changes)
        if denied:
            logger.info("task update denied task_id=%s user_id=%s reason=%s", task_id, user.id, denied)
            raise HTTPException(status_code=403, detail=denied)
        if "assignee_id" in changes:
            _ensure_user_exists(db, changes["assignee_id"], "Assigned user")
        if "supervisor_id" in changes:
            _ensure_user_exists(db, changes["supervisor_id"], "Supervisor")

        updated = store_db.update_task(db, row, changes)
        if "status" in changes:
            logger.info("task status task_id=%s status=%s by user_id=%s", task_id, changes["status"], user.id)
        return Task.model_validate(updated)

    @router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_task(
        task_id: int,
        db: Session = Depends(get_db),
        user: UserDB = Depends(get_current_user),
    ):
        row = _load(db, task_id)
        denied = permissions.check_delete(row, user.id)
        if denied:
            raise HTTPException(status_code=403, detail=denied)
        store_db.delete_task(db, row)
        logger.info("task deleted kind=%s task_id=%s by user_id=%s", kind, task_id, user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post("/{task_id}/comments", response_model=Task, status_code=status.HTTP_201_CREATED)
    async def add_comment(
        task_id: int,
        item: CommentCreate,
        db: Session = Depends(get_db),
        user: UserDB = Depends(get_current_user),
    ):
        row = _load(db, task_id)
        denied = permissions.check_comment(row, user.id)
        if denied:
            raise HTTPException(status_code=403, detail=denied)
        updated = store_db.add_comment(db, row, author_id=user.id, content=item.content)
        return Task.model_validate(updated)

    return router


router = make_task_router("task", "/tasks", "tasks")
