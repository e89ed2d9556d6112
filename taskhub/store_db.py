# PURPOSE: all database reads and writes, one small function per operation.
# Routers call these; authorization decisions stay in the routers/permissions.

from __future__ import annotations

from typing import Optional, List, Any

from sqlalchemy import func, or_, and_
from sqlalchemy.orm import Session, joinedload, selectinload

from .db_models import CommentDB, MessageDB, ProblemDB, TaskDB, UserDB, end_of_today, now_utc


# --- Users -----------------------------------------------------------------


def get_user(db: Session, user_id: int) -> Optional[UserDB]:
    return db.get(UserDB, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[UserDB]:
    return db.query(UserDB).filter(UserDB.email == email.strip().lower()).one_or_none()


def create_user(db: Session, *, name: str, email: str, password_hash: str) -> UserDB:
    row = UserDB(
        name=name.strip(),
        email=email.strip().lower(),
        password_hash=password_hash,
        status="offline",
        created_at=now_utc(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_users(db: Session, *, exclude_id: Optional[int] = None) -> List[UserDB]:
    query = db.query(UserDB)
    if exclude_id is not None:
        query = query.filter(UserDB.id != exclude_id)
    return query.order_by(UserDB.name.asc(), UserDB.id.asc()).all()


def update_user(db: Session, row: UserDB, **fields: Any) -> UserDB:
    """Set the given (non-None) fields on a user and commit."""
    for field, value in fields.items():
        if value is not None:
            setattr(row, field, value)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def set_presence(db: Session, user_id: int, status: str) -> Optional[UserDB]:
    """Record online/offline/away plus the last-active timestamp."""
    row = db.get(UserDB, user_id)
    if row is None:
        return None
    row.status = status
    row.last_active = now_utc()
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# --- Tasks -----------------------------------------------------------------


def _task_query(db: Session, kind: str):
    """Base query for one task kind with user references populated."""
    return (
        db.query(TaskDB)
        .options(
            joinedload(TaskDB.assignee),
            joinedload(TaskDB.supervisor),
            selectinload(TaskDB.comments).joinedload(CommentDB.author),
        )
        .filter(TaskDB.kind == kind)
    )


def _apply_task_filters(
    query,
    *,
    user_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
):
    """Only tasks the user takes part in, plus optional filters."""
    query = query.filter(
        or_(
            TaskDB.owner_id == user_id,
            TaskDB.assignee_id == user_id,
            TaskDB.supervisor_id == user_id,
        )
    )
    if status:
        query = query.filter(TaskDB.status == status)
    if priority:
        query = query.filter(TaskDB.priority == priority)
    return query


def list_tasks(
    db: Session,
    kind: str,
    *,
    user_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[TaskDB]:
    """Newest first, with a stable secondary ordering on id."""
    query = _apply_task_filters(_task_query(db, kind), user_id=user_id, status=status, priority=priority)
    query = query.order_by(TaskDB.created_at.desc(), TaskDB.id.desc())
    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)
    return query.all()


def count_tasks(
    db: Session,
    kind: str,
    *,
    user_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
) -> int:
    query = db.query(func.count(TaskDB.id)).filter(TaskDB.kind == kind)
    query = _apply_task_filters(query, user_id=user_id, status=status, priority=priority)
    return int(query.scalar() or 0)


def get_task(db: Session, kind: str, task_id: int) -> Optional[TaskDB]:
    return _task_query(db, kind).filter(TaskDB.id == task_id).one_or_none()


def create_task(db: Session, kind: str, data, *, owner_id: int) -> TaskDB:
    """Create a task or daily task; daily tasks default to due end of today."""
    now = now_utc()
    due_date = data.due_date
    if due_date is None and kind == "daily":
        due_date = end_of_today()
    row = TaskDB(
        kind=kind,
        title=data.title,
        description=data.description,
        priority=data.priority,
        status="todo",
        progress=data.progress,
        due_date=due_date,
        assignee_id=data.assignee_id,
        supervisor_id=data.supervisor_id,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.commit()
    return get_task(db, kind, row.id)


def update_task(db: Session, row: TaskDB, changes: dict) -> TaskDB:
    """Apply already-authorized changes; keeps completed_at in step with status."""
    kind, task_id = row.kind, row.id
    for field, value in changes.items():
        setattr(row, field, value)
    if "status" in changes:
        if changes["status"] == "completed":
            row.completed_at = now_utc()
        elif changes["status"] in ("todo", "in_progress"):
            row.completed_at = None
    row.updated_at = now_utc()
    db.add(row)
    db.commit()
    db.expire_all()
    return get_task(db, kind, task_id)


def delete_task(db: Session, row: TaskDB) -> None:
    db.delete(row)
    db.commit()


def add_comment(db: Session, row: TaskDB, *, author_id: int, content: str) -> TaskDB:
    """Append a comment and return the refreshed task."""
    kind, task_id = row.kind, row.id
    row.comments.append(CommentDB(content=content, author_id=author_id, created_at=now_utc()))
    row.updated_at = now_utc()
    db.add(row)
    db.commit()
    db.expire_all()
    return get_task(db, kind, task_id)


# --- Messages --------------------------------------------------------------


def _message_query(db: Session):
    return db.query(MessageDB).options(
        joinedload(MessageDB.sender),
        joinedload(MessageDB.recipient),
    )


def create_message(db: Session, *, sender_id: int, recipient_id: int, content: str) -> MessageDB:
    row = MessageDB(
        sender_id=sender_id,
        recipient_id=recipient_id,
        content=content,
        read=False,
        created_at=now_utc(),
    )
    db.add(row)
    db.commit()
    return _message_query(db).filter(MessageDB.id == row.id).one()


def list_messages_for(db: Session, user_id: int) -> List[MessageDB]:
    """Every message the user sent or received, newest first."""
    return (
        _message_query(db)
        .filter(or_(MessageDB.sender_id == user_id, MessageDB.recipient_id == user_id))
        .order_by(MessageDB.created_at.desc(), MessageDB.id.desc())
        .all()
    )


def conversation(db: Session, user_id: int, other_id: int) -> List[MessageDB]:
    """Messages between two users, oldest first."""
    return (
        _message_query(db)
        .filter(
            or_(
                and_(MessageDB.sender_id == user_id, MessageDB.recipient_id == other_id),
                and_(MessageDB.sender_id == other_id, MessageDB.recipient_id == user_id),
            )
        )
        .order_by(MessageDB.created_at.asc(), MessageDB.id.asc())
        .all()
    )


def mark_read(db: Session, *, sender_id: int, recipient_id: int) -> int:
    """Mark unread messages from sender to recipient as read; returns how many changed."""
    updated = (
        db.query(MessageDB)
        .filter(
            MessageDB.sender_id == sender_id,
            MessageDB.recipient_id == recipient_id,
            MessageDB.read.is_(False),
        )
        .update({MessageDB.read: True}, synchronize_session=False)
    )
    db.commit()
    return int(updated or 0)


# --- Coding problems -------------------------------------------------------


def list_problems(
    db: Session,
    *,
    user_id: int,
    difficulty: Optional[str] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
) -> List[ProblemDB]:
    query = db.query(ProblemDB).filter(
        or_(ProblemDB.owner_id == user_id, ProblemDB.assignee_id == user_id)
    )
    if difficulty:
        query = query.filter(ProblemDB.difficulty == difficulty)
    if status:
        query = query.filter(ProblemDB.status == status)
    if q:
        query = query.filter(ProblemDB.title.ilike(f"%{q}%"))
    return query.order_by(ProblemDB.created_at.desc(), ProblemDB.id.desc()).all()


def get_problem(db: Session, problem_id: int, *, user_id: Optional[int] = None) -> Optional[ProblemDB]:
    """Fetch a problem; if user_id is given, only when owned by or assigned to them."""
    query = db.query(ProblemDB).filter(ProblemDB.id == problem_id)
    if user_id is not None:
        query = query.filter(or_(ProblemDB.owner_id == user_id, ProblemDB.assignee_id == user_id))
    return query.one_or_none()


_PROBLEM_FIELDS = (
    "title",
    "description",
    "difficulty",
    "category",
    "platform",
    "link",
    "solution",
    "test_cases",
    "status",
    "assignee_id",
)


def create_problem(db: Session, data, *, owner_id: int) -> ProblemDB:
    now = now_utc()
    row = ProblemDB(owner_id=owner_id, created_at=now, updated_at=now)
    for field in _PROBLEM_FIELDS:
        setattr(row, field, getattr(data, field))
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def replace_problem(db: Session, row: ProblemDB, data) -> ProblemDB:
    """Full replace (PUT)."""
    for field in _PROBLEM_FIELDS:
        setattr(row, field, getattr(data, field))
    row.updated_at = now_utc()
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_problem(db: Session, row: ProblemDB, changes: dict) -> ProblemDB:
    """Partial update (PATCH) with already-filtered changes."""
    for field, value in changes.items():
        setattr(row, field, value)
    row.updated_at = now_utc()
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def delete_problem(db: Session, row: ProblemDB) -> None:
    db.delete(row)
    db.commit()
