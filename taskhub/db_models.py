# PURPOSE: define how users, tasks, comments, messages and problems look in the database.

from datetime import UTC, datetime, time

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def now_utc():
    """Return timezone-aware UTC datetime (stored in DB)."""
    return datetime.now(UTC)


def end_of_today():
    """Default due date for daily tasks: 23:59:59.999 of the current UTC day."""
    return datetime.combine(now_utc().date(), time(23, 59, 59, 999000), tzinfo=UTC)


class UserDB(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    profile_picture: Mapped[str | None] = mapped_column(String, nullable=True)
    google_id: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, default="offline")  # online | offline | away
    last_active: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc)


class TaskDB(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String, nullable=False, default="task")  # task | daily
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(String, default="medium")  # low | medium | high
    status = Column(String, default="todo")  # todo | in_progress | completed | reviewed
    progress = Column(Integer, default=0)  # 0..100, daily tasks
    due_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    supervisor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)  # creator
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc)

    assignee = relationship("UserDB", foreign_keys=[assignee_id])
    supervisor = relationship("UserDB", foreign_keys=[supervisor_id])
    owner = relationship("UserDB", foreign_keys=[owner_id])
    # comments live and die with their task
    comments = relationship(
        "CommentDB",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="CommentDB.id",
    )


class CommentDB(Base):
    __tablename__ = "task_comments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=now_utc)

    task = relationship("TaskDB", back_populates="comments")
    author = relationship("UserDB")


class MessageDB(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=now_utc)

    sender = relationship("UserDB", foreign_keys=[sender_id])
    recipient = relationship("UserDB", foreign_keys=[recipient_id])


class ProblemDB(Base):
    __tablename__ = "coding_problems"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    difficulty = Column(String, default="medium")  # easy | medium | hard
    category = Column(String, default="algorithms")
    platform = Column(String, nullable=True)
    link = Column(String, nullable=True)
    solution = Column(Text, nullable=True)
    test_cases = Column(Text, nullable=True)
    status = Column(String, default="todo")  # todo | in_progress | completed
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc)


# Helpful indexes for filtering/sorting
Index("ix_tasks_kind_status", TaskDB.kind, TaskDB.status)
Index("ix_tasks_assignee_id", TaskDB.assignee_id)
Index("ix_tasks_supervisor_id", TaskDB.supervisor_id)
Index("ix_messages_pair", MessageDB.sender_id, MessageDB.recipient_id)
Index("ix_coding_problems_owner_id", ProblemDB.owner_id)
