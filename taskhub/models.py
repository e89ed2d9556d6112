# PURPOSE: request/response schemas (Pydantic v2) for the JSON API.

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# bcrypt only looks at the first 72 bytes and refuses longer input
PASSWORD_MAX_BYTES = 72


def _check_password_length(value: str | None) -> str | None:
    if value is not None and len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    return value


TaskKind = Literal["task", "daily"]
Status = Literal["todo", "in_progress", "completed", "reviewed"]
Priority = Literal["low", "medium", "high"]
Presence = Literal["online", "offline", "away"]
Difficulty = Literal["easy", "medium", "hard"]
ProblemStatus = Literal["todo", "in_progress", "completed"]


# --- User / Auth schemas ---


class UserBrief(BaseModel):
    """Populated user reference embedded in tasks, comments and messages."""

    id: int
    name: str
    email: str
    profile_picture: str | None = None
    model_config = ConfigDict(from_attributes=True)


class UserPublic(UserBrief):
    bio: str | None = None
    status: Presence = "offline"
    last_active: datetime | None = None
    created_at: datetime | None = None


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    # Raw password only in create request
    password: str = Field(min_length=1)
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "examples": [{"name": "Ada", "email": "ada@example.com", "password": "secret"}]
        },
    )

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_length(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    user: UserPublic
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "access_token": "<jwt>",
                    "token_type": "bearer",
                    "user": {"id": 1, "name": "Ada", "email": "ada@example.com"},
                }
            ]
        }
    )


class ProfileUpdate(BaseModel):
    """Account-level edit: name, email and password change."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: EmailStr | None = None
    current_password: str | None = None
    new_password: str | None = Field(default=None, min_length=1)
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @field_validator("new_password")
    @classmethod
    def new_password_fits_bcrypt(cls, value: str | None) -> str | None:
        return _check_password_length(value)


class UserProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    bio: str | None = Field(default=None, max_length=1000)
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class StatusUpdate(BaseModel):
    status: Presence


# --- Task schemas ---


class Comment(BaseModel):
    id: int
    content: str
    author: UserBrief
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    model_config = ConfigDict(str_strip_whitespace=True)


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    assignee_id: int = Field(gt=0)
    supervisor_id: int = Field(gt=0)
    priority: Priority = "medium"
    due_date: datetime | None = None
    progress: int = Field(default=0, ge=0, le=100)
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "title": "Review pull requests",
                    "description": "Go through the open PRs",
                    "assignee_id": 2,
                    "supervisor_id": 1,
                    "priority": "high",
                }
            ]
        },
    )


class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1)
    status: Status | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    assignee_id: int | None = Field(default=None, gt=0)
    supervisor_id: int | None = Field(default=None, gt=0)
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"status": "in_progress"},
                {"status": "completed"},
                {"priority": "low", "progress": 50},
            ]
        },
    )


class Task(BaseModel):
    id: int
    kind: TaskKind
    title: str
    description: str
    priority: Priority
    status: Status
    progress: int
    due_date: datetime | None
    completed_at: datetime | None
    assignee: UserBrief
    supervisor: UserBrief
    owner_id: int
    comments: list[Comment] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)  # ORM -> schema


# --- Message schemas ---


class MessageCreate(BaseModel):
    recipient_id: int = Field(gt=0)
    content: str = Field(min_length=1, max_length=5000)
    model_config = ConfigDict(str_strip_whitespace=True)


class Message(BaseModel):
    id: int
    sender: UserBrief
    recipient: UserBrief
    content: str
    read: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class Conversation(BaseModel):
    """All messages exchanged with one other user, newest first."""

    user: UserBrief
    messages: list[Message]
    unread_count: int = 0


class ConversationThread(BaseModel):
    user: UserPublic
    messages: list[Message]


class ReadReceipt(BaseModel):
    message: str = "Messages marked as read"
    modified_count: int


# --- Coding problem schemas ---


class ProblemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    difficulty: Difficulty = "medium"
    category: str = "algorithms"
    platform: str | None = None
    link: str | None = None
    solution: str | None = None
    test_cases: str | None = None
    status: ProblemStatus = "todo"
    assignee_id: int | None = Field(default=None, gt=0)
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "title": "Two Sum",
                    "difficulty": "easy",
                    "category": "arrays",
                    "platform": "leetcode",
                    "link": "https://leetcode.com/problems/two-sum/",
                }
            ]
        },
    )


class ProblemPut(ProblemCreate):
    """Full replace; same shape as create."""


class ProblemUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    difficulty: Difficulty | None = None
    category: str | None = None
    platform: str | None = None
    link: str | None = None
    solution: str | None = None
    test_cases: str | None = None
    status: ProblemStatus | None = None
    assignee_id: int | None = Field(default=None, gt=0)
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class Problem(BaseModel):
    id: int
    title: str
    description: str | None
    difficulty: Difficulty
    category: str
    platform: str | None
    link: str | None
    solution: str | None
    test_cases: str | None
    status: ProblemStatus
    assignee_id: int | None
    owner_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
