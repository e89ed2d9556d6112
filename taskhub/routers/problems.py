# taskhub/routers/problems.py
# PURPOSE: coding-practice problems. The owner manages a problem; an assignee
# can see it and move its status along.

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..api.deps import parse_difficulty, parse_problem_status
from ..auth import get_current_user
from ..db import get_db
from ..db_models import ProblemDB, UserDB
from ..models import Difficulty, Problem, ProblemCreate, ProblemPut, ProblemStatus, ProblemUpdate
from .. import store_db

router = APIRouter(prefix="/problems", tags=["problems"])


def _load_visible(db: Session, problem_id: int, user: UserDB) -> ProblemDB:
    row = store_db.get_problem(db, problem_id, user_id=user.id)
    if row is None:
        raise HTTPException(status_code=404, detail="Problem not found")
    return row


def _ensure_assignee(db: Session, assignee_id: Optional[int]) -> None:
    if assignee_id is not None and store_db.get_user(db, assignee_id) is None:
        raise HTTPException(status_code=404, detail="Assigned user not found")


@router.get("/", response_model=List[Problem])
async def list_problems(
    difficulty: Optional[Difficulty] = Depends(parse_difficulty),
    status: Optional[ProblemStatus] = Depends(parse_problem_status),
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return store_db.list_problems(db, user_id=user.id, difficulty=difficulty, status=status, q=q)


@router.post("/", response_model=Problem, status_code=status.HTTP_201_CREATED)
async def create_problem(
    item: ProblemCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    _ensure_assignee(db, item.assignee_id)
    row = store_db.create_problem(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/problems/{row.id}"
    return row


@router.get("/{problem_id}", response_model=Problem)
async def get_problem(
    problem_id: int,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return _load_visible(db, problem_id, user)


@router.put("/{problem_id}", response_model=Problem)
async def put_problem(
    problem_id: int,
    item: ProblemPut,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    row = _load_visible(db, problem_id, user)
    if row.owner_id != user.id:
        raise HTTPException(status_code=403, detail="Only the owner can edit this problem")
    _ensure_assignee(db, item.assignee_id)
    return store_db.replace_problem(db, row, item)


@router.patch("/{problem_id}", response_model=Problem)
async def patch_problem(
    problem_id: int,
    item: ProblemUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    row = _load_visible(db, problem_id, user)
    changes = {k: v for k, v in item.model_dump(exclude_unset=True).items() if v is not None}
    if row.owner_id != user.id and set(changes) - {"status"}:
        raise HTTPException(status_code=403, detail="Assignees can only change the status")
    _ensure_assignee(db, changes.get("assignee_id"))
    return store_db.update_problem(db, row, changes)


@router.delete("/{problem_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_problem(
    problem_id: int,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    row = _load_visible(db, problem_id, user)
    if row.owner_id != user.id:
        raise HTTPException(status_code=403, detail="Only the owner can delete this problem")
    store_db.delete_problem(db, row)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
