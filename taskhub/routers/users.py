# PURPOSE: user directory, public profiles and presence status.

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..db import get_db
from ..db_models import UserDB
from ..models import StatusUpdate, UserProfileUpdate, UserPublic
from .. import store_db

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/", response_model=List[UserPublic])
def list_users(db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    # Everyone except the caller (assignee/supervisor/recipient pickers)
    return store_db.list_users(db, exclude_id=user.id)


@router.put("/profile", response_model=UserPublic)
def update_profile(
    payload: UserProfileUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return store_db.update_user(db, user, name=payload.name, bio=payload.bio)


@router.patch("/status", response_model=UserPublic)
def update_status(
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    return store_db.set_presence(db, user.id, payload.status)


@router.get("/{user_id}", response_model=UserPublic)
def get_user(user_id: int, db: Session = Depends(get_db), user: UserDB = Depends(get_current_user)):
    row = store_db.get_user(db, user_id)
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return row
