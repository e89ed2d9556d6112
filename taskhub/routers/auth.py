# taskhub/routers/auth.py
# PURPOSE: /auth/register, /auth/login, /auth/me, /auth/profile, /auth/profile-picture

import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import create_access_token, get_current_user, hash_password, verify_password
from ..config import settings
from ..db import get_db
from ..db_models import UserDB
from ..models import AuthResponse, LoginRequest, ProfileUpdate, UserCreate, UserPublic
from ..rate_limit import limiter
from .. import store_db

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("taskhub.auth")

ALLOWED_PICTURE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
ALLOWED_PICTURE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}


def _auth_response(user: UserDB) -> AuthResponse:
    return AuthResponse(
        access_token=create_access_token(user.id),
        user=UserPublic.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_REGISTER)
def register_user(
    request: Request, response: Response, payload: UserCreate, db: Session = Depends(get_db)
):
    # Check unique email first; the unique index catches races
    if store_db.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="User already exists")
    try:
        user = store_db.create_user(
            db,
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
        )
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already exists")
    logger.info("user registered user_id=%s", user.id)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: Session = Depends(get_db),
):
    user = store_db.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    logger.info("user logged in user_id=%s", user.id)
    return _auth_response(user)


@router.get("/me", response_model=UserPublic)
def me(user: UserDB = Depends(get_current_user)):
    # If token is valid, user is injected
    return user


@router.put("/profile", response_model=AuthResponse)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    """Change name/email and, with the current password, the password."""
    email = payload.email.strip().lower() if payload.email else None
    if email and email != user.email:
        taken = store_db.get_user_by_email(db, email)
        if taken is not None and taken.id != user.id:
            raise HTTPException(status_code=400, detail="Email already exists")

    password_hash = None
    if payload.new_password:
        if not payload.current_password:
            raise HTTPException(status_code=400, detail="Current password is required")
        if not verify_password(payload.current_password, user.password_hash):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        password_hash = hash_password(payload.new_password)

    user = store_db.update_user(db, user, name=payload.name, email=email, password_hash=password_hash)
    return _auth_response(user)


@router.post("/profile-picture", response_model=UserPublic)
async def upload_profile_picture(
    profile_picture: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    """Store an image under UPLOAD_DIR/profiles and point the user at it."""
    ext = Path(profile_picture.filename or "").suffix.lower()
    if ext not in ALLOWED_PICTURE_EXTENSIONS or profile_picture.content_type not in ALLOWED_PICTURE_TYPES:
        raise HTTPException(status_code=400, detail="Only image files (JPEG, PNG, GIF) are allowed")

    # One byte past the limit is enough to tell the file is too large
    content = await profile_picture.read(settings.MAX_UPLOAD_BYTES + 1)
    if not content:
        raise HTTPException(status_code=400, detail="Please select an image to upload")
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="Upload error: file too large")

    profiles_dir = Path(settings.UPLOAD_DIR) / "profiles"
    profiles_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{ext}"
    new_path = profiles_dir / filename
    new_path.write_bytes(content)

    user_id, old_picture = user.id, user.profile_picture
    try:
        user = store_db.update_user(db, user, profile_picture=f"/uploads/profiles/{filename}")
    except SQLAlchemyError:
        db.rollback()
        new_path.unlink(missing_ok=True)
        logger.warning("profile picture discarded user_id=%s file=%s", user_id, filename)
        raise

    # Remove the previous file, but only if it lives in our profiles dir
    if old_picture and old_picture.startswith("/uploads/profiles/"):
        old_path = profiles_dir / Path(old_picture).name
        old_path.unlink(missing_ok=True)

    logger.info("profile picture updated user_id=%s file=%s", user.id, filename)
    return user
