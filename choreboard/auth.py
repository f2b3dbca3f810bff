import time
from typing import Optional

from fastapi import Depends, HTTPException, Request

from .config import Settings
from .models import User, UserUpsert
from .store import TaskBoardStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> TaskBoardStore:
    return request.app.state.store


def get_current_user(
    request: Request, store: TaskBoardStore = Depends(get_store)
) -> Optional[User]:
    user_id = request.session.get("user_id")
    expires_at = request.session.get("expires_at")
    if not user_id or not expires_at:
        return None
    if time.time() > expires_at:
        request.session.clear()
        return None
    return store.get_user(user_id)


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def login_basic(
    request: Request,
    store: TaskBoardStore,
    settings: Settings,
    email: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    """Sign in by email alone; the email doubles as the user id."""
    email = email.strip()
    user = store.upsert_user(
        UserUpsert(
            id=email,
            email=email,
            first_name=first_name or "",
            last_name=last_name or "",
            is_admin=settings.is_admin_email(email),
        )
    )
    request.session["user_id"] = user.id
    request.session["expires_at"] = int(time.time()) + settings.session_max_age
    return user


def logout_user(request: Request):
    request.session.clear()
