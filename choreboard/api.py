import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from .auth import (
    get_settings,
    get_store,
    login_basic,
    logout_user,
    require_admin,
    require_user,
)
from .config import Settings
from .dates import parse_day, today, week_dates, week_start
from .models import AppContent, AppContentUpsert, TaskAssignment, User, UserUpsert, empty_tasks
from .schemas import (
    AssignTaskRequest,
    BasicLoginRequest,
    ContentUpdateRequest,
    DayRequest,
    DishRequest,
    KitchenPreferenceRequest,
    ShoppingItemRequest,
    ShoppingListRequest,
    ShoppingRemoveRequest,
)
from .store import TaskBoardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def resolve_day(value: Optional[str]) -> str:
    return value or today().isoformat()


def path_day(value: str) -> date:
    try:
        return parse_day(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request data")


def empty_assignment(day: str) -> dict:
    return {
        "date": day,
        "tasks": empty_tasks(),
        "aloneInKitchen": None,
        "dishOfTheDay": None,
        "shoppingList": [],
    }


@router.get("/tasks/week")
@router.get("/tasks/week/{week_start_day}")
def week_assignments(
    week_start_day: Optional[str] = None, store: TaskBoardStore = Depends(get_store)
):
    day = path_day(week_start_day) if week_start_day else today()
    start = week_start(day)
    dates = week_dates(start)
    return {
        "weekStart": start.isoformat(),
        "dates": dates,
        "assignments": [
            record.model_dump(mode="json", by_alias=True) for record in store.get_range(dates)
        ],
    }


@router.get("/tasks")
@router.get("/tasks/{day}")
def day_assignment(day: Optional[str] = None, store: TaskBoardStore = Depends(get_store)):
    key = path_day(day).isoformat() if day else today().isoformat()
    record = store.get_by_date(key)
    if record is None:
        return empty_assignment(key)
    return record.model_dump(mode="json", by_alias=True)


@router.post("/tasks/assign")
def assign_task(body: AssignTaskRequest, store: TaskBoardStore = Depends(get_store)) -> TaskAssignment:
    return store.assign_task(resolve_day(body.date), body.task_type, body.resident)


@router.post("/tasks/kitchen-preference")
def kitchen_preference(
    body: KitchenPreferenceRequest, store: TaskBoardStore = Depends(get_store)
) -> TaskAssignment:
    return store.set_alone_in_kitchen(resolve_day(body.date), body.resident)


@router.post("/tasks/dish-of-the-day")
def dish_of_the_day(body: DishRequest, store: TaskBoardStore = Depends(get_store)) -> TaskAssignment:
    return store.set_dish_of_the_day(resolve_day(body.date), body.dish)


@router.post("/tasks/reset")
def reset_tasks(body: DayRequest, store: TaskBoardStore = Depends(get_store)) -> TaskAssignment:
    return store.reset_tasks(resolve_day(body.date))


@router.post("/shopping-list/add")
def add_shopping_item(
    body: ShoppingItemRequest, store: TaskBoardStore = Depends(get_store)
) -> TaskAssignment:
    return store.add_shopping_item(resolve_day(body.date), body.item)


@router.post("/shopping-list/remove")
def remove_shopping_item(
    body: ShoppingRemoveRequest, store: TaskBoardStore = Depends(get_store)
) -> TaskAssignment:
    return store.remove_shopping_item(resolve_day(body.date), body.index)


@router.post("/shopping-list/update")
def update_shopping_list(
    body: ShoppingListRequest, store: TaskBoardStore = Depends(get_store)
) -> TaskAssignment:
    return store.replace_shopping_list(resolve_day(body.date), body.items)


@router.get("/content")
def content_strings(store: TaskBoardStore = Depends(get_store)) -> dict[str, str]:
    return {content.key: content.value for content in store.list_content()}


@router.post("/auth/basic/login")
def basic_login(
    request: Request,
    body: BasicLoginRequest,
    store: TaskBoardStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not body.email.strip():
        raise HTTPException(status_code=400, detail="Email is required")
    user = login_basic(request, store, settings, body.email, body.first_name, body.last_name)
    logger.info("User %s logged in (admin=%s)", user.id, user.is_admin)
    return {
        "success": True,
        "user": {"email": user.email, "firstName": user.first_name, "lastName": user.last_name},
    }


@router.post("/auth/basic/logout")
def basic_logout(request: Request):
    logout_user(request)
    return {"success": True}


@router.get("/auth/user")
def current_user(user: User = Depends(require_user)) -> User:
    return user


@router.post("/admin/make-admin")
def make_admin(
    user: User = Depends(require_user),
    store: TaskBoardStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not user.email or not settings.is_admin_email(user.email):
        logger.warning("Refused admin grant for %s", user.id)
        raise HTTPException(status_code=403, detail="Not authorized to become admin")
    updated = store.upsert_user(UserUpsert(id=user.id, is_admin=True))
    logger.info("Granted admin access to %s", updated.id)
    return {"message": "Admin access granted", "user": updated.model_dump(mode="json", by_alias=True)}


@router.get("/admin/status")
def admin_status(user: User = Depends(require_admin)):
    return {"message": "Admin access confirmed", "isAdmin": True}


@router.get("/admin/content")
def list_content(
    user: User = Depends(require_admin), store: TaskBoardStore = Depends(get_store)
) -> list[AppContent]:
    return store.list_content()


@router.put("/admin/content/{key}")
def save_content(
    key: str,
    body: ContentUpdateRequest,
    user: User = Depends(require_admin),
    store: TaskBoardStore = Depends(get_store),
) -> AppContent:
    try:
        content = AppContentUpsert(key=key, **body.model_dump(exclude_unset=True))
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid request data")
    logger.info("%s updated content %s", user.id, key)
    return store.upsert_content(content)


@router.delete("/admin/content/{key}")
def delete_content(
    key: str,
    user: User = Depends(require_admin),
    store: TaskBoardStore = Depends(get_store),
):
    if not store.delete_content(key):
        raise HTTPException(status_code=404, detail="Content not found")
    logger.info("%s deleted content %s", user.id, key)
    return {"deleted": True}
