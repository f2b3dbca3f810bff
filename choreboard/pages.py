import logging
import os
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .auth import get_current_user, get_settings, get_store, login_basic, logout_user, require_admin
from .config import Settings
from .dates import next_week_start, parse_day, previous_week_start, today, week_dates, week_start
from .models import TASK_LABELS, AppContentUpsert, TaskAssignment, TaskKind, User
from .store import DEFAULT_CONTENT, TaskBoardStore

logger = logging.getLogger(__name__)

templates_dir = os.path.join(os.path.dirname(__file__), "templates")
templates = Jinja2Templates(directory=templates_dir)

router = APIRouter()

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def content_strings(store: TaskBoardStore) -> dict[str, str]:
    strings = {key: value for key, (value, _) in DEFAULT_CONTENT.items()}
    strings.update({content.key: content.value for content in store.list_content()})
    return strings


def flash(request: Request, message: str, category: str = "info"):
    messages = request.session.get("flash", [])
    messages.append({"message": message, "category": category})
    request.session["flash"] = messages


def pop_flash(request: Request):
    return request.session.pop("flash", [])


def build_context(
    request: Request,
    store: TaskBoardStore,
    settings: Settings,
    user: Optional[User],
    extra: Optional[dict] = None,
) -> dict:
    context = {
        "user": user,
        "strings": content_strings(store),
        "flash_messages": pop_flash(request),
        "residents": settings.residents,
        "task_kinds": list(TaskKind),
        "task_labels": TASK_LABELS,
    }
    if extra:
        context.update(extra)
    return context


def form_day(value: Optional[str]) -> str:
    if not value:
        return today().isoformat()
    try:
        return parse_day(value).isoformat()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request data")


def back_to(return_to: Optional[str], day: str) -> RedirectResponse:
    # Only local paths; anything else goes back to the day page.
    if return_to and return_to.startswith("/") and not return_to.startswith("//"):
        return RedirectResponse(return_to, status_code=303)
    return RedirectResponse(f"/day/{day}", status_code=303)


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


@router.get("/", response_class=HTMLResponse)
@router.get("/day/{day}", response_class=HTMLResponse)
def day_page(
    request: Request,
    day: Optional[str] = None,
    store: TaskBoardStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    user: Optional[User] = Depends(get_current_user),
):
    current = parse_day(form_day(day))
    key = current.isoformat()
    assignment = store.get_by_date(key) or TaskAssignment.empty(key)
    return templates.TemplateResponse(
        request,
        "day.html",
        build_context(
            request,
            store,
            settings,
            user,
            {
                "day": current,
                "weekday": WEEKDAY_NAMES[current.weekday()],
                "assignment": assignment,
                "previous_day": (current - timedelta(days=1)).isoformat(),
                "next_day": (current + timedelta(days=1)).isoformat(),
                "week_start": week_start(current).isoformat(),
            },
        ),
    )


@router.get("/week", response_class=HTMLResponse)
@router.get("/week/{day}", response_class=HTMLResponse)
def week_page(
    request: Request,
    day: Optional[str] = None,
    store: TaskBoardStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    user: Optional[User] = Depends(get_current_user),
):
    current = parse_day(form_day(day))
    start = week_start(current)
    assignments = store.get_range(week_dates(start))
    rows = [
        {"weekday": name, "day": date.fromisoformat(record.date), "assignment": record}
        for name, record in zip(WEEKDAY_NAMES, assignments)
    ]
    return templates.TemplateResponse(
        request,
        "week.html",
        build_context(
            request,
            store,
            settings,
            user,
            {
                "week_start": start,
                "rows": rows,
                "previous_week": previous_week_start(start).isoformat(),
                "next_week": next_week_start(start).isoformat(),
            },
        ),
    )


@router.post("/tasks/assign")
async def assign_task_form(
    request: Request,
    task_type: TaskKind = Form(...),
    date: Optional[str] = Form(None),
    resident: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None),
    store: TaskBoardStore = Depends(get_store),
):
    day = form_day(date)
    store.assign_task(day, task_type, blank_to_none(resident))
    flash(request, f"{TASK_LABELS[task_type]} updated")
    return back_to(return_to, day)


@router.post("/tasks/kitchen")
async def kitchen_form(
    request: Request,
    date: Optional[str] = Form(None),
    resident: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None),
    store: TaskBoardStore = Depends(get_store),
):
    day = form_day(date)
    store.set_alone_in_kitchen(day, blank_to_none(resident))
    flash(request, "Kitchen preference saved")
    return back_to(return_to, day)


@router.post("/tasks/dish")
async def dish_form(
    request: Request,
    date: Optional[str] = Form(None),
    dish: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None),
    store: TaskBoardStore = Depends(get_store),
):
    day = form_day(date)
    store.set_dish_of_the_day(day, blank_to_none(dish))
    flash(request, "Dish of the day saved")
    return back_to(return_to, day)


@router.post("/tasks/reset")
async def reset_form(
    request: Request,
    date: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None),
    store: TaskBoardStore = Depends(get_store),
):
    day = form_day(date)
    store.reset_tasks(day)
    flash(request, "All tasks cleared")
    return back_to(return_to, day)


@router.post("/shopping/add")
async def shopping_add_form(
    request: Request,
    item: str = Form(""),
    date: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None),
    store: TaskBoardStore = Depends(get_store),
):
    day = form_day(date)
    if not item.strip():
        flash(request, "Shopping item is empty", "error")
    else:
        store.add_shopping_item(day, item)
    return back_to(return_to, day)


@router.post("/shopping/remove")
async def shopping_remove_form(
    request: Request,
    index: int = Form(...),
    date: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None),
    store: TaskBoardStore = Depends(get_store),
):
    day = form_day(date)
    store.remove_shopping_item(day, index)
    return back_to(return_to, day)


@router.get("/login", response_class=HTMLResponse)
def login_form(
    request: Request,
    store: TaskBoardStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    user: Optional[User] = Depends(get_current_user),
):
    return templates.TemplateResponse(
        request, "login.html", build_context(request, store, settings, user)
    )


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    store: TaskBoardStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not email.strip():
        flash(request, "Email is required", "error")
        return RedirectResponse("/login", status_code=303)
    user = login_basic(request, store, settings, email, first_name, last_name)
    logger.info("User %s logged in (admin=%s)", user.id, user.is_admin)
    flash(request, f"Logged in as {user.display_name}")
    return RedirectResponse("/admin" if user.is_admin else "/", status_code=303)


@router.post("/logout")
def logout(request: Request):
    logout_user(request)
    flash(request, "Logged out")
    return RedirectResponse("/", status_code=303)


@router.get("/admin", response_class=HTMLResponse)
def admin_page(
    request: Request,
    user: User = Depends(require_admin),
    store: TaskBoardStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return templates.TemplateResponse(
        request,
        "admin.html",
        build_context(request, store, settings, user, {"contents": store.list_content()}),
    )


@router.post("/admin/content")
async def save_content_form(
    request: Request,
    key: str = Form(""),
    value: str = Form(""),
    description: Optional[str] = Form(None),
    user: User = Depends(require_admin),
    store: TaskBoardStore = Depends(get_store),
):
    key = key.strip()
    if not key or len(key) > 100 or len(description or "") > 500:
        flash(request, "Key must be 1-100 characters and description at most 500", "error")
        return RedirectResponse("/admin", status_code=303)
    store.upsert_content(
        AppContentUpsert(key=key, value=value, description=blank_to_none(description))
    )
    logger.info("%s updated content %s", user.id, key)
    flash(request, f"Saved {key}")
    return RedirectResponse("/admin", status_code=303)


@router.post("/admin/content/{key}/delete")
async def delete_content_form(
    request: Request,
    key: str,
    user: User = Depends(require_admin),
    store: TaskBoardStore = Depends(get_store),
):
    if store.delete_content(key):
        logger.info("%s deleted content %s", user.id, key)
        flash(request, f"Deleted {key}")
    else:
        flash(request, f"{key} does not exist", "error")
    return RedirectResponse("/admin", status_code=303)
