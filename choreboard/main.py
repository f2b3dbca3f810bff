import logging
import os
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from . import api, pages
from .config import Settings
from .dates import today, week_dates, week_start
from .logging_config import setup_logging
from .store import TaskBoardStore, build_store

logger = logging.getLogger(__name__)

static_dir = os.path.join(os.path.dirname(__file__), "static")


def prepare_store(store: TaskBoardStore) -> None:
    """Seed default content and the current week's empty records."""
    store.seed_default_content()
    store.ensure_dates(week_dates(week_start(today())))


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def create_app(
    settings: Optional[Settings] = None, store: Optional[TaskBoardStore] = None
) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        prepare_store(app.state.store)
        logger.info("Chore board ready (%s backend)", settings.storage_backend)
        yield

    app = FastAPI(title="Kitchen duty board", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    @app.middleware("http")
    async def catch_unhandled_exceptions(
        request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled exception: %s %s - %s",
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            return JSONResponse(status_code=500, content={"message": "Internal server error"})

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie="choreboard_session",
        max_age=settings.session_max_age,
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 401 and not _is_api(request):
            return RedirectResponse("/login", status_code=303)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(api.router)
    app.include_router(pages.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


_settings = Settings.from_env()
setup_logging(_settings.log_level, _settings.log_format)
app = create_app(_settings)
