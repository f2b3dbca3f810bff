import functools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from .config import Settings
from .db import create_db_engine, init_db
from .errors import SnapshotError
from .models import (
    AppContent,
    AppContentRow,
    AppContentUpsert,
    TaskAssignment,
    TaskAssignmentRow,
    TaskAssignmentUpdate,
    TaskKind,
    User,
    UserRow,
    UserUpsert,
    clean_items,
    new_id,
    utcnow,
)
from .persistence import APP_CONTENT, TASK_ASSIGNMENTS, USERS, JsonSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CONTENT = {
    "app.title": (
        "Kitchen duty",
        "Title shown at the top of every page",
    ),
    "app.intro": (
        "Put your name on a task for today. Cooking, shopping, setting the table "
        "and washing up are shared between everyone who eats.",
        "Introduction shown on the front page",
    ),
    "kitchen.notice": (
        "Need the kitchen to yourself? Mark it here so nobody starts cooking at the same time.",
        "Explanation next to the kitchen preference",
    ),
    "dishwashing.notice": (
        "Everyone who joins dinner helps with the dishes, even when someone has the task.",
        "Notice shown next to the dishwashing task",
    ),
}


def _serialized(method):
    """Run a store mutation while holding the store's write lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class TaskBoardStore(ABC):
    """Date-keyed task assignments plus users and admin-editable content.

    Subclasses provide storage for the three maps; the merge and default rules
    are implemented here once. Each mutation holds a reentrant lock across its
    whole load-modify-save.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def _load_assignment(self, date: str) -> Optional[TaskAssignment]:
        ...

    @abstractmethod
    def _save_assignment(self, record: TaskAssignment) -> TaskAssignment:
        ...

    @abstractmethod
    def _load_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def _save_user(self, user: User) -> User:
        ...

    @abstractmethod
    def _load_content(self, key: str) -> Optional[AppContent]:
        ...

    @abstractmethod
    def _all_content(self) -> list[AppContent]:
        ...

    @abstractmethod
    def _save_content(self, content: AppContent) -> AppContent:
        ...

    @abstractmethod
    def _delete_content(self, key: str) -> bool:
        ...

    def _get_or_create(self, date: str) -> TaskAssignment:
        """Stored record for ``date`` or a new empty one; the caller's save creates it."""
        existing = self._load_assignment(date)
        if existing is not None:
            return existing
        return TaskAssignment.empty(date)

    def _replace(self, record: TaskAssignment, **changes) -> TaskAssignment:
        return self._save_assignment(record.model_copy(update=changes))

    def get_by_date(self, date: str) -> Optional[TaskAssignment]:
        return self._load_assignment(date)

    def get_range(self, dates: Iterable[str]) -> list[TaskAssignment]:
        return [self._load_assignment(date) or TaskAssignment.empty(date) for date in dates]

    @_serialized
    def upsert(self, update: TaskAssignmentUpdate) -> TaskAssignment:
        changes = update.model_dump(exclude_unset=True, exclude={"date"})
        if "shopping_list" in changes:
            changes["shopping_list"] = clean_items(changes["shopping_list"] or [])
        existing = self._load_assignment(update.date)
        if existing is not None:
            merged = {**existing.model_dump(), **changes}
            record = TaskAssignment.model_validate(merged)
        else:
            record = TaskAssignment.model_validate({"id": new_id(), "date": update.date, **changes})
        logger.debug("Upserted task assignment for %s: %s", update.date, sorted(changes))
        return self._save_assignment(record)

    @_serialized
    def assign_task(
        self, date: str, kind: Union[TaskKind, str], assignee: Optional[str]
    ) -> TaskAssignment:
        record = self._get_or_create(date)
        tasks = dict(record.tasks)
        tasks[TaskKind(kind).value] = assignee
        logger.debug("Assigning %s on %s to %r", TaskKind(kind).value, date, assignee)
        return self._replace(record, tasks=tasks)

    @_serialized
    def set_alone_in_kitchen(self, date: str, value: Optional[str]) -> TaskAssignment:
        return self._replace(self._get_or_create(date), alone_in_kitchen=value)

    @_serialized
    def set_dish_of_the_day(self, date: str, value: Optional[str]) -> TaskAssignment:
        return self._replace(self._get_or_create(date), dish_of_the_day=value)

    @_serialized
    def reset_tasks(self, date: str) -> TaskAssignment:
        record = self._get_or_create(date)
        logger.debug("Resetting task assignment for %s", date)
        return self._save_assignment(TaskAssignment.empty(date, id=record.id))

    @_serialized
    def add_shopping_item(self, date: str, item: str) -> TaskAssignment:
        record = self._get_or_create(date)
        item = item.strip()
        if not item:
            return self._save_assignment(record)
        return self._replace(record, shopping_list=[*record.shopping_list, item])

    @_serialized
    def remove_shopping_item(self, date: str, index: int) -> TaskAssignment:
        # An index outside the list matches nothing and leaves it unchanged.
        record = self._get_or_create(date)
        items = [item for position, item in enumerate(record.shopping_list) if position != index]
        return self._replace(record, shopping_list=items)

    @_serialized
    def replace_shopping_list(self, date: str, items: list[str]) -> TaskAssignment:
        return self._replace(self._get_or_create(date), shopping_list=clean_items(items))

    @_serialized
    def ensure_dates(self, dates: Iterable[str]) -> list[TaskAssignment]:
        created = []
        for date in dates:
            if self._load_assignment(date) is None:
                created.append(self._save_assignment(TaskAssignment.empty(date)))
        if created:
            logger.info("Created %d empty task assignments", len(created))
        return created

    def get_user(self, user_id: str) -> Optional[User]:
        return self._load_user(user_id)

    @_serialized
    def upsert_user(self, user: UserUpsert) -> User:
        changes = user.model_dump(exclude_unset=True, exclude={"id"})
        if changes.get("is_admin") is None:
            changes.pop("is_admin", None)
        now = utcnow()
        existing = self._load_user(user.id)
        if existing is None:
            record = User(id=user.id, created_at=now, updated_at=now, **changes)
        else:
            record = existing.model_copy(update={**changes, "updated_at": now})
        return self._save_user(record)

    def get_content(self, key: str) -> Optional[AppContent]:
        return self._load_content(key)

    def list_content(self) -> list[AppContent]:
        return sorted(self._all_content(), key=lambda content: content.key)

    @_serialized
    def upsert_content(self, content: AppContentUpsert) -> AppContent:
        existing = self._load_content(content.key)
        description = content.description
        if existing is not None and "description" not in content.model_fields_set:
            description = existing.description
        record = AppContent(
            id=existing.id if existing else new_id(),
            key=content.key,
            value=content.value,
            description=description,
            updated_at=utcnow(),
        )
        return self._save_content(record)

    @_serialized
    def delete_content(self, key: str) -> bool:
        return self._delete_content(key)

    @_serialized
    def seed_default_content(self) -> list[AppContent]:
        inserted = []
        for key, (value, description) in DEFAULT_CONTENT.items():
            if self._load_content(key) is None:
                inserted.append(
                    self.upsert_content(
                        AppContentUpsert(key=key, value=value, description=description)
                    )
                )
        if inserted:
            logger.info("Seeded default content: %s", ", ".join(c.key for c in inserted))
        return inserted


class MemoryStore(TaskBoardStore):
    """Dict-backed store, optionally mirrored to JSON snapshots after each write."""

    def __init__(self, persistence: Optional[JsonSnapshot] = None):
        super().__init__()
        self.persistence = persistence
        self._assignments: dict[str, TaskAssignment] = {}
        self._users: dict[str, User] = {}
        self._content: dict[str, AppContent] = {}
        if persistence is not None:
            self._reload()

    def _load_records(self, name: str, model) -> dict:
        try:
            return {key: model.model_validate(data) for key, data in self.persistence.load(name).items()}
        except ValidationError as exc:
            raise SnapshotError(f"Snapshot {name} holds invalid records: {exc}") from exc

    def _reload(self) -> None:
        self._assignments = self._load_records(TASK_ASSIGNMENTS, TaskAssignment)
        self._users = self._load_records(USERS, User)
        self._content = self._load_records(APP_CONTENT, AppContent)
        logger.info(
            "Loaded %d task assignments, %d users and %d content records from %s",
            len(self._assignments),
            len(self._users),
            len(self._content),
            self.persistence.directory,
        )

    def _persist(self, name: str, records: dict) -> None:
        if self.persistence is None:
            return
        try:
            with self._lock:
                payload = {
                    key: record.model_dump(mode="json", by_alias=True)
                    for key, record in list(records.items())
                }
                self.persistence.save(name, payload)
        except (SnapshotError, ValueError):
            logger.exception("Failed to persist %s snapshot", name)

    def _load_assignment(self, date: str) -> Optional[TaskAssignment]:
        record = self._assignments.get(date)
        return record.model_copy(deep=True) if record else None

    def _save_assignment(self, record: TaskAssignment) -> TaskAssignment:
        self._assignments[record.date] = record.model_copy(deep=True)
        self._persist(TASK_ASSIGNMENTS, self._assignments)
        return record

    def _load_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    def _save_user(self, user: User) -> User:
        self._users[user.id] = user.model_copy()
        self._persist(USERS, self._users)
        return user

    def _load_content(self, key: str) -> Optional[AppContent]:
        content = self._content.get(key)
        return content.model_copy() if content else None

    def _all_content(self) -> list[AppContent]:
        with self._lock:
            return [content.model_copy() for content in list(self._content.values())]

    def _save_content(self, content: AppContent) -> AppContent:
        self._content[content.key] = content.model_copy()
        self._persist(APP_CONTENT, self._content)
        return content

    def _delete_content(self, key: str) -> bool:
        if self._content.pop(key, None) is None:
            return False
        self._persist(APP_CONTENT, self._content)
        return True


def _assignment_from_row(row: TaskAssignmentRow) -> TaskAssignment:
    return TaskAssignment(
        id=row.id,
        date=row.date,
        tasks=row.tasks,
        alone_in_kitchen=row.alone_in_kitchen,
        dish_of_the_day=row.dish_of_the_day,
        shopping_list=list(row.shopping_list or []),
    )


class DatabaseStore(TaskBoardStore):
    """SQLModel-backed store; one short session per operation."""

    def __init__(self, engine: Engine):
        super().__init__()
        self.engine = engine

    def _load_assignment(self, date: str) -> Optional[TaskAssignment]:
        with Session(self.engine) as session:
            row = session.exec(
                select(TaskAssignmentRow).where(TaskAssignmentRow.date == date)
            ).first()
            return _assignment_from_row(row) if row else None

    def _save_assignment(self, record: TaskAssignment) -> TaskAssignment:
        with Session(self.engine) as session:
            row = session.get(TaskAssignmentRow, record.id)
            if row is None:
                row = TaskAssignmentRow(id=record.id, date=record.date)
            row.tasks = dict(record.tasks)
            row.alone_in_kitchen = record.alone_in_kitchen
            row.dish_of_the_day = record.dish_of_the_day
            row.shopping_list = list(record.shopping_list)
            session.add(row)
            session.commit()
            session.refresh(row)
            return _assignment_from_row(row)

    def _load_user(self, user_id: str) -> Optional[User]:
        with Session(self.engine) as session:
            row = session.get(UserRow, user_id)
            return User.model_validate(row.model_dump()) if row else None

    def _save_user(self, user: User) -> User:
        with Session(self.engine) as session:
            row = session.get(UserRow, user.id)
            if row is None:
                row = UserRow(id=user.id)
            for name, value in user.model_dump(exclude={"id"}).items():
                setattr(row, name, value)
            session.add(row)
            session.commit()
            session.refresh(row)
            return User.model_validate(row.model_dump())

    def _load_content(self, key: str) -> Optional[AppContent]:
        with Session(self.engine) as session:
            row = session.exec(select(AppContentRow).where(AppContentRow.key == key)).first()
            return AppContent.model_validate(row.model_dump()) if row else None

    def _all_content(self) -> list[AppContent]:
        with Session(self.engine) as session:
            rows = session.exec(select(AppContentRow)).all()
            return [AppContent.model_validate(row.model_dump()) for row in rows]

    def _save_content(self, content: AppContent) -> AppContent:
        with Session(self.engine) as session:
            row = session.get(AppContentRow, content.id)
            if row is None:
                row = AppContentRow(id=content.id, key=content.key, value=content.value)
            row.value = content.value
            row.description = content.description
            row.updated_at = content.updated_at
            session.add(row)
            session.commit()
            session.refresh(row)
            return AppContent.model_validate(row.model_dump())

    def _delete_content(self, key: str) -> bool:
        with Session(self.engine) as session:
            row = session.exec(select(AppContentRow).where(AppContentRow.key == key)).first()
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True


def build_store(settings: Settings) -> TaskBoardStore:
    if settings.storage_backend == "database":
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        logger.info("Using database store at %s", engine.url.render_as_string(hide_password=True))
        return DatabaseStore(engine)
    if settings.storage_backend == "json":
        logger.info("Using memory store with JSON snapshots in %s", settings.data_dir)
        return MemoryStore(JsonSnapshot(settings.data_dir))
    logger.info("Using memory store without persistence")
    return MemoryStore()
