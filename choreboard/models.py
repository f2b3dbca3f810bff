import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class TaskKind(str, Enum):
    cook = "cook"
    shop = "shop"
    set_table = "setTable"
    wash_dishes = "washDishes"


TASK_LABELS = {
    TaskKind.cook: "Cooking",
    TaskKind.shop: "Shopping",
    TaskKind.set_table: "Setting the table",
    TaskKind.wash_dishes: "Washing dishes",
}


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def empty_tasks() -> dict[str, Optional[str]]:
    return {kind.value: None for kind in TaskKind}


def clean_items(items: list[str]) -> list[str]:
    """Drop blank entries, keep the survivors exactly as given."""
    return [item for item in items if item and item.strip()]


class WireModel(SQLModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskAssignment(WireModel):
    id: str = Field(default_factory=new_id)
    date: str
    tasks: dict[str, Optional[str]] = Field(default_factory=empty_tasks)
    alone_in_kitchen: Optional[str] = None
    dish_of_the_day: Optional[str] = None
    shopping_list: list[str] = Field(default_factory=list)

    @field_validator("tasks", mode="before")
    @classmethod
    def _all_task_slots(cls, value: Any) -> dict[str, Optional[str]]:
        if value is None:
            return empty_tasks()
        value = dict(value)
        unknown = set(value) - {kind.value for kind in TaskKind}
        if unknown:
            raise ValueError(f"unknown task kinds: {sorted(unknown)}")
        return {kind.value: value.get(kind.value) for kind in TaskKind}

    @classmethod
    def empty(cls, date: str, id: Optional[str] = None) -> "TaskAssignment":
        return cls(id=id or new_id(), date=date)

    def assignee(self, kind: TaskKind) -> Optional[str]:
        return self.tasks.get(kind.value)


class TaskAssignmentUpdate(WireModel):
    date: str
    tasks: Optional[dict[str, Optional[str]]] = None
    alone_in_kitchen: Optional[str] = None
    dish_of_the_day: Optional[str] = None
    shopping_list: Optional[list[str]] = None


class User(WireModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_admin: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email or self.id


class UserUpsert(WireModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_admin: Optional[bool] = None


class AppContent(WireModel):
    id: str = Field(default_factory=new_id)
    key: str = Field(max_length=100)
    value: str
    description: Optional[str] = Field(default=None, max_length=500)
    updated_at: datetime = Field(default_factory=utcnow)


class AppContentUpsert(WireModel):
    key: str = Field(min_length=1, max_length=100)
    value: str
    description: Optional[str] = Field(default=None, max_length=500)


class TaskAssignmentRow(SQLModel, table=True):
    __tablename__ = "task_assignments"

    id: str = Field(primary_key=True)
    date: str = Field(index=True, unique=True)
    tasks: dict = Field(default_factory=empty_tasks, sa_column=Column(JSON, nullable=False))
    alone_in_kitchen: Optional[str] = None
    dish_of_the_day: Optional[str] = None
    shopping_list: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))


class UserRow(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True)
    email: Optional[str] = Field(default=None, unique=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_admin: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AppContentRow(SQLModel, table=True):
    __tablename__ = "app_content"

    id: str = Field(primary_key=True)
    key: str = Field(max_length=100, unique=True, index=True)
    value: str
    description: Optional[str] = Field(default=None, max_length=500)
    updated_at: datetime = Field(default_factory=utcnow)


__all__ = [
    "TaskKind",
    "TASK_LABELS",
    "TaskAssignment",
    "TaskAssignmentUpdate",
    "User",
    "UserUpsert",
    "AppContent",
    "AppContentUpsert",
    "TaskAssignmentRow",
    "UserRow",
    "AppContentRow",
]
