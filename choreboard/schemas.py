"""Request bodies accepted by the JSON API."""

from typing import Annotated, Optional

from pydantic import AfterValidator
from sqlmodel import Field

from .dates import parse_day
from .models import TaskKind, WireModel


def _check_day(value: str) -> str:
    return parse_day(value).isoformat()


Day = Annotated[str, AfterValidator(_check_day)]


class DayRequest(WireModel):
    date: Optional[Day] = None


class AssignTaskRequest(DayRequest):
    task_type: TaskKind
    resident: Optional[str]


class KitchenPreferenceRequest(DayRequest):
    resident: Optional[str]


class DishRequest(DayRequest):
    dish: Optional[str]


class ShoppingItemRequest(DayRequest):
    item: str


class ShoppingRemoveRequest(DayRequest):
    index: int


class ShoppingListRequest(DayRequest):
    items: list[str]


class BasicLoginRequest(WireModel):
    email: str = Field(min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ContentUpdateRequest(WireModel):
    value: str
    description: Optional[str] = Field(default=None, max_length=500)
