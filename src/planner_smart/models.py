from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_EVENT_COLOR = "#7c3aed"


def to_iso(dt: datetime) -> str:
    """Render an instant as ISO 8601 UTC with milliseconds, e.g. 2025-06-01T09:00:00.000Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO 8601 instant. A trailing 'Z' is accepted, naive values are taken as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratedTask(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    start_time: str = Field(..., min_length=1)
    duration: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)


class CalendarEvent(CamelModel):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    start_time: str
    end_time: str
    color: str = DEFAULT_EVENT_COLOR
    is_completed: bool = False

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("title must not be blank")
        return v2

    @field_validator("color", mode="before")
    @classmethod
    def default_color(cls, v: Optional[str]) -> str:
        return v or DEFAULT_EVENT_COLOR


class Alarm(CamelModel):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    time: str
    is_active: bool = True

    @field_validator("time")
    @classmethod
    def time_is_iso(cls, v: str) -> str:
        parse_iso(v)
        return v


class User(BaseModel):
    id: int
    username: str
    password_hash: str
