"""Pydantic request/response schemas for the web API."""

import datetime as dt
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, Field

from habits.models import MAX_FACT_LENGTH, MAX_NOTE_LENGTH, MAX_TITLE_LENGTH, FrequencyUnit, Weekday
from memory.models import FactCategory

# --- Habits ---


class HabitCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    frequency_unit: Optional[FrequencyUnit] = None
    frequency_quantity: Optional[int] = Field(None, ge=1)
    days: list[Weekday] = []
    is_bad_habit: bool = False
    due_date: Optional[dt.date] = None
    parent_id: Optional[str] = None


class HabitOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    frequency_unit: Optional[FrequencyUnit] = None
    frequency_quantity: Optional[int] = None
    days: list[Weekday] = []
    is_bad_habit: bool = False
    is_completed: bool = False
    due_date: dt.date
    parent_id: Optional[str] = None
    tag_ids: list[str] = []
    children: list["HabitOut"] = []


class LogCreate(BaseModel):
    date: Optional[dt.date] = None
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)


class LogOut(BaseModel):
    id: str
    habit_id: str
    date: dt.date
    note: Optional[str] = None


# --- Tags ---


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: str


class TagOut(BaseModel):
    id: str
    name: str
    color: str


# --- User facts ---


def _lower(v):
    return v.strip().lower() if isinstance(v, str) else v


Category = Annotated[FactCategory, BeforeValidator(_lower)]


class FactCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_FACT_LENGTH)
    category: Optional[Category] = None


class FactUpdate(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_FACT_LENGTH)
    category: Optional[Category] = None


class FactOut(BaseModel):
    id: str
    text: str
    category: Optional[str] = None
    extracted_at: dt.datetime
    updated_at: Optional[dt.datetime] = None


# --- Profile ---


class ProfileOut(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    timezone: Optional[str] = None


class TimezoneUpdate(BaseModel):
    timezone: str = Field(..., min_length=1, max_length=100)
