"""Domain entities for habits, logs, tags, users and learned facts."""

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

MAX_TITLE_LENGTH = 200
MAX_NOTE_LENGTH = 500
MAX_FACT_LENGTH = 500

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
_SUSPICIOUS_FACT_MARKERS = ("ignore", "system:", "you must", "instruction:")


class DomainError(Exception):
    """A domain precondition was violated."""


class FrequencyUnit(str, Enum):
    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    id: str
    email: str | None = None
    name: str | None = None
    timezone: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class HabitLog:
    id: str
    habit_id: str
    date: date
    note: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Habit:
    """A recurring habit, or a one-time task when no frequency unit is set."""

    id: str
    user_id: str
    title: str
    due_date: date
    description: str | None = None
    frequency_unit: FrequencyUnit | None = None
    frequency_quantity: int | None = None
    days: list[Weekday] = field(default_factory=list)
    is_bad_habit: bool = False
    parent_id: str | None = None
    is_active: bool = True
    is_completed: bool = False
    created_at: datetime = field(default_factory=utcnow)
    logged_dates: set[date] = field(default_factory=set)
    tag_ids: set[str] = field(default_factory=set)
    children: list["Habit"] = field(default_factory=list)

    @property
    def is_one_time(self) -> bool:
        return self.frequency_unit is None

    @classmethod
    def create(
        cls,
        user_id: str,
        title: str,
        frequency_unit: FrequencyUnit | None = None,
        frequency_quantity: int | None = None,
        description: str | None = None,
        days: list[Weekday] | None = None,
        is_bad_habit: bool = False,
        due_date: date | None = None,
        parent_id: str | None = None,
    ) -> "Habit":
        """Validate inputs and build a new habit. Raises DomainError."""
        if not user_id:
            raise DomainError("User ID is required.")
        if not title or not title.strip():
            raise DomainError("Title is required.")
        if len(title.strip()) > MAX_TITLE_LENGTH:
            raise DomainError(f"Title cannot exceed {MAX_TITLE_LENGTH} characters.")

        if frequency_unit is None and frequency_quantity is not None:
            raise DomainError("Frequency quantity requires a frequency unit.")
        if frequency_unit is not None:
            if frequency_quantity is None:
                frequency_quantity = 1
            if frequency_quantity < 1:
                raise DomainError("Frequency quantity must be at least 1.")

        days = list(days or [])
        if days and frequency_quantity != 1:
            raise DomainError("Days can only be set when frequency quantity is 1.")

        return cls(
            id=new_id(),
            user_id=user_id,
            title=title.strip(),
            description=description.strip() if description else None,
            frequency_unit=frequency_unit,
            frequency_quantity=frequency_quantity,
            days=days,
            is_bad_habit=is_bad_habit,
            due_date=due_date or utcnow().date(),
            parent_id=parent_id,
        )

    def log(self, on: date, note: str | None = None) -> HabitLog:
        """Record a completion (or slip-up for bad habits) on a date. Raises DomainError."""
        if not self.is_active:
            raise DomainError("Cannot log an inactive habit.")
        if note is not None and len(note.strip()) > MAX_NOTE_LENGTH:
            raise DomainError(f"Note cannot exceed {MAX_NOTE_LENGTH} characters.")
        if not self.is_bad_habit and on in self.logged_dates:
            raise DomainError("This habit has already been logged for this date.")

        entry = HabitLog(
            id=new_id(),
            habit_id=self.id,
            date=on,
            note=note.strip() if note and note.strip() else None,
        )
        self.logged_dates.add(on)
        if self.is_one_time:
            self.is_completed = True
        return entry


@dataclass
class Tag:
    id: str
    user_id: str
    name: str
    color: str
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, user_id: str, name: str, color: str) -> "Tag":
        if not user_id:
            raise DomainError("User ID is required.")
        if not name or not name.strip():
            raise DomainError("Tag name is required.")
        if not color or not _HEX_COLOR.match(color.strip()):
            raise DomainError("Tag color must be a valid hex color (e.g., #FF5733).")
        return cls(id=new_id(), user_id=user_id, name=name.strip(), color=color.strip().upper())


@dataclass
class UserFact:
    id: str
    user_id: str
    text: str
    category: str | None = None
    extracted_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = None

    @staticmethod
    def _validate_text(text: str) -> str:
        if not text or not text.strip():
            raise DomainError("Fact text is required")
        trimmed = text.strip()
        if len(trimmed) > MAX_FACT_LENGTH:
            raise DomainError(f"Fact text cannot exceed {MAX_FACT_LENGTH} characters")
        lowered = trimmed.lower()
        if any(marker in lowered for marker in _SUSPICIOUS_FACT_MARKERS):
            raise DomainError("Fact text contains suspicious patterns")
        return trimmed

    @classmethod
    def create(cls, user_id: str, text: str, category: str | None = None) -> "UserFact":
        return cls(id=new_id(), user_id=user_id, text=cls._validate_text(text), category=category)

    def update(self, text: str, category: str | None = None) -> None:
        self.text = self._validate_text(text)
        if category is not None:
            self.category = category
        self.updated_at = utcnow()

    def soft_delete(self) -> None:
        self.is_deleted = True
        self.deleted_at = utcnow()
