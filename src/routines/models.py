"""Routine patterns inferred from habit logs, and schedule conflict warnings."""

from typing import Annotated, Literal

from pydantic import AliasGenerator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _upper(v):
    return v.strip().upper() if isinstance(v, str) else v


Level = Annotated[Literal["HIGH", "MEDIUM", "LOW"], BeforeValidator(_upper)]


class _CamelModel(BaseModel):
    """Accepts camelCase keys from model replies, serializes with field names."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel), populate_by_name=True
    )


class TimeBlock(_CamelModel):
    day_of_week: str
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=0, le=24)


class RoutinePattern(_CamelModel):
    habit_id: str
    habit_title: str
    description: str
    consistency_score: float = Field(ge=0.0, le=1.0)
    confidence: Level
    time_blocks: list[TimeBlock] = Field(default_factory=list)


class RoutineAnalysis(_CamelModel):
    patterns: list[RoutinePattern] = Field(default_factory=list)


class ConflictingHabit(_CamelModel):
    habit_id: str
    habit_title: str
    conflict_description: str


class ConflictWarning(_CamelModel):
    has_conflict: bool
    conflicting_habits: list[ConflictingHabit] = Field(default_factory=list)
    severity: Level = "LOW"
    recommendation: str | None = None
