"""Action plan model: what the interpreter proposes and what execution reports back."""

from datetime import date
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import (
    AliasChoices,
    AliasGenerator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from habits.models import FrequencyUnit, Weekday
from routines.models import ConflictWarning


def _title_case(v):
    """Accept "day", "DAY" or "Day" for enum values."""
    return v.strip().capitalize() if isinstance(v, str) else v


Unit = Annotated[FrequencyUnit, BeforeValidator(_title_case)]
Day = Annotated[Weekday, BeforeValidator(_title_case)]


class _ActionModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True,
        extra="ignore",
    )


class LogHabit(_ActionModel):
    type: Literal["LogHabit"] = "LogHabit"
    habit_id: str | None = None
    note: str | None = None


class CreateHabit(_ActionModel):
    type: Literal["CreateHabit"] = "CreateHabit"
    title: str | None = None
    description: str | None = None
    frequency_unit: Unit | None = None
    frequency_quantity: int | None = None
    days: list[Day] | None = None
    is_bad_habit: bool | None = Field(
        default=None, validation_alias=AliasChoices("isBadHabit", "isNegative", "is_bad_habit")
    )
    due_date: date | None = None
    sub_habits: list[str] | None = None


class AssignTag(_ActionModel):
    type: Literal["AssignTag"] = "AssignTag"
    habit_id: str | None = None
    tag_ids: list[str] | None = None


class SuggestBreakdown(_ActionModel):
    type: Literal["SuggestBreakdown"] = "SuggestBreakdown"
    title: str | None = None
    description: str | None = None
    frequency_unit: Unit | None = None
    frequency_quantity: int | None = None
    suggested_sub_habits: list[CreateHabit] | None = None

    @field_validator("suggested_sub_habits", mode="before")
    @classmethod
    def _drop_nested_type(cls, v):
        """Suggested items are always habit drafts, whatever type tag the model gave them."""
        if not isinstance(v, list):
            return v
        return [{k: x for k, x in item.items() if k != "type"} if isinstance(item, dict) else item for item in v]


class UnknownAction(_ActionModel):
    """An action whose type tag this service does not handle."""

    type: str
    payload: dict = Field(default_factory=dict)


Action = Union[LogHabit, CreateHabit, AssignTag, SuggestBreakdown, UnknownAction]

ACTION_TYPES: dict[str, type[_ActionModel]] = {
    "LogHabit": LogHabit,
    "CreateHabit": CreateHabit,
    "AssignTag": AssignTag,
    "SuggestBreakdown": SuggestBreakdown,
}


class ActionPlan(BaseModel):
    ai_message: str | None = None
    actions: list[Action] = Field(default_factory=list)


class ActionStatus(str, Enum):
    SUCCESS = "Success"
    FAILED = "Failed"
    SUGGESTION = "Suggestion"


class ActionResult(BaseModel):
    """Outcome of one action, aligned by position with the plan."""

    type: str
    status: ActionStatus
    entity_id: str | None = None
    entity_name: str | None = None
    error: str | None = None
    suggested_sub_habits: list[CreateHabit] | None = None
    conflict_warning: ConflictWarning | None = None

    @classmethod
    def success(cls, action_type: str, entity_id: str | None = None, entity_name: str | None = None):
        return cls(type=action_type, status=ActionStatus.SUCCESS, entity_id=entity_id, entity_name=entity_name)

    @classmethod
    def failed(cls, action_type: str, error: str, entity_id: str | None = None):
        return cls(type=action_type, status=ActionStatus.FAILED, error=error, entity_id=entity_id)


class ChatResponse(BaseModel):
    ai_message: str | None = None
    results: list[ActionResult] = Field(default_factory=list)
