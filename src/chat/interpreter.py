"""Intent interpretation: a chat message plus context in, an ActionPlan out."""

import asyncio
import json
from datetime import date
from typing import Protocol

import structlog
from pydantic import ValidationError

from cli.config_models import RetryConfig
from cli.retry import retry_from_config
from habits.models import Habit, Tag, UserFact
from llm.base import ImageInput, LLMError, LLMProvider
from routines.models import RoutinePattern

from .actions import ACTION_TYPES, Action, ActionPlan, UnknownAction
from .prompts import build_system_prompt

logger = structlog.get_logger()


class InterpretationError(Exception):
    """The message could not be turned into an action plan."""


class IntentInterpreter(Protocol):
    async def interpret(
        self,
        message: str,
        habits: list[Habit],
        tags: list[Tag],
        facts: list[UserFact],
        image: bytes | None = None,
        image_mime_type: str | None = None,
        patterns: list[RoutinePattern] | None = None,
        today: date | None = None,
    ) -> ActionPlan: ...


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    return text.strip()


def parse_action_plan(text: str) -> ActionPlan:
    """Parse the model's JSON reply. Raises InterpretationError on anything malformed.

    Action types outside the known set become UnknownAction so they can be reported
    per action instead of failing the plan.
    """
    if not text or not text.strip():
        raise InterpretationError("The AI returned an empty response.")

    try:
        data = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise InterpretationError(f"Could not parse the AI response: {e.msg}") from e
    if not isinstance(data, dict):
        raise InterpretationError("The AI response is not a JSON object.")

    raw_actions = data.get("actions") or []
    if not isinstance(raw_actions, list):
        raise InterpretationError("The AI response 'actions' field is not a list.")

    actions: list[Action] = []
    for index, item in enumerate(raw_actions):
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            raise InterpretationError(f"Action {index} has no type.")
        model = ACTION_TYPES.get(item["type"])
        if model is None:
            actions.append(UnknownAction(type=item["type"], payload=item))
            continue
        try:
            actions.append(model.model_validate(item))
        except ValidationError as e:
            raise InterpretationError(
                f"Action {index} ({item['type']}) is invalid: {e.error_count()} field error(s)"
            ) from e

    ai_message = data.get("aiMessage", data.get("ai_message"))
    return ActionPlan(ai_message=ai_message if isinstance(ai_message, str) else None, actions=actions)


class LLMIntentInterpreter:
    """Interpreter backed by an LLM provider, called off the event loop."""

    def __init__(
        self,
        provider: LLMProvider,
        max_tokens: int = 4000,
        retry_config: RetryConfig | None = None,
    ):
        self.provider = provider
        self.max_tokens = max_tokens
        self._generate = retry_from_config(retry_config)(provider.generate)

    async def interpret(
        self,
        message: str,
        habits: list[Habit],
        tags: list[Tag],
        facts: list[UserFact],
        image: bytes | None = None,
        image_mime_type: str | None = None,
        patterns: list[RoutinePattern] | None = None,
        today: date | None = None,
    ) -> ActionPlan:
        system = build_system_prompt(habits, tags, facts, patterns, today)
        images = [ImageInput(image, image_mime_type or "image/jpeg")] if image else None
        content = message.strip() if message and message.strip() else "(see attached image)"

        try:
            text = await asyncio.to_thread(
                self._generate,
                messages=[{"role": "user", "content": content}],
                system=system,
                max_tokens=self.max_tokens,
                images=images,
                json_mode=True,
            )
        except LLMError as e:
            logger.warning("chat.interpret_failed", provider=self.provider.provider_name, error=str(e))
            raise InterpretationError(f"AI service error: {e}") from e

        plan = parse_action_plan(text or "")
        logger.info("chat.interpreted", actions=len(plan.actions))
        return plan
