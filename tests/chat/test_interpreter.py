"""Tests for action plan parsing and the LLM-backed interpreter."""

import json
from datetime import date

import pytest

from chat.actions import AssignTag, CreateHabit, LogHabit, SuggestBreakdown, UnknownAction
from chat.interpreter import InterpretationError, LLMIntentInterpreter, parse_action_plan
from chat.prompts import build_system_prompt
from cli.config_models import RetryConfig
from habits.models import FrequencyUnit, Habit, Tag, UserFact, Weekday
from llm.base import LLMError, LLMProvider, LLMRateLimitError


class FakeProvider(LLMProvider):
    """Replays scripted replies; an exception in the script is raised instead."""

    provider_name = "fake"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def generate(self, messages, system=None, max_tokens=2000, images=None, json_mode=False):
        self.calls.append(
            {"messages": messages, "system": system, "images": images, "json_mode": json_mode}
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class TestParseActionPlan:
    def test_all_action_types(self):
        text = json.dumps(
            {
                "aiMessage": "Done!",
                "actions": [
                    {"type": "LogHabit", "habitId": "h1", "note": "easy"},
                    {
                        "type": "CreateHabit",
                        "title": "Gym",
                        "frequencyUnit": "week",
                        "frequencyQuantity": 1,
                        "days": ["monday", "FRIDAY"],
                        "isNegative": False,
                        "dueDate": "2024-05-06",
                        "subHabits": ["Warm up"],
                    },
                    {"type": "AssignTag", "habitId": "h1", "tagIds": ["t1", "t2"]},
                    {
                        "type": "SuggestBreakdown",
                        "title": "Get fit",
                        "suggestedSubHabits": [{"title": "Walk", "frequencyUnit": "Day"}],
                    },
                ],
            }
        )
        plan = parse_action_plan(text)

        assert plan.ai_message == "Done!"
        log, create, tag, suggest = plan.actions
        assert isinstance(log, LogHabit) and log.habit_id == "h1" and log.note == "easy"
        assert isinstance(create, CreateHabit)
        assert create.frequency_unit == FrequencyUnit.WEEK
        assert create.days == [Weekday.MONDAY, Weekday.FRIDAY]
        assert create.is_bad_habit is False
        assert create.due_date == date(2024, 5, 6)
        assert create.sub_habits == ["Warm up"]
        assert isinstance(tag, AssignTag) and tag.tag_ids == ["t1", "t2"]
        assert isinstance(suggest, SuggestBreakdown)
        assert suggest.suggested_sub_habits[0].frequency_unit == FrequencyUnit.DAY

    def test_suggested_items_ignore_their_type_tag(self):
        text = json.dumps(
            {
                "actions": [
                    {
                        "type": "SuggestBreakdown",
                        "title": "Get fit",
                        "suggestedSubHabits": [
                            {"type": "CreateHabit", "title": "Walk"},
                            {"type": "SubHabit", "title": "Stretch", "frequencyUnit": "day"},
                        ],
                    }
                ]
            }
        )
        [suggest] = parse_action_plan(text).actions
        assert [s.title for s in suggest.suggested_sub_habits] == ["Walk", "Stretch"]
        assert all(s.type == "CreateHabit" for s in suggest.suggested_sub_habits)

    def test_fenced_json(self):
        plan = parse_action_plan('```json\n{"actions": [], "aiMessage": "Hi"}\n```')
        assert plan.actions == []
        assert plan.ai_message == "Hi"

    def test_unknown_type_kept_in_place(self):
        plan = parse_action_plan(
            '{"actions": [{"type": "DeleteHabit", "habitId": "h1"}, {"type": "LogHabit", "habitId": "h1"}]}'
        )
        assert isinstance(plan.actions[0], UnknownAction)
        assert plan.actions[0].type == "DeleteHabit"
        assert isinstance(plan.actions[1], LogHabit)

    def test_missing_actions_is_empty_plan(self):
        assert parse_action_plan('{"aiMessage": "Only habits here!"}').actions == []

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "not json",
            "[1, 2]",
            '{"actions": {"type": "LogHabit"}}',
            '{"actions": [{"habitId": "h1"}]}',
            '{"actions": ["LogHabit"]}',
            '{"actions": [{"type": "CreateHabit", "frequencyQuantity": "lots"}]}',
        ],
    )
    def test_malformed_plans_rejected(self, text):
        with pytest.raises(InterpretationError):
            parse_action_plan(text)


class TestBuildSystemPrompt:
    def test_includes_context(self):
        habit = Habit.create("u1", "Read", frequency_unit=FrequencyUnit.WEEK, frequency_quantity=3)
        habit.children.append(Habit.create("u1", "Pick a book", parent_id=habit.id))
        tag = Tag.create("u1", "health", "#00FF00")
        fact = UserFact.create("u1", "User works night shifts")

        prompt = build_system_prompt([habit], [tag], [fact], today=date(2024, 5, 6))

        assert habit.id in prompt
        assert "Every 3 weeks" in prompt
        assert "Pick a book" in prompt
        assert tag.id in prompt
        assert "User works night shifts" in prompt
        assert "2024-05-06" in prompt

    def test_empty_context(self):
        prompt = build_system_prompt([], [], today=date(2024, 5, 6))
        assert "(none)" in prompt


class TestLLMIntentInterpreter:
    @pytest.mark.asyncio
    async def test_interpret_sends_context_and_image(self):
        provider = FakeProvider('{"actions": [], "aiMessage": "Nice photo"}')
        interpreter = LLMIntentInterpreter(provider)

        plan = await interpreter.interpret(
            "", [], [], [], image=b"\xff\xd8\xff", image_mime_type="image/jpeg", today=date(2024, 5, 6)
        )

        assert plan.ai_message == "Nice photo"
        call = provider.calls[0]
        assert call["json_mode"] is True
        assert call["images"][0].mime_type == "image/jpeg"
        assert call["messages"][0]["content"] == "(see attached image)"
        assert "2024-05-06" in call["system"]

    @pytest.mark.asyncio
    async def test_provider_error_becomes_interpretation_error(self):
        interpreter = LLMIntentInterpreter(FakeProvider(LLMError("boom")))
        with pytest.raises(InterpretationError, match="AI service error"):
            await interpreter.interpret("log my run", [], [], [])

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self):
        provider = FakeProvider(LLMRateLimitError("slow down"), '{"actions": []}')
        interpreter = LLMIntentInterpreter(
            provider, retry_config=RetryConfig(max_attempts=2, min_wait=0, llm_max_wait=0)
        )
        plan = await interpreter.interpret("hi", [], [], [])
        assert plan.actions == []
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_malformed_reply_fails(self):
        interpreter = LLMIntentInterpreter(FakeProvider("Sure! I logged it."))
        with pytest.raises(InterpretationError):
            await interpreter.interpret("log my run", [], [], [])
