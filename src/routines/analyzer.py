"""LLM-backed routine analysis over a user's recent habit logs."""

import json
from collections import Counter
from datetime import datetime, timedelta, timezone

import structlog
from pydantic import ValidationError

from cli.config_models import RoutineConfig
from habits.clock import resolve_timezone
from habits.models import FrequencyUnit, Weekday
from habits.store import HabitStore
from llm.base import LLMProvider

from .models import ConflictWarning, RoutineAnalysis, RoutinePattern

logger = structlog.get_logger()

_ANALYSIS_PROMPT = """Analyze these habit log timestamps and detect recurring time-of-day patterns.

User timezone: {timezone}
Current date: {today}
Analysis window: last {window_days} days

Habit logs (local time):
{logs}

For each habit, identify:
1. Recurring time-of-day patterns (e.g. "logged Mon/Wed/Fri around 7am")
2. Consistency score, 0.0-1.0 (actual logs / expected logs for the habit's frequency)
3. Confidence: HIGH (80%+ of logs cluster at the detected time), MEDIUM (60-79%), LOW (<60%)

Return JSON:
{{
  "patterns": [
    {{
      "habitId": "id",
      "habitTitle": "string",
      "description": "user typically logs this Mon/Wed/Fri around 7:00 AM",
      "consistencyScore": 0.7,
      "confidence": "MEDIUM",
      "timeBlocks": [{{"dayOfWeek": "Monday", "startHour": 7, "endHour": 8}}]
    }}
  ]
}}

Rules:
- Timestamps are already in the user's local timezone
- Time blocks: round to the nearest hour, use 1-hour windows
- Exclude habits with fewer than {min_logs} logs"""

_CONFLICT_PROMPT = """Detect schedule conflicts between a new habit and existing routine patterns.

New habit:
- Frequency: {frequency}
- Days: {days}

Existing routine patterns:
{patterns}

Return JSON:
{{
  "hasConflict": true,
  "conflictingHabits": [
    {{"habitId": "id", "habitTitle": "string", "conflictDescription": "both scheduled Mon/Wed/Fri mornings"}}
  ],
  "severity": "HIGH",
  "recommendation": "Consider scheduling this on Tuesdays/Thursdays instead"
}}

Rules:
- HIGH severity: same days and overlapping time blocks (within 1 hour)
- MEDIUM severity: same days, different times
- LOW severity: different days but similar time of day
- If there is no meaningful conflict, return hasConflict false with an empty conflictingHabits array
- Daily habits naturally overlap with weekly/monthly habits; only flag a real time conflict"""


class RoutineAnalysisError(Exception):
    """The model's reply could not be understood."""


def _parse_json(text: str) -> dict:
    text = (text or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise RoutineAnalysisError(f"Invalid JSON from model: {e}") from e
    if not isinstance(data, dict):
        raise RoutineAnalysisError("Expected a JSON object from model")
    return data


class RoutineAnalyzer:
    """Infers routine patterns and checks new schedules against them."""

    def __init__(
        self,
        store: HabitStore,
        provider: LLMProvider,
        config: RoutineConfig | None = None,
    ):
        self.store = store
        self.provider = provider
        self.config = config or RoutineConfig()

    def analyze(self, user_id: str, now: datetime | None = None) -> list[RoutinePattern]:
        """Detect time-of-day patterns. Returns [] when there is not enough data."""
        now = now or datetime.now(timezone.utc)
        user = self.store.get_user(user_id)
        if user is None or not user.timezone:
            logger.info("routines.skipped", user_id=user_id, reason="no_timezone")
            return []

        habits = {h.id: h for h in self.store.find_habits(user_id)}
        if not habits:
            logger.info("routines.skipped", user_id=user_id, reason="no_habits")
            return []

        logs = [
            log
            for log in self.store.find_logs(user_id, now - timedelta(days=self.config.window_days))
            if log.habit_id in habits
        ]
        if not logs:
            logger.info("routines.skipped", user_id=user_id, reason="no_logs")
            return []

        days_of_data = (now - min(log.created_at for log in logs)).days
        if days_of_data < self.config.min_days_of_data:
            logger.info("routines.skipped", user_id=user_id, reason="too_little_data", days=days_of_data)
            return []

        counts = Counter(log.habit_id for log in logs)
        eligible = {hid for hid, n in counts.items() if n >= self.config.min_logs_per_habit}
        if not eligible:
            logger.info("routines.skipped", user_id=user_id, reason="too_few_logs_per_habit")
            return []

        tz = resolve_timezone(user.timezone)
        rows = []
        for log in logs:
            if log.habit_id not in eligible:
                continue
            habit = habits[log.habit_id]
            rows.append(
                {
                    "habitId": habit.id,
                    "habitTitle": habit.title,
                    "date": log.date.isoformat(),
                    "loggedAtLocal": log.created_at.astimezone(tz).strftime("%A %Y-%m-%d %H:%M"),
                    "frequency": habit.frequency_unit.value if habit.frequency_unit else None,
                    "frequencyQuantity": habit.frequency_quantity,
                }
            )

        prompt = _ANALYSIS_PROMPT.format(
            timezone=user.timezone,
            today=now.astimezone(tz).date().isoformat(),
            window_days=self.config.window_days,
            logs=json.dumps(rows, indent=2),
            min_logs=self.config.min_logs_per_habit,
        )
        response = self.provider.generate(
            messages=[{"role": "user", "content": prompt}], max_tokens=2000, json_mode=True
        )
        try:
            analysis = RoutineAnalysis.model_validate(_parse_json(response))
        except ValidationError as e:
            raise RoutineAnalysisError(f"Unexpected routine analysis shape: {e}") from e

        logger.info("routines.analyzed", user_id=user_id, logs=len(rows), patterns=len(analysis.patterns))
        return analysis.patterns

    def detect_conflicts(
        self,
        user_id: str,
        frequency_unit: FrequencyUnit | None,
        frequency_quantity: int | None,
        days: list[Weekday] | None = None,
        patterns: list[RoutinePattern] | None = None,
    ) -> ConflictWarning | None:
        """Compare a proposed schedule with the user's routine. None means no conflict."""
        if patterns is None:
            patterns = self.analyze(user_id)
        if not patterns:
            return None

        frequency = (
            f"{frequency_unit.value} / {frequency_quantity or 1}" if frequency_unit else "one-time"
        )
        prompt = _CONFLICT_PROMPT.format(
            frequency=frequency,
            days=", ".join(d.value for d in days) if days else "not specified",
            patterns=json.dumps([p.model_dump() for p in patterns], indent=2),
        )
        response = self.provider.generate(
            messages=[{"role": "user", "content": prompt}], max_tokens=1000, json_mode=True
        )
        try:
            warning = ConflictWarning.model_validate(_parse_json(response))
        except ValidationError as e:
            raise RoutineAnalysisError(f"Unexpected conflict check shape: {e}") from e

        logger.info("routines.conflict_checked", user_id=user_id, has_conflict=warning.has_conflict)
        return warning if warning.has_conflict else None
