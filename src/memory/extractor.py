"""LLM-powered fact extraction from chat turns."""

import json

import structlog

from habits.models import MAX_FACT_LENGTH, UserFact
from llm.base import LLMError

from .models import FactCandidate, FactCategory

logger = structlog.get_logger()

_EXTRACTION_SYSTEM = """You extract durable facts about a user from a conversation with a habit-tracking assistant.

Rules:
- Extract ONLY explicit statements by the user about themselves. Do not infer.
- Each fact is one standalone sentence in third person ("User is a morning person").
- NEVER extract action requests, commands, or habit names as facts.
  Not facts: "User wants to create a running habit", "User logged meditation".
  Facts: "User works night shifts", "User prefers running outdoors".
- Skip anything already listed under "Known facts".
- Category, exactly one of:
  preference: likes, dislikes, preferred ways of doing things
  routine: schedules and recurring patterns
  context: situation, background, goals
- Extract at most {max_facts} facts.
- Output ONLY JSON with this exact shape, no markdown fences:
  {{"facts": [{{"factText": "...", "category": "preference"}}]}}

If there is nothing to extract, output: {{"facts": []}}"""

VALID_CATEGORIES = {c.value for c in FactCategory}


class FactExtractor:
    """Proposes new facts from a user message and the assistant's reply."""

    def __init__(
        self,
        provider=None,
        max_facts_per_message: int = 5,
        max_fact_length: int = MAX_FACT_LENGTH,
    ):
        self._provider = provider
        self.max_facts = max_facts_per_message
        self.max_fact_length = min(max_fact_length, MAX_FACT_LENGTH)

    def _get_provider(self):
        if self._provider:
            return self._provider
        from llm.factory import create_cheap_provider

        return create_cheap_provider()

    def extract(
        self,
        message: str,
        ai_message: str | None = None,
        existing_facts: list[UserFact] | None = None,
    ) -> list[FactCandidate]:
        """Return fact candidates. Provider failure or malformed output yields []."""
        if not message or not message.strip():
            return []

        known = "\n".join(f"- {f.text}" for f in existing_facts or [] if not f.is_deleted)
        prompt = (
            f"Known facts:\n{known or '(none)'}\n\n"
            f"User message: {message[:3000]}\n"
            f"Assistant reply: {ai_message or '(no response yet)'}"
        )
        try:
            response = self._get_provider().generate(
                messages=[{"role": "user", "content": prompt}],
                system=_EXTRACTION_SYSTEM.format(max_facts=self.max_facts),
                max_tokens=800,
                json_mode=True,
            )
        except LLMError as e:
            logger.warning("fact_extraction.failed", error=str(e))
            return []
        return self._parse_response(response)

    def _parse_response(self, response: str) -> list[FactCandidate]:
        """Parse the JSON reply into candidates, dropping anything malformed."""
        text = (response or "").strip()
        if text.startswith("```"):
            text = text.split("\n", 1)[-1]
        if text.endswith("```"):
            text = text.rsplit("```", 1)[0]
        text = text.strip()

        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("fact_extraction.parse_failed", response=text[:200])
            return []

        items = payload.get("facts") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            return []

        candidates = []
        for item in items[: self.max_facts]:
            if not isinstance(item, dict):
                continue
            fact_text = item.get("factText") or item.get("text") or ""
            if not isinstance(fact_text, str) or not fact_text.strip():
                continue
            if len(fact_text.strip()) > self.max_fact_length:
                continue
            category = str(item.get("category") or "").strip().lower()
            candidates.append(
                FactCandidate(
                    text=fact_text.strip(),
                    category=FactCategory(category) if category in VALID_CATEGORIES else None,
                )
            )
        return candidates
