"""Duplicate filtering for extracted facts."""

from habits.models import UserFact

from .models import FactCandidate


def normalize_fact_text(text: str) -> str:
    return text.strip().casefold()


def filter_new_facts(
    candidates: list[FactCandidate], existing: list[UserFact]
) -> list[FactCandidate]:
    """Drop candidates already on file (ignoring case and surrounding whitespace).

    Deleted facts do not block a candidate. Repeats within the batch keep the first.
    """
    seen = {normalize_fact_text(f.text) for f in existing if not f.is_deleted}
    fresh = []
    for candidate in candidates:
        key = normalize_fact_text(candidate.text)
        if not key or key in seen:
            continue
        seen.add(key)
        fresh.append(candidate)
    return fresh
