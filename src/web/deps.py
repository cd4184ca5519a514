"""Dependency injection for FastAPI routes."""

from functools import lru_cache
from pathlib import Path

import structlog

from cli.config import load_config_model
from habits.store import HabitStore
from memory.store import FactStore

logger = structlog.get_logger()


@lru_cache
def get_config():
    """Load shared config from the standard locations."""
    return load_config_model()


def get_db_path() -> Path:
    return Path(get_config().paths.db).expanduser()


def get_habit_store() -> HabitStore:
    return HabitStore(get_db_path())


def get_fact_store() -> FactStore:
    return FactStore(get_db_path())


@lru_cache
def get_orchestrator():
    """Build the chat pipeline once per process from config."""
    from cli.utils import get_components

    components = get_components(config=get_config())
    logger.info("web.orchestrator_ready", provider=components["provider"].provider_name)
    return components["orchestrator"]
