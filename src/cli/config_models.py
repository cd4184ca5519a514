"""Pydantic configuration models for Orbit."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LLM_PROVIDERS = {"auto", "claude", "openai", "gemini", "ollama"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _expand_env(value: Optional[str]) -> Optional[str]:
    """Expand a whole-value ${VAR} reference."""
    if value and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], "")
    return value


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "auto"
    model: Optional[str] = None  # None = use provider default
    cheap_model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None  # ollama server

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v


class PathsConfig(BaseModel):
    """File paths configuration."""

    db: Path = Path("~/orbit/orbit.db")
    log_file: Optional[Path] = None

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db = self.db.expanduser()
        if self.log_file:
            self.log_file = self.log_file.expanduser()
        return self


class ChatConfig(BaseModel):
    """Chat endpoint limits and interpreter settings."""

    max_message_length: int = 4000
    max_image_bytes: int = 20 * 1024 * 1024
    allowed_image_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp"]
    )
    interpreter_max_tokens: int = 4000

    @field_validator("max_message_length", "max_image_bytes", "interpreter_max_tokens")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"must be positive, got {v}")
        return v


class MemoryConfig(BaseModel):
    """Learned fact configuration."""

    enabled: bool = True
    max_facts_per_message: int = 5
    max_fact_length: int = 500


class RoutineConfig(BaseModel):
    """Routine pattern analysis configuration."""

    enabled: bool = True
    window_days: int = 60
    min_days_of_data: int = 7
    min_logs_per_habit: int = 5


class RetryConfig(BaseModel):
    """Retry/backoff configuration for LLM calls."""

    max_attempts: int = 3
    min_wait: float = 2.0
    llm_max_wait: float = 30.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class OrbitConfig(BaseModel):
    """Main configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    routines: RoutineConfig = Field(default_factory=RoutineConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in API keys and URLs."""
        self.llm.api_key = _expand_env(self.llm.api_key)
        self.llm.base_url = _expand_env(self.llm.base_url)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "OrbitConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
