"""Retry utilities with exponential backoff."""

import logging

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from llm.base import LLMRateLimitError

from .config_models import RetryConfig

logger = structlog.stdlib.get_logger(__name__)


def llm_retry(
    max_attempts: int = 3,
    min_wait: float = 2.0,
    max_wait: float = 30.0,
    exceptions: tuple = (LLMRateLimitError,),
):
    """Retry decorator for LLM API calls.

    Only rate-limit errors are retried by default; other provider errors surface at once.

    Args:
        max_attempts: Max attempts, first call included
        min_wait: Min wait between retries (seconds)
        max_wait: Max wait between retries (seconds)
        exceptions: Exception types to retry on
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def retry_from_config(config: RetryConfig | None = None):
    """Create an LLM retry decorator from the retry config section."""
    config = config or RetryConfig()
    return llm_retry(
        max_attempts=config.max_attempts,
        min_wait=config.min_wait,
        max_wait=config.llm_max_wait,
    )
