"""Conversational habit management: interpret a message, execute its actions."""

from .actions import ActionPlan, ActionResult, ActionStatus, ChatResponse
from .interpreter import InterpretationError, LLMIntentInterpreter, parse_action_plan
from .orchestrator import ChatOrchestrator

__all__ = [
    "ActionPlan",
    "ActionResult",
    "ActionStatus",
    "ChatOrchestrator",
    "ChatResponse",
    "InterpretationError",
    "LLMIntentInterpreter",
    "parse_action_plan",
]
