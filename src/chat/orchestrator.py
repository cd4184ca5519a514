"""Chat pipeline: context, interpretation, execution, commit, fact learning."""

import asyncio

import structlog

from habits.clock import user_local_today
from habits.models import UserFact
from habits.store import HabitStore
from memory.store import FactStore
from observability import Metrics, metrics as default_metrics
from routines.models import RoutinePattern

from .actions import ActionResult, ActionStatus, ChatResponse
from .enrichment import ConflictChecker, FactLearner, best_effort
from .executor import ActionExecutor, ExecutionBatch
from .interpreter import IntentInterpreter

logger = structlog.get_logger()

GENERIC_ACTION_ERROR = "Something went wrong while processing this action."


class ChatOrchestrator:
    """Turns one chat message into executed actions and a response.

    Only interpretation can fail the request (InterpretationError propagates). Each
    action fails on its own, and enrichment failures are logged and dropped.
    """

    def __init__(
        self,
        store: HabitStore,
        interpreter: IntentInterpreter,
        fact_store: FactStore | None = None,
        fact_learner: FactLearner | None = None,
        conflict_checker: ConflictChecker | None = None,
        metrics: Metrics | None = None,
    ):
        self.store = store
        self.interpreter = interpreter
        self.fact_store = fact_store
        self.fact_learner = fact_learner
        self.conflict_checker = conflict_checker
        self.executor = ActionExecutor(store, conflict_checker)
        self.metrics = metrics or default_metrics

    async def process(
        self,
        user_id: str,
        message: str,
        image: bytes | None = None,
        image_mime_type: str | None = None,
    ) -> ChatResponse:
        log = logger.bind(user_id=user_id)

        with self.metrics.timer("chat.context"):
            user = await asyncio.to_thread(self.store.ensure_user, user_id)
            habits = await asyncio.to_thread(self.store.find_active_habits, user_id)
            tags = await asyncio.to_thread(self.store.find_tags, user_id)
            facts: list[UserFact] = []
            if self.fact_store is not None:
                facts = await asyncio.to_thread(self.fact_store.find_active, user_id)
            patterns: list[RoutinePattern] = []
            if self.conflict_checker is not None:
                patterns = await best_effort(
                    "routine_patterns", self.conflict_checker.load_patterns(user_id), [], user_id=user_id
                )
        today = user_local_today(user.timezone)

        with self.metrics.timer("chat.interpret"):
            plan = await self.interpreter.interpret(
                message,
                habits,
                tags,
                facts,
                image=image,
                image_mime_type=image_mime_type,
                patterns=patterns,
                today=today,
            )

        batch = ExecutionBatch(user=user, today=today, patterns=patterns)
        results: list[ActionResult] = []
        with self.metrics.timer("chat.execute"):
            for action in plan.actions:
                mark = batch.mark()
                try:
                    result = await self.executor.execute(action, batch)
                except Exception:
                    log.exception("chat.action_crashed", action_type=action.type)
                    batch.rollback_to(mark)
                    result = ActionResult.failed(action.type, GENERIC_ACTION_ERROR)
                results.append(result)
                self.metrics.counter(f"chat.actions.{result.status.value.lower()}")

        with self.metrics.timer("chat.commit"):
            written = await asyncio.to_thread(self.store.commit, batch.writes)

        if self.fact_learner is not None and message and message.strip():
            with self.metrics.timer("chat.facts"):
                await best_effort(
                    "fact_extraction",
                    self.fact_learner.learn(user_id, message, plan.ai_message, facts),
                    [],
                    user_id=user_id,
                )

        log.info(
            "chat.processed",
            actions=len(plan.actions),
            writes=written,
            failed=sum(1 for r in results if r.status == ActionStatus.FAILED),
        )
        return ChatResponse(ai_message=plan.ai_message, results=results)
