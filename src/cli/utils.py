"""Shared CLI utilities: build the service components from config."""

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components(skip_llm: bool = False, config=None, provider=None, cheap_provider=None) -> dict:
    """Initialize stores and, unless skipped, the chat pipeline.

    Args:
        skip_llm: Only open the stores (for commands that don't call a model)
        config: OrbitConfig; loaded from the standard locations when None
        provider: Main LLM provider override (tests, DI)
        cheap_provider: Provider for enrichment calls; defaults to `provider` when that
            is given, else a cheap-tier model of the configured provider
    """
    from chat.enrichment import ConflictChecker, FactLearner
    from chat.interpreter import LLMIntentInterpreter
    from chat.orchestrator import ChatOrchestrator
    from cli.config import load_config_model
    from habits.store import HabitStore
    from llm.factory import providers_from_config
    from memory.extractor import FactExtractor
    from memory.store import FactStore
    from routines.analyzer import RoutineAnalyzer

    config = config or load_config_model()
    store = HabitStore(config.paths.db)
    fact_store = FactStore(config.paths.db)
    components = {"config": config, "store": store, "fact_store": fact_store}
    if skip_llm:
        return components

    if provider is None:
        provider, configured_cheap = providers_from_config(config.llm)
        cheap_provider = cheap_provider or configured_cheap
    cheap_provider = cheap_provider or provider

    conflict_checker = None
    if config.routines.enabled:
        conflict_checker = ConflictChecker(RoutineAnalyzer(store, cheap_provider, config.routines))

    fact_learner = None
    if config.memory.enabled:
        extractor = FactExtractor(
            cheap_provider,
            max_facts_per_message=config.memory.max_facts_per_message,
            max_fact_length=config.memory.max_fact_length,
        )
        fact_learner = FactLearner(extractor, fact_store)

    interpreter = LLMIntentInterpreter(
        provider, max_tokens=config.chat.interpreter_max_tokens, retry_config=config.retry
    )
    components.update(
        provider=provider,
        orchestrator=ChatOrchestrator(
            store,
            interpreter,
            fact_store=fact_store,
            fact_learner=fact_learner,
            conflict_checker=conflict_checker,
        ),
    )
    return components
