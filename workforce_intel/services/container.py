"""
services/container.py
──────────────────────────────────────────────────────────────────────────────
Dependency Injection container.

THIS IS THE ONLY FILE THAT NAMES CONCRETE ADAPTER CLASSES.

Provider selection is driven entirely by environment variables — no code
changes are needed to switch between providers:

  LLM_PROVIDER=anthropic (default) → AnthropicLLMAdapter
  LLM_PROVIDER=openai              → OpenAILLMAdapter

Static data is read once from DATA_DIR by JsonOccupationDataAdapter and
frozen into an OccupationIndex + TaskStore that every request shares.

Missing LLM credentials do not stop the service from starting: search and
taxonomy resolution still work, and each analysis fails at the
classification stage with an AuthenticationError.

Thread safety:
  @lru_cache(maxsize=1) makes get_orchestrator() return the same instance
  across calls.  Everything it holds is read-only after construction, so
  Flask worker threads share it without locking.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from workforce_intel.adapters.json_data import JsonOccupationDataAdapter
from workforce_intel.config.settings import Settings, get_settings
from workforce_intel.domain.exceptions import AuthenticationError, ConfigurationError
from workforce_intel.ports.llm_port import LLMPort
from workforce_intel.ports.occupation_data_port import OccupationDataPort
from workforce_intel.services.analysis import AnalysisOrchestrator
from workforce_intel.services.matcher import OccupationMatcher
from workforce_intel.services.occupation_index import OccupationIndex
from workforce_intel.services.task_classifier import TaskClassifier
from workforce_intel.services.task_store import TaskStore

logger = logging.getLogger(__name__)


class UnavailableLLM:
    """LLMPort stand-in used when provider credentials are missing.

    Every call re-raises the original AuthenticationError so the failure
    surfaces per request instead of at start-up.
    """

    def __init__(self, model_name: str, error: AuthenticationError) -> None:
        self._model_name = model_name
        self._error = error

    @property
    def model_name(self) -> str:
        return self._model_name

    def generate_json(self, system_prompt: str, user_message: str) -> str | None:
        raise AuthenticationError(str(self._error))


def _build_llm(settings: Settings) -> LLMPort:
    """Instantiate the correct LLMPort adapter based on LLM_PROVIDER."""
    provider = settings.llm_provider.lower()
    try:
        if provider == "anthropic":
            from workforce_intel.adapters.anthropic_llm import AnthropicLLMAdapter
            logger.info("LLM provider: Anthropic (%s)", settings.anthropic_model)
            return AnthropicLLMAdapter(settings)
        if provider == "openai":
            from workforce_intel.adapters.openai_llm import OpenAILLMAdapter
            logger.info("LLM provider: OpenAI (%s)", settings.openai_llm_model)
            return OpenAILLMAdapter(settings)
    except AuthenticationError as exc:
        logger.warning("LLM provider %s unavailable: %s", provider, exc)
        return UnavailableLLM(provider, exc)
    raise ConfigurationError(
        f"Unknown LLM_PROVIDER '{settings.llm_provider}'. "
        "Valid values: 'anthropic', 'openai'."
    )


def build_orchestrator(
    settings: Settings,
    data: OccupationDataPort,
    llm: LLMPort,
) -> AnalysisOrchestrator:
    """Wire an AnalysisOrchestrator from a data source and an LLM.

    Loads the static data exactly once and builds the shared read-only
    structures from it.
    """
    occupations = data.load_occupations()
    task_store = TaskStore(data.load_tasks())
    index = OccupationIndex(occupations, searchable_codes=task_store.codes)
    matcher = OccupationMatcher(index, search_limit=settings.match_limit)

    return AnalysisOrchestrator(
        matcher=matcher,
        task_store=task_store,
        classifier=TaskClassifier(llm),
        settings=settings,
    )


def with_llm(
    orchestrator: AnalysisOrchestrator,
    llm: LLMPort,
    settings: Settings,
) -> AnalysisOrchestrator:
    """Return an orchestrator sharing ``orchestrator``'s data but classifying with ``llm``."""
    return AnalysisOrchestrator(
        matcher=orchestrator.matcher,
        task_store=orchestrator.task_store,
        classifier=TaskClassifier(llm),
        settings=settings,
    )


@lru_cache(maxsize=1)
def get_orchestrator() -> AnalysisOrchestrator:
    """Build and return the fully wired AnalysisOrchestrator singleton.

    Returns:
        AnalysisOrchestrator ready for use.

    Raises:
        ConfigurationError: If an unknown provider name is given.
        DataLoadError: If the O*NET lookup files are missing or malformed.
    """
    settings = get_settings()
    logger.info(
        "Building AnalysisOrchestrator | llm_provider=%s data_dir=%s",
        settings.llm_provider,
        settings.data_dir,
    )

    orchestrator = build_orchestrator(
        settings,
        data=JsonOccupationDataAdapter(settings),
        llm=_build_llm(settings),
    )
    logger.info("AnalysisOrchestrator ready")
    return orchestrator
