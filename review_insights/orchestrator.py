"""AI/fallback policy and analysis coordination."""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Protocol, TypeVar

import structlog

from . import rules
from .client import CompletionClient
from .config import EngineConfig
from .errors import AnalysisFailed, ConfigurationError, ReviewInsightsError
from .models import DIMENSIONS, Insights, RatingRecord, TeamAggregate, TeamInsights
from .parser import ParseStrategy, parse_insights_with_strategy, parse_team_insights_with_strategy
from .prompts import build_employee_prompt, build_team_prompt

logger = structlog.get_logger()

T = TypeVar("T")

TEAM_SUBJECT = "team"


class Completer(Protocol):
    async def complete(self, prompt: str) -> str: ...


class AnalysisState(str, Enum):
    DISABLED = "disabled"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED_FALLBACK = "failed_fallback"
    FAILED_FATAL = "failed_fatal"


class Route(str, Enum):
    AI = "ai"
    RULES = "rules"
    FAIL = "fail"


def choose_route(ai_enabled: bool, fallback_enabled: bool, error: Exception | None = None) -> Route:
    """Decide how a call proceeds.

    AI is only tried when enabled and nothing has failed yet. Rule-based
    output is only ever used when fallback is explicitly enabled.
    """
    if ai_enabled and error is None:
        return Route.AI
    if fallback_enabled:
        return Route.RULES
    return Route.FAIL


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    value: T
    via_ai: bool
    state: AnalysisState = AnalysisState.SUCCEEDED
    error: Exception | None = None


@dataclass(frozen=True)
class Failed:
    subject: str
    error: ReviewInsightsError
    state: AnalysisState = AnalysisState.FAILED_FATAL


Outcome = Succeeded | Failed


def unwrap(outcome: Outcome):
    """Return the value of a successful outcome, or raise its error."""
    if isinstance(outcome, Failed):
        raise outcome.error from getattr(outcome.error, "cause", None)
    return outcome.value


class AnalysisOrchestrator:
    """Runs each employee or team analysis through the AI/fallback policy."""

    def __init__(self, config: EngineConfig, client: Completer | None = None):
        """Build a CompletionClient from the config unless one is supplied."""
        self.config = config
        if client is None and config.ai_enabled:
            client = CompletionClient(config.api_key)
        self.client = client

    async def _run(
        self,
        subject: str,
        build_prompt: Callable[[], str],
        parse: Callable[[str], tuple[T, ParseStrategy]],
        fallback: Callable[[], T],
    ) -> Outcome:
        route = choose_route(self.config.ai_enabled, self.config.fallback_enabled)
        if route is Route.RULES:
            logger.info("AI disabled, using rule-based analysis", subject=subject, state=AnalysisState.DISABLED.value)
            return Succeeded(fallback(), via_ai=False)
        if route is Route.FAIL:
            logger.error(
                "AI disabled and fallback disabled, cannot provide analysis",
                subject=subject,
                state=AnalysisState.DISABLED.value,
            )
            return Failed(
                subject,
                ConfigurationError(
                    "AI analysis is required but not properly configured. "
                    "Please set ANTHROPIC_API_KEY and ENABLE_AI_INSIGHTS=true"
                ),
            )

        logger.info("Generating AI insights", subject=subject, state=AnalysisState.ATTEMPTING.value)
        try:
            raw = await self.client.complete(build_prompt())
            value, strategy = parse(raw)
        except Exception as e:
            logger.error("AI analysis failed", subject=subject, error=str(e), error_type=type(e).__name__)
            if choose_route(self.config.ai_enabled, self.config.fallback_enabled, e) is Route.RULES:
                logger.warning("Falling back to rule-based analysis", subject=subject)
                return Succeeded(fallback(), via_ai=False, state=AnalysisState.FAILED_FALLBACK, error=e)
            return Failed(subject, AnalysisFailed(subject, e))

        if strategy.degraded:
            logger.warning("parse_degraded", subject=subject, strategy=strategy.value)
        logger.info("AI insights generated", subject=subject, strategy=strategy.value)
        return Succeeded(value, via_ai=True)

    async def evaluate_employee(
        self,
        record: RatingRecord,
        aggregate: TeamAggregate | None = None,
        context: str = "",
    ) -> Outcome:
        """Analyze one employee, returning the outcome instead of raising."""
        has_context = bool(context)
        return await self._run(
            record.name,
            lambda: build_employee_prompt(record, aggregate, context),
            lambda raw: parse_insights_with_strategy(raw, has_context),
            lambda: rules.analyze(record, aggregate),
        )

    async def analyze_employee(
        self,
        record: RatingRecord,
        aggregate: TeamAggregate | None = None,
        context: str = "",
    ) -> Insights:
        """Analyze one employee. Raises ConfigurationError or AnalysisFailed."""
        return unwrap(await self.evaluate_employee(record, aggregate, context))

    async def evaluate_team(self, records: list[RatingRecord], context: str = "") -> Outcome:
        """Analyze the team, returning the outcome instead of raising."""
        if not records:
            logger.warning("No team data provided for analysis")
            return Succeeded(rules.analyze_team([]), via_ai=False)
        return await self._run(
            TEAM_SUBJECT,
            lambda: build_team_prompt(records, context),
            parse_team_insights_with_strategy,
            lambda: rules.analyze_team(records),
        )

    async def analyze_team(self, records: list[RatingRecord], context: str = "") -> TeamInsights:
        """Analyze the team. Raises ConfigurationError or AnalysisFailed."""
        return unwrap(await self.evaluate_team(records, context))


def aggregate_ratings(
    records: list[RatingRecord],
    industry_benchmarks: dict[str, float] | None = None,
) -> TeamAggregate:
    """Per-dimension means over all records, rounded to one decimal."""
    if not records:
        return TeamAggregate(average_ratings={}, team_size=0, industry_benchmarks=industry_benchmarks)

    dimensions = [d for d in DIMENSIONS if d in records[0].ratings]
    dimensions += [d for d in records[0].ratings if d not in dimensions]
    averages = {
        dimension: round(sum(r.ratings.get(dimension, 0.0) for r in records) / len(records), 1)
        for dimension in dimensions
    }
    return TeamAggregate(
        average_ratings=averages,
        team_size=len(records),
        industry_benchmarks=industry_benchmarks,
    )


class TeamAggregator:
    """Team-level averages and insights."""

    def __init__(self, orchestrator: AnalysisOrchestrator):
        self.orchestrator = orchestrator

    def aggregate(
        self,
        records: list[RatingRecord],
        industry_benchmarks: dict[str, float] | None = None,
    ) -> TeamAggregate:
        """Team averages for the records, rounded to one decimal."""
        return aggregate_ratings(records, industry_benchmarks)

    async def team_insights(self, records: list[RatingRecord], context: str = "") -> Outcome:
        """Team insights through the AI/fallback policy."""
        return await self.orchestrator.evaluate_team(records, context)
