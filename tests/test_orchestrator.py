import asyncio
import json

import pytest
from conftest import FakeClient, make_record

from review_insights import rules
from review_insights.errors import (
    AnalysisFailed,
    CompletionTimeout,
    ConfigurationError,
    InvalidCredentials,
    ServiceUnavailable,
)
from review_insights.orchestrator import (
    AnalysisOrchestrator,
    AnalysisState,
    Failed,
    Route,
    Succeeded,
    TeamAggregator,
    aggregate_ratings,
    choose_route,
)

AI_RESPONSE = json.dumps({
    "enhancedSummary": "AI summary.",
    "behavioralRecommendations": "AI recs.",
    "trendAnalysis": "AI trend.",
    "feedbackAnalysis": "AI feedback.",
    "developmentPriorities": ["A"],
    "strengthsAnalysis": "AI strengths.",
    "riskFactors": ["B"],
    "successPredictors": ["C"],
})

TEAM_RESPONSE = json.dumps({
    "overallTrends": "AI team.",
    "riskAreas": ["R"],
    "strengthAreas": ["S"],
    "recommendations": ["T"],
})


@pytest.mark.parametrize("ai, fallback, error, route", [
    (True, True, None, Route.AI),
    (True, False, None, Route.AI),
    (False, True, None, Route.RULES),
    (False, False, None, Route.FAIL),
    (True, True, CompletionTimeout("t"), Route.RULES),
    (True, False, CompletionTimeout("t"), Route.FAIL),
])
def test_choose_route(ai, fallback, error, route):
    assert choose_route(ai, fallback, error) is route


def test_disabled_with_fallback_never_calls_client(rules_only):
    client = FakeClient(AI_RESPONSE)
    record = make_record("Ada Lovelace", 4.5)

    insights = asyncio.run(AnalysisOrchestrator(rules_only, client).analyze_employee(record, context="docs"))

    assert insights == rules.analyze(record)
    assert insights.has_document_context is False
    assert client.prompts == []


def test_disabled_without_fallback_is_configuration_error(unconfigured):
    client = FakeClient(AI_RESPONSE)
    orchestrator = AnalysisOrchestrator(unconfigured, client)

    with pytest.raises(ConfigurationError):
        asyncio.run(orchestrator.analyze_employee(make_record("Ada", 4)))
    assert client.prompts == []


def test_ai_success_is_parsed(ai_only):
    client = FakeClient(AI_RESPONSE)
    outcome = asyncio.run(AnalysisOrchestrator(ai_only, client).evaluate_employee(make_record("Ada", 4)))

    assert isinstance(outcome, Succeeded)
    assert outcome.via_ai is True
    assert outcome.state is AnalysisState.SUCCEEDED
    assert outcome.value.enhanced_summary == "AI summary."
    assert len(client.prompts) == 1


def test_ai_only_timeout_raises_analysis_failed(ai_only):
    timeout = CompletionTimeout("took too long")
    orchestrator = AnalysisOrchestrator(ai_only, FakeClient(error=timeout))

    with pytest.raises(AnalysisFailed) as excinfo:
        asyncio.run(orchestrator.analyze_employee(make_record("Ada Lovelace", 4)))

    assert excinfo.value.cause is timeout
    assert excinfo.value.subject == "Ada Lovelace"
    assert excinfo.value.__cause__ is timeout
    assert "Ada Lovelace" in str(excinfo.value)


def test_ai_only_failure_outcome_is_fatal(ai_only):
    orchestrator = AnalysisOrchestrator(ai_only, FakeClient(error=InvalidCredentials("bad key", 401)))
    outcome = asyncio.run(orchestrator.evaluate_employee(make_record("Ada", 4)))

    assert isinstance(outcome, Failed)
    assert outcome.state is AnalysisState.FAILED_FATAL
    assert isinstance(outcome.error, AnalysisFailed)


def test_hybrid_service_unavailable_falls_back(hybrid):
    record = make_record("Ada", 2.5)
    orchestrator = AnalysisOrchestrator(hybrid, FakeClient(error=ServiceUnavailable("down", 503)))

    outcome = asyncio.run(orchestrator.evaluate_employee(record))

    assert isinstance(outcome, Succeeded)
    assert outcome.via_ai is False
    assert outcome.state is AnalysisState.FAILED_FALLBACK
    assert isinstance(outcome.error, ServiceUnavailable)
    assert outcome.value == rules.analyze(record)


def test_unexpected_client_error_also_falls_back(hybrid):
    orchestrator = AnalysisOrchestrator(hybrid, FakeClient(error=RuntimeError("boom")))
    insights = asyncio.run(orchestrator.analyze_employee(make_record("Ada", 4)))
    assert insights.has_document_context is False


@pytest.mark.parametrize("context, expected", [("", False), ("ORGANIZATIONAL CONTEXT DOCUMENTS: ...", True)])
def test_document_context_flag_follows_context_argument(ai_only, context, expected):
    client = FakeClient("Plain prose that mentions values.md and policies.")
    insights = asyncio.run(
        AnalysisOrchestrator(ai_only, client).analyze_employee(make_record("Ada", 4), context=context)
    )
    assert insights.has_document_context is expected
    assert ("MANDATORY CITATION" in client.prompts[0]) is expected


def test_empty_team_never_calls_client(ai_only):
    client = FakeClient(TEAM_RESPONSE)
    aggregator = TeamAggregator(AnalysisOrchestrator(ai_only, client))

    aggregate = aggregator.aggregate([])
    team = asyncio.run(aggregator.orchestrator.analyze_team([]))

    assert aggregate.team_size == 0
    assert aggregate.average_ratings == {}
    assert team.overall_trends == "Insufficient data for team analysis"
    assert client.prompts == []


def test_team_ai_and_fallback(ai_only, hybrid):
    records = [make_record("Ada", 4), make_record("Bo", 2)]

    team = asyncio.run(AnalysisOrchestrator(ai_only, FakeClient(TEAM_RESPONSE)).analyze_team(records))
    assert team.overall_trends == "AI team."

    outcome = asyncio.run(
        TeamAggregator(AnalysisOrchestrator(hybrid, FakeClient(error=CompletionTimeout("t")))).team_insights(records)
    )
    assert outcome.via_ai is False
    assert outcome.value == rules.analyze_team(records)

    with pytest.raises(AnalysisFailed) as excinfo:
        asyncio.run(AnalysisOrchestrator(ai_only, FakeClient(error=CompletionTimeout("t"))).analyze_team(records))
    assert excinfo.value.subject == "team"


def test_aggregate_ratings_means_per_dimension():
    records = [make_record("A", 4.0), make_record("B", 3.0), make_record("C", 2.0)]
    aggregate = aggregate_ratings(records, industry_benchmarks={"respect": 3.9})

    assert aggregate.team_size == 3
    assert aggregate.average_ratings == {
        "collaboration": 3.0, "communication": 3.0, "respect": 3.0, "transparency": 3.0,
    }
    assert aggregate.industry_benchmarks == {"respect": 3.9}
