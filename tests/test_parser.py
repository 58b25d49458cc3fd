import json

import pytest

from review_insights.models import Insights
from review_insights.parser import (
    INSIGHT_DEFAULTS,
    LINE_SPLIT_LISTS,
    ParseStrategy,
    parse_insights,
    parse_insights_with_strategy,
    parse_team_insights,
    parse_team_insights_with_strategy,
)

FULL = {
    "enhancedSummary": "Ada leads by example.",
    "behavioralRecommendations": "Mentor two juniors (source: values.md).",
    "trendAnalysis": "Upward.",
    "feedbackAnalysis": "Positive.",
    "developmentPriorities": ["Delegation", "Strategy"],
    "strengthsAnalysis": "Collaboration.",
    "riskFactors": ["Burnout"],
    "successPredictors": ["Consistency"],
}

TEXT_FIELDS = ["enhanced_summary", "behavioral_recommendations", "trend_analysis",
               "feedback_analysis", "strengths_analysis"]
LIST_FIELDS = ["development_priorities", "risk_factors", "success_predictors"]


def assert_populated(insights: Insights):
    for name in TEXT_FIELDS:
        assert isinstance(getattr(insights, name), str) and getattr(insights, name)
    for name in LIST_FIELDS:
        value = getattr(insights, name)
        assert isinstance(value, list) and value and all(isinstance(i, str) for i in value)


def test_strict_json():
    insights, strategy = parse_insights_with_strategy(json.dumps(FULL), has_context=False)
    assert strategy is ParseStrategy.STRICT_JSON
    assert insights.enhanced_summary == "Ada leads by example."
    assert insights.risk_factors == ["Burnout"]


def test_json_wrapped_in_prose_and_fences():
    raw = "Here is the analysis:\n```json\n" + json.dumps(FULL) + "\n```\nHope this helps!"
    insights, strategy = parse_insights_with_strategy(raw, has_context=True)
    assert strategy is ParseStrategy.LENIENT_JSON
    assert insights.development_priorities == ["Delegation", "Strategy"]
    assert insights.has_document_context is True


def test_trailing_object_after_json_is_ignored():
    raw = json.dumps(FULL) + "\n\nNote: {see above}"
    insights, strategy = parse_insights_with_strategy(raw, has_context=False)
    assert strategy is ParseStrategy.LENIENT_JSON
    assert insights.trend_analysis == "Upward."


def test_missing_and_malformed_fields_fall_back_individually():
    raw = json.dumps({
        "enhancedSummary": "Solid quarter.",
        "developmentPriorities": "not a list",
        "riskFactors": [{"risk": "Scope creep"}, 3],
        "trendAnalysis": {"text": "Flat"},
        "strengthsAnalysis": "",
    })
    insights = parse_insights(raw, has_context=False)

    assert insights.enhanced_summary == "Solid quarter."
    assert insights.development_priorities == INSIGHT_DEFAULTS["developmentPriorities"]
    assert insights.risk_factors == ["Scope creep", "3"]
    assert insights.trend_analysis == "Flat"
    assert insights.strengths_analysis == INSIGHT_DEFAULTS["strengthsAnalysis"]
    assert insights.behavioral_recommendations == INSIGHT_DEFAULTS["behavioralRecommendations"]


def test_plain_prose_is_split_into_lines():
    raw = "Line one.\nLine two.\n\nLine three.\nLine four.\nLine five."
    insights, strategy = parse_insights_with_strategy(raw, has_context=False)

    assert strategy is ParseStrategy.LINE_SPLIT
    assert strategy.degraded
    assert insights.enhanced_summary == "Line one. Line two."
    assert insights.behavioral_recommendations == "Line three. Line four."
    assert insights.trend_analysis == "Line five."
    assert insights.success_predictors == LINE_SPLIT_LISTS["successPredictors"]


@pytest.mark.parametrize("raw", [
    "",
    "   \n\n ",
    "just words",
    "{not: valid json",
    '{"enhancedSummary": "unterminated',
    "[1, 2, 3]",
    "}{",
    "[" * 5000,
    "null",
])
def test_parse_never_raises_and_always_populates(raw):
    for has_context in (True, False):
        insights = parse_insights(raw, has_context)
        assert_populated(insights)
        assert insights.has_document_context is has_context


def test_context_flag_is_never_inferred_from_content():
    raw = json.dumps({**FULL, "hasDocumentContext": True, "enhancedSummary": "Per values.md ..."})
    assert parse_insights(raw, has_context=False).has_document_context is False


def test_empty_response_uses_defaults():
    _, strategy = parse_insights_with_strategy("", has_context=False)
    assert strategy is ParseStrategy.DEFAULTS


def test_team_json():
    raw = json.dumps({
        "overallTrends": "Strong team.",
        "riskAreas": ["Bus factor"],
        "strengthAreas": ["Candor"],
        "recommendations": ["Rotate on-call", "Pair more"],
    })
    team, strategy = parse_team_insights_with_strategy("Sure!\n" + raw)
    assert strategy is ParseStrategy.LENIENT_JSON
    assert team.recommendations == ["Rotate on-call", "Pair more"]


def test_team_prose_and_empty():
    team = parse_team_insights("The team is doing fine.\nMore detail.\nIgnored.")
    assert team.overall_trends == "The team is doing fine. More detail."
    assert team.risk_areas

    _, strategy = parse_team_insights_with_strategy("")
    assert strategy is ParseStrategy.DEFAULTS


def test_fenced_json_with_backticks_inside_a_value():
    data = {"enhancedSummary": "Share ```code``` reviews weekly.", "trendAnalysis": "Upward."}
    raw = "```json\n" + json.dumps(data) + "\n```"
    insights, strategy = parse_insights_with_strategy(raw, has_context=False)
    assert strategy is ParseStrategy.LENIENT_JSON
    assert insights.enhanced_summary == "Share ```code``` reviews weekly."
    assert insights.trend_analysis == "Upward."
