"""Resilient parsing of model output into the fixed insight schemas.

Parsing is an ordered chain of attempts, each of which either yields a
result or declines:

1. strict JSON: the whole response is one JSON object
2. lenient JSON: the slice between the first ``{`` and the last ``}``, retried
   with code fences stripped, plus a brace-counting pass for trailing garbage
3. line split: non-empty lines assigned positionally to the text fields
4. defaults

The last step always succeeds, so parsing never raises.
"""
import json
from enum import Enum

from .models import Insights, TeamInsights


class ParseStrategy(str, Enum):
    STRICT_JSON = "strict_json"
    LENIENT_JSON = "lenient_json"
    LINE_SPLIT = "line_split"
    DEFAULTS = "defaults"

    @property
    def degraded(self) -> bool:
        """True when no JSON object was recovered from the response."""
        return self in (ParseStrategy.LINE_SPLIT, ParseStrategy.DEFAULTS)


INSIGHT_DEFAULTS = {
    "enhancedSummary": "AI analysis completed successfully.",
    "behavioralRecommendations": "Continue current performance trajectory.",
    "trendAnalysis": "Performance trends indicate stable development.",
    "feedbackAnalysis": "Feedback analysis not available.",
    "developmentPriorities": ["Professional development", "Skill enhancement"],
    "strengthsAnalysis": "Strong performance in key areas.",
    "riskFactors": ["Performance consistency", "Skill gap areas"],
    "successPredictors": ["Consistent performance", "Team collaboration"],
}

# Placeholders used when the response had no JSON at all
LINE_SPLIT_LISTS = {
    "developmentPriorities": ["Professional growth", "Skill development", "Leadership potential"],
    "riskFactors": ["Performance consistency", "Skill gap areas"],
    "successPredictors": ["Team collaboration", "Continuous learning", "Goal achievement"],
}

LINE_SPLIT_TEXT_DEFAULTS = {
    "enhancedSummary": "AI-enhanced analysis completed.",
    "behavioralRecommendations": "Continue developing core competencies.",
    "trendAnalysis": "Performance trends show positive development.",
    "feedbackAnalysis": "Comprehensive feedback analysis completed.",
    "strengthsAnalysis": "Strong foundational skills identified.",
}

# Text fields filled from consecutive pairs of lines
LINE_SPLIT_ORDER = ["enhancedSummary", "behavioralRecommendations", "trendAnalysis", "strengthsAnalysis"]

TEAM_DEFAULTS = {
    "overallTrends": "Team performance analysis completed.",
    "riskAreas": ["Performance consistency"],
    "strengthAreas": ["Team collaboration"],
    "recommendations": ["Continue regular performance check-ins"],
}

TEXT_KEYS = ("text", "summary", "note", "analysis", "description")


def _load_object(content: str) -> dict | None:
    """Decode a JSON object, or None for anything else."""
    try:
        data = json.loads(content)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def parse_strict(raw: str) -> dict | None:
    """The whole response is a JSON object."""
    return _load_object(raw.strip())


def _slice_object(content: str) -> dict | None:
    """Parse the text between the first ``{`` and the last ``}``."""
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        return None
    content = content[start:end + 1]

    data = _load_object(content)
    if data is not None:
        return data

    # Count braces to find where the first object really ends
    depth = 0
    in_string = False
    escape_next = False
    for i, char in enumerate(content):
        if escape_next:
            escape_next = False
            continue
        if char == "\\" and in_string:
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return _load_object(content[:i + 1])
    return None


def parse_lenient(raw: str) -> dict | None:
    """Find a JSON object embedded in surrounding text or code fences."""
    content = raw.strip()
    data = _slice_object(content)
    if data is not None or not content.startswith("```"):
        return data

    # Extract from code block and retry
    parts = content.split("```")
    if len(parts) < 2:
        return None
    content = parts[1]
    if content.startswith(("json", "JSON")):
        content = content[4:]
    return _slice_object(content.strip())


def _text(value, default: str) -> str:
    """Coerce a field value to non-empty text."""
    if isinstance(value, str):
        return value.strip() or default
    if isinstance(value, dict):
        for key in TEXT_KEYS:
            if isinstance(value.get(key), str) and value[key].strip():
                return value[key].strip()
        return default
    if isinstance(value, list):
        items = [_item(v) for v in value]
        return " ".join(i for i in items if i) or default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _item(value) -> str:
    """Coerce one list entry to text."""
    if isinstance(value, dict):
        for key in TEXT_KEYS + ("item", "priority", "risk", "predictor", "recommendation"):
            if isinstance(value.get(key), str):
                return value[key].strip()
        return ""
    if value is None:
        return ""
    return str(value).strip()


def _items(value, default: list[str]) -> list[str]:
    """Coerce a field value to a non-empty list of strings."""
    if not isinstance(value, list):
        return list(default)
    items = [_item(v) for v in value]
    return [i for i in items if i] or list(default)


def _merge(data: dict, defaults: dict) -> dict:
    """Overlay recognized fields on the defaults, field by field."""
    merged = {}
    for key, default in defaults.items():
        if isinstance(default, list):
            merged[key] = _items(data.get(key), default)
        else:
            merged[key] = _text(data.get(key), default)
    return merged


def _split_lines(raw: str) -> dict:
    """Assign pairs of non-empty lines to the text fields in order."""
    lines = [line.strip() for line in raw.split("\n") if line.strip()]
    fields = dict(LINE_SPLIT_TEXT_DEFAULTS)
    for index, key in enumerate(LINE_SPLIT_ORDER):
        chunk = " ".join(lines[index * 2:index * 2 + 2])
        if chunk:
            fields[key] = chunk
    fields.update({key: list(value) for key, value in LINE_SPLIT_LISTS.items()})
    return fields


def parse_insights_with_strategy(raw: str, has_context: bool) -> tuple[Insights, ParseStrategy]:
    """Parse an employee response and report which strategy produced it."""
    raw = raw if isinstance(raw, str) else ""
    for strategy, attempt in (
        (ParseStrategy.STRICT_JSON, parse_strict),
        (ParseStrategy.LENIENT_JSON, parse_lenient),
    ):
        data = attempt(raw)
        if data is not None:
            fields = _merge(data, INSIGHT_DEFAULTS)
            return Insights(**fields, hasDocumentContext=has_context), strategy

    if raw.strip():
        fields = _split_lines(raw)
        return Insights(**fields, hasDocumentContext=has_context), ParseStrategy.LINE_SPLIT

    fields = {key: list(v) if isinstance(v, list) else v for key, v in INSIGHT_DEFAULTS.items()}
    return Insights(**fields, hasDocumentContext=has_context), ParseStrategy.DEFAULTS


def parse_insights(raw: str, has_context: bool) -> Insights:
    """Parse an employee response. Never raises."""
    insights, _ = parse_insights_with_strategy(raw, has_context)
    return insights


def parse_team_insights_with_strategy(raw: str) -> tuple[TeamInsights, ParseStrategy]:
    """Parse a team response and report which strategy produced it."""
    raw = raw if isinstance(raw, str) else ""
    for strategy, attempt in (
        (ParseStrategy.STRICT_JSON, parse_strict),
        (ParseStrategy.LENIENT_JSON, parse_lenient),
    ):
        data = attempt(raw)
        if data is not None:
            return TeamInsights(**_merge(data, TEAM_DEFAULTS)), strategy

    fields = _merge({}, TEAM_DEFAULTS)
    lines = [line.strip() for line in raw.split("\n") if line.strip()]
    if lines:
        fields["overallTrends"] = " ".join(lines[:2])
        return TeamInsights(**fields), ParseStrategy.LINE_SPLIT
    return TeamInsights(**fields), ParseStrategy.DEFAULTS


def parse_team_insights(raw: str) -> TeamInsights:
    """Parse a team response. Never raises."""
    insights, _ = parse_team_insights_with_strategy(raw)
    return insights
