"""Prompt templates and builders."""
import json

from .models import RatingRecord, TeamAggregate

SYSTEM_PROMPT = (
    "You are an expert HR performance analyst with deep expertise in employee development, "
    "behavioral psychology, and organizational performance. When organizational documents are "
    "provided, you MUST actively reference and integrate specific policies, values, and procedures "
    "from those documents into your analysis. Your recommendations should be tailored to the "
    "specific organizational culture and standards rather than generic HR advice. Always cite "
    "specific sources from the provided documents when making recommendations."
)


EMPLOYEE_PROMPT = """As an expert HR performance analyst, provide a comprehensive analysis for an employee performance review.

EMPLOYEE PROFILE:
- Name: {name}
- Role: {role}
- Department: {department}
- Tenure: {tenure}

PERFORMANCE RATINGS (Scale 1-5):
{ratings}
- Overall Average: {average:.1f}/5.0
"""


FEEDBACK_SECTION = """
FEEDBACK/COMMENTS:
"{feedback}"
"""


TEAM_SECTION = """
TEAM CONTEXT:
- Team Size: {team_size} employees
- Team Averages: {team_averages}
"""


TEAM_PROMPT = """Analyze this team performance data and provide insights in JSON format.

TEAM DATA:
{team_data}
"""


CONTEXT_SECTION = """
ORGANIZATION-SPECIFIC CONTEXT DOCUMENTS:
{context}

CRITICAL INSTRUCTIONS FOR CONTEXT USAGE:
1. MANDATORY CITATION: For every recommendation, cite the specific document (by file name) and the policy, value, or section it comes from
2. POLICY ALIGNMENT: Align all recommendations with the organization's stated policies, values, and procedures
3. ORGANIZATION-SPECIFIC TERMINOLOGY: Use the terminology and frameworks of the documents, not generic HR language
4. AVOID GENERIC ADVICE: Do NOT provide generic HR advice - make everything specific to this organization's documented approach

EXAMPLE OF EXPECTED INTEGRATION:
{examples}
"""


EMPLOYEE_EXAMPLES = (
    "- Instead of \"Improve communication skills\" -> \"Develop communication skills in line with "
    "the organization's emphasis on [specific value from documents] (source: [document name])\"\n"
    "- Instead of \"Consider leadership training\" -> \"Pursue leadership development that aligns with "
    "the company's [specific leadership framework from documents] (source: [document name])\""
)

TEAM_EXAMPLES = (
    "- Instead of \"Improve team communication\" -> \"Enhance team communication in alignment with "
    "[specific communication framework from documents] (source: [document name])\"\n"
    "- Instead of \"Focus on collaboration\" -> \"Strengthen collaboration based on the organization's "
    "[specific collaboration principles from documents] (source: [document name])\""
)


CONTEXT_MODE = """CONTEXT-ENHANCED ANALYSIS MODE:
Since organizational documents are provided, your analysis MUST:
- Cite specific document sources for every recommendation
- Use organization-specific terminology and frameworks
- Align recommendations with documented organizational standards

"""


OUTPUT_FORMAT = """
ANALYSIS OUTPUT REQUIREMENTS:

{mode}Provide the analysis as a single JSON object in the following JSON format:
{schema}

Return ONLY the JSON object, with no text before or after it."""


# field -> (generic hint, context-enhanced hint); list fields hold one hint per item
EMPLOYEE_FIELDS = {
    "enhancedSummary": (
        "Comprehensive 2-3 sentence performance summary with specific insights",
        "Organization-specific performance summary that references relevant policies/values from the documents",
    ),
    "behavioralRecommendations": (
        "Specific, actionable behavioral changes and development strategies",
        "Recommendations aligned with organizational policies and values, each citing its source document",
    ),
    "trendAnalysis": (
        "Analysis of performance patterns and trajectory predictions",
        "Performance analysis against the organizational standards and expectations in the documents",
    ),
    "feedbackAnalysis": (
        "Deep analysis of feedback patterns and sentiment (if feedback provided)",
        "Deep analysis of feedback patterns and sentiment (if feedback provided)",
    ),
    "developmentPriorities": (
        ["Priority 1", "Priority 2", "Priority 3"],
        [
            "Priority based on organizational framework from documents",
            "Priority aligned with company values from documents",
            "Priority reflecting organizational culture from documents",
        ],
    ),
    "strengthsAnalysis": (
        "Detailed analysis of key strengths and how to leverage them",
        "Strengths in the context of the organizational values and competencies from the documents",
    ),
    "riskFactors": (
        ["Risk factor 1", "Risk factor 2"],
        [
            "Risk factor considering organizational standards from documents",
            "Risk factor based on company expectations from documents",
        ],
    ),
    "successPredictors": (
        ["Success predictor 1", "Success predictor 2"],
        [
            "Success predictor aligned with the organizational definition of success from documents",
            "Success predictor based on company culture from documents",
        ],
    ),
}

TEAM_FIELDS = {
    "overallTrends": (
        "Team performance trends and patterns",
        "Team performance trends analyzed through the organizational values and standards in the documents",
    ),
    "riskAreas": (
        ["Risk area 1", "Risk area 2"],
        [
            "Risk area identified based on organizational standards from documents",
            "Risk area considering company expectations from documents",
        ],
    ),
    "strengthAreas": (
        ["Strength area 1", "Strength area 2"],
        [
            "Strength area aligned with organizational values from documents",
            "Strength area reflecting company culture from documents",
        ],
    ),
    "recommendations": (
        ["Recommendation 1", "Recommendation 2", "Recommendation 3"],
        [
            "Recommendation based on organizational framework from documents, citing its source",
            "Recommendation aligned with company policies from documents, citing its source",
            "Recommendation reflecting organizational values from documents, citing its source",
        ],
    ),
}


def _format_scores(scores: dict[str, float], separator: str = ", ") -> str:
    """Render scores as "dimension: x.x" pairs."""
    return separator.join(f"{key}: {value:g}" for key, value in scores.items())


def _schema(fields: dict, has_context: bool) -> str:
    """JSON schema example with the generic or context-aware field hints."""
    skeleton = {name: hints[1] if has_context else hints[0] for name, hints in fields.items()}
    return json.dumps(skeleton, indent=2)


def _output_format(fields: dict, has_context: bool) -> str:
    """Closing output instructions including the schema."""
    return OUTPUT_FORMAT.format(
        mode=CONTEXT_MODE if has_context else "",
        schema=_schema(fields, has_context),
    )


def build_employee_prompt(
    record: RatingRecord,
    aggregate: TeamAggregate | None = None,
    context: str = "",
) -> str:
    """Build the analysis prompt for one employee."""
    ratings = "\n".join(
        f"- {key.capitalize()}: {value:.1f}/5.0" for key, value in record.ratings.items()
    )
    prompt = EMPLOYEE_PROMPT.format(
        name=record.name,
        role=record.role or "Not specified",
        department=record.department or "Not specified",
        tenure=record.tenure or "Not specified",
        ratings=ratings,
        average=record.average,
    )

    if record.feedback:
        prompt += FEEDBACK_SECTION.format(feedback=record.feedback)

    if aggregate is not None:
        prompt += TEAM_SECTION.format(
            team_size=aggregate.team_size,
            team_averages=_format_scores(aggregate.average_ratings),
        )
        if aggregate.industry_benchmarks:
            prompt += f"- Industry Benchmarks: {_format_scores(aggregate.industry_benchmarks)}\n"

    has_context = bool(context)
    if has_context:
        prompt += CONTEXT_SECTION.format(context=context, examples=EMPLOYEE_EXAMPLES)

    return prompt + _output_format(EMPLOYEE_FIELDS, has_context)


def build_team_prompt(records: list[RatingRecord], context: str = "") -> str:
    """Build the analysis prompt for the whole team."""
    team_data = "\n".join(
        f"- {record.name}: {record.average:.1f}/5.0 ({_format_scores(record.ratings)})"
        for record in records
    )
    prompt = TEAM_PROMPT.format(team_data=team_data)

    has_context = bool(context)
    if has_context:
        prompt += CONTEXT_SECTION.format(context=context, examples=TEAM_EXAMPLES)

    return prompt + _output_format(TEAM_FIELDS, has_context)
