"""Deterministic rule-based analysis, used when AI analysis is off or fails."""
from enum import Enum

from .models import Insights, RatingRecord, TeamAggregate, TeamInsights


class Tier(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    DEVELOPING = "developing"


def tier_for(average: float) -> Tier:
    """Performance tier for an average rating."""
    if average >= 4.0:
        return Tier.HIGH
    if average >= 3.0:
        return Tier.MODERATE
    return Tier.DEVELOPING


SUMMARIES = {
    Tier.HIGH: (
        "{first_name} demonstrates exceptional performance with an overall rating of {average:.1f}/5.0, "
        "particularly excelling in {top}. This high-performing individual shows consistent value delivery "
        "and strong potential for increased responsibilities, with room to bring {growth} up to the same standard."
    ),
    Tier.MODERATE: (
        "{first_name} maintains solid performance with an overall rating of {average:.1f}/5.0, showing "
        "particular strength in {top}. There are clear opportunities for targeted development in {growth} "
        "that could significantly enhance overall effectiveness."
    ),
    Tier.DEVELOPING: (
        "{first_name} shows foundational capabilities with an overall rating of {average:.1f}/5.0, with "
        "emerging strength in {top}. Focused development in {growth} could unlock significant potential "
        "and improve performance trajectory."
    ),
}

RECOMMENDATIONS = {
    Tier.HIGH: (
        "{first_name} should leverage exceptional {top} skills to mentor others while taking on stretch "
        "assignments, and keep {growth} on par through cross-functional projects. Consider leadership "
        "development programs to maximize impact."
    ),
    Tier.MODERATE: (
        "{first_name} should focus on developing {growth} through targeted training and regular feedback "
        "sessions. Pair with a mentor and set specific improvement goals while continuing to build on "
        "{top} capabilities."
    ),
    Tier.DEVELOPING: (
        "{first_name} should prioritize skill development in {growth} through structured learning programs "
        "and frequent check-ins. Establish clear performance milestones and leverage {top} as a "
        "confidence-building foundation."
    ),
}

TRENDS = {
    Tier.HIGH: (
        "{first_name}'s performance trajectory shows positive momentum with ratings {comparison}, led by "
        "{top}. Sustaining {growth} will keep this trajectory over the next review period."
    ),
    Tier.MODERATE: (
        "{first_name}'s performance trajectory is steady with ratings {comparison}. Continued focus on "
        "{growth}, building on {top}, should yield measurable improvements over the next review period."
    ),
    Tier.DEVELOPING: (
        "{first_name}'s performance trajectory shows opportunity for improvement with ratings {comparison}. "
        "Structured work on {growth}, anchored in {top}, should yield measurable improvements over the next "
        "review period."
    ),
}

RISK_FACTORS = {
    Tier.HIGH: ["Potential for complacency", "Risk of being overlooked for advancement"],
    Tier.MODERATE: ["Performance plateau risk", "Skill gap widening"],
    Tier.DEVELOPING: ["Performance improvement urgency", "Skill development gaps", "Goal achievement challenges"],
}


def _development_priorities(tier: Tier, growth: str) -> list[str]:
    """Development priorities for the tier, naming the growth area where relevant."""
    if tier is Tier.HIGH:
        return ["Leadership development", "Strategic thinking enhancement", "Mentoring capabilities"]
    if tier is Tier.MODERATE:
        return [f"{growth.capitalize()} skill development", "Performance consistency", "Goal achievement strategies"]
    return [f"Core {growth} competencies", "Foundation skill building", "Performance improvement planning"]


def _success_predictors(tier: Tier, top: str) -> list[str]:
    """Success predictors for the tier, led by the top dimension."""
    if tier is Tier.HIGH:
        return [f"Strong {top} foundation", "Leadership potential", "Consistent high performance"]
    if tier is Tier.MODERATE:
        return [f"Solid {top} capabilities", "Growth mindset", "Team collaboration"]
    return [f"Emerging {top} skills", "Development readiness", "Improvement potential"]


def top_and_growth(ratings: dict[str, float]) -> tuple[str, str]:
    """Highest and lowest rated dimensions."""
    if not ratings:
        return "overall performance", "overall performance"
    ranked = sorted(ratings.items(), key=lambda item: item[1], reverse=True)
    return ranked[0][0], ranked[-1][0]


def _comparison(average: float, aggregate: TeamAggregate | None) -> str:
    """Phrase comparing an average with the team mean."""
    if aggregate is None or aggregate.team_size == 0 or not aggregate.average_ratings:
        return "within expected range"
    team_values = list(aggregate.average_ratings.values())
    team_average = sum(team_values) / len(team_values)
    return "above team average" if average > team_average else "at or below team average"


def _feedback_analysis(feedback: str | None) -> str:
    """Describe how much free-text feedback was given."""
    if not feedback:
        return "No specific feedback provided for analysis."
    depth = "comprehensive" if len(feedback) > 100 else "focused"
    return f"Feedback indicates {depth} input on performance areas."


def analyze(record: RatingRecord, aggregate: TeamAggregate | None = None) -> Insights:
    """Compute insights from the ratings alone."""
    average = record.average
    tier = tier_for(average)
    top, growth = top_and_growth(record.ratings)
    values = {
        "first_name": record.first_name,
        "average": average,
        "top": top,
        "growth": growth,
        "comparison": _comparison(average, aggregate),
    }

    return Insights(
        enhanced_summary=SUMMARIES[tier].format(**values),
        behavioral_recommendations=RECOMMENDATIONS[tier].format(**values),
        trend_analysis=TRENDS[tier].format(**values),
        feedback_analysis=_feedback_analysis(record.feedback),
        development_priorities=_development_priorities(tier, growth),
        strengths_analysis=(
            f"{record.first_name} demonstrates particular strength in {top}, which serves as a "
            "foundation for continued growth and team contribution."
        ),
        risk_factors=list(RISK_FACTORS[tier]),
        success_predictors=_success_predictors(tier, top),
        has_document_context=False,
    )


INSUFFICIENT_DATA = TeamInsights(
    overall_trends="Insufficient data for team analysis",
    risk_areas=["Data availability"],
    strength_areas=["Team collaboration potential"],
    recommendations=["Gather more comprehensive performance data"],
)


def analyze_team(records: list[RatingRecord]) -> TeamInsights:
    """Compute team insights from the ratings alone."""
    if not records:
        return INSUFFICIENT_DATA

    team_average = sum(record.average for record in records) / len(records)
    strong = team_average >= 3.5

    if strong:
        risk_areas = ["Performance plateau risk"]
        strength_areas = ["Team collaboration", "Individual contributor strengths"]
        recommendations = [
            "Expand stretch assignments for top performers",
            "Establish peer mentoring systems",
            "Document and share effective team practices",
        ]
    else:
        risk_areas = ["Performance consistency", "Skill development gaps"]
        strength_areas = ["Individual contributor strengths"]
        recommendations = [
            "Implement targeted development programs",
            "Establish peer mentoring systems",
            "Create performance improvement initiatives",
        ]

    return TeamInsights(
        overall_trends=(
            f"Team shows {'strong' if strong else 'developing'} performance "
            f"with average rating of {team_average:.1f}/5.0"
        ),
        risk_areas=risk_areas,
        strength_areas=strength_areas,
        recommendations=recommendations,
    )
