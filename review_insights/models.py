"""Data models for the analysis engine."""
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DIMENSIONS = ("collaboration", "communication", "respect", "transparency")

MAX_TEXT_LENGTH = 50_000

Rating = Annotated[float, Field(ge=1.0, le=5.0)]


class Record(BaseModel):
    """Immutable record serialized with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RatingRecord(Record):
    """One employee row, normalized."""
    name: str
    ratings: dict[str, Rating]
    feedback: str | None = None
    role: str | None = None
    department: str | None = None
    tenure: str | None = None

    @property
    def first_name(self) -> str:
        """First word of the name, used in rule-based narratives."""
        parts = self.name.split()
        return parts[0] if parts else self.name

    @property
    def average(self) -> float:
        """Mean of all dimension ratings, 0.0 when there are none."""
        if not self.ratings:
            return 0.0
        return sum(self.ratings.values()) / len(self.ratings)


class ContextDocument(Record):
    """Organizational document text supplied for context."""
    file_name: str
    extracted_text: str = Field(max_length=MAX_TEXT_LENGTH)
    size_bytes: int = 0


class TeamAggregate(Record):
    """Per-dimension team averages."""
    average_ratings: dict[str, float]
    team_size: int
    industry_benchmarks: dict[str, float] | None = None


class Insights(Record):
    """Structured analysis for one employee."""
    enhanced_summary: str
    behavioral_recommendations: str
    trend_analysis: str
    feedback_analysis: str
    development_priorities: list[str]
    strengths_analysis: str
    risk_factors: list[str]
    success_predictors: list[str]
    has_document_context: bool = False


class TeamInsights(Record):
    """Structured analysis for the whole team."""
    overall_trends: str
    risk_areas: list[str]
    strength_areas: list[str]
    recommendations: list[str]


class EmployeeResult(RatingRecord):
    """Rating record with its attached insights."""
    top_value_observed: str
    area_for_growth: str
    insights: Insights
    is_ai_enhanced: bool


class ProcessingInfo(Record):
    """Batch-level summary of how results were produced."""
    ai_enabled: bool
    ai_success_rate: float
    fallback_used: bool
    processing_time_ms: int


class Report(Record):
    """Complete batch report."""
    employees: list[EmployeeResult]
    total_employees: int
    average_ratings: dict[str, float]
    team_insights: TeamInsights | None = None
    context_summary: str = ""
    processing_info: ProcessingInfo


def model_fields_by_alias(model: type[BaseModel]) -> list[str]:
    """Return the serialized (camelCase) field names of a model."""
    return [field.alias or name for name, field in model.model_fields.items()]
