"""Performance review pipeline: ratings spreadsheet -> per-employee and team insights."""
import argparse
import asyncio
import json
import logging
import random
import sys
import time
from pathlib import Path

import structlog

from .config import EngineConfig, load_config
from .documents import assemble_context, context_summary, load_document
from .errors import ReviewInsightsError
from .models import ContextDocument, EmployeeResult, ProcessingInfo, RatingRecord, Report
from .orchestrator import (
    AnalysisOrchestrator,
    Completer,
    Failed,
    Succeeded,
    TeamAggregator,
    unwrap,
)
from .rules import top_and_growth
from .sheet_loader import extract_records, load_rows

logger = structlog.get_logger()

TEST_EMPLOYEE = RatingRecord(
    name="Test Employee",
    ratings={"collaboration": 4.0, "communication": 3.5, "respect": 4.2, "transparency": 3.8},
)


def _employee_result(record: RatingRecord, outcome: Succeeded) -> EmployeeResult:
    """Attach insights and derived fields to a record, with ratings rounded for display."""
    top, growth = top_and_growth(record.ratings)
    fields = record.model_dump()
    fields["ratings"] = {key: round(value, 1) for key, value in record.ratings.items()}
    return EmployeeResult(
        **fields,
        top_value_observed=top.capitalize(),
        area_for_growth=growth.capitalize(),
        insights=outcome.value,
        is_ai_enhanced=outcome.via_ai,
    )


async def analyze_batch(
    rows: list[dict],
    documents: list[ContextDocument] | tuple = (),
    *,
    config: EngineConfig,
    client: Completer | None = None,
    rng: random.Random | None = None,
    processing_delay: float = 0.0,
) -> Report:
    """Analyze one uploaded sheet and build the report.

    Every employee is analyzed concurrently alongside the team. All calls
    run to completion; a fatal failure is raised afterwards for the first
    failing employee, or for the team.
    """
    started = time.perf_counter()
    if processing_delay:
        await asyncio.sleep(processing_delay)

    records = extract_records(rows, rng)
    context = assemble_context(list(documents))

    orchestrator = AnalysisOrchestrator(config, client)
    aggregator = TeamAggregator(orchestrator)
    aggregate = aggregator.aggregate(records)

    outcomes = await asyncio.gather(
        *[orchestrator.evaluate_employee(record, aggregate, context) for record in records],
        aggregator.team_insights(records, context),
    )
    employee_outcomes, team_outcome = outcomes[:-1], outcomes[-1]

    for outcome in employee_outcomes:
        if isinstance(outcome, Failed):
            unwrap(outcome)
    team_insights = unwrap(team_outcome)

    via_ai = sum(1 for outcome in employee_outcomes if outcome.via_ai)
    fallback_used = any(not outcome.via_ai for outcome in employee_outcomes)
    if records and not team_outcome.via_ai:
        fallback_used = True

    report = Report(
        employees=[_employee_result(r, o) for r, o in zip(records, employee_outcomes)],
        total_employees=len(records),
        average_ratings=aggregate.average_ratings,
        team_insights=team_insights,
        context_summary=context_summary(list(documents)),
        processing_info=ProcessingInfo(
            ai_enabled=config.ai_enabled,
            ai_success_rate=round(100 * via_ai / len(records), 1) if records else 0.0,
            fallback_used=fallback_used,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
        ),
    )
    logger.info(
        "Batch analyzed",
        employees=report.total_employees,
        ai_success_rate=report.processing_info.ai_success_rate,
        fallback_used=fallback_used,
    )
    return report


def _bullets(items: list[str]) -> list[str]:
    """Markdown bullet lines, or a single N/A bullet."""
    return [f"- {item}" for item in items] or ["- N/A"]


def report_to_markdown(report: Report) -> str:
    """Convert report to markdown format."""
    info = report.processing_info
    lines = [
        "# Performance Review Report",
        f"**Employees:** {report.total_employees}  ",
        f"**AI enabled:** {'yes' if info.ai_enabled else 'no'}  ",
        f"**AI success rate:** {info.ai_success_rate:.1f}%  ",
        f"**Rule-based fallback used:** {'yes' if info.fallback_used else 'no'}\n",
    ]

    if report.context_summary:
        lines.extend(["## Context Documents", report.context_summary, ""])

    lines.append("## Team Averages")
    lines.extend(f"- **{key.capitalize()}:** {value:.1f}/5.0" for key, value in report.average_ratings.items())
    lines.append("")

    if report.team_insights:
        team = report.team_insights
        lines.extend([
            "## Team Insights",
            team.overall_trends,
            "",
            "### Strength Areas",
            *_bullets(team.strength_areas),
            "",
            "### Risk Areas",
            *_bullets(team.risk_areas),
            "",
            "### Recommendations",
            *_bullets(team.recommendations),
            "",
        ])

    for employee in report.employees:
        insights = employee.insights
        source = "AI" if employee.is_ai_enhanced else "Rule-based"
        ratings = ", ".join(f"{key}: {value:.1f}" for key, value in employee.ratings.items())
        lines.extend([
            f"## {employee.name}",
            f"*{source} analysis*" + (" *(with organizational context)*" if insights.has_document_context else ""),
            "",
            f"- **Ratings:** {ratings}",
            f"- **Top Value Observed:** {employee.top_value_observed}",
            f"- **Area for Growth:** {employee.area_for_growth}",
            "",
            "### Summary",
            insights.enhanced_summary,
            "",
            "### Behavioral Recommendations",
            insights.behavioral_recommendations,
            "",
            "### Trend Analysis",
            insights.trend_analysis,
            "",
            "### Strengths",
            insights.strengths_analysis,
            "",
            "### Feedback",
            insights.feedback_analysis,
            "",
            "### Development Priorities",
            *_bullets(insights.development_priorities),
            "",
            "### Risk Factors",
            *_bullets(insights.risk_factors),
            "",
            "### Success Predictors",
            *_bullets(insights.success_predictors),
            "",
        ])

    return "\n".join(lines)


async def check_configuration(config: EngineConfig, client: Completer | None = None) -> dict:
    """Run one built-in employee through the orchestrator and report the result."""
    orchestrator = AnalysisOrchestrator(config, client)
    outcome = await orchestrator.evaluate_employee(TEST_EMPLOYEE)
    if isinstance(outcome, Failed):
        result = f"FAILED - {outcome.error}"
    elif outcome.error is not None:
        result = f"FAILED - {outcome.error} (rule-based fallback returned)"
    else:
        result = "SUCCESS" if outcome.via_ai else "SUCCESS (rule-based)"
    return {"configuration": config.describe(), "service_test": result}


def configure_logging(json_logs: bool = False, level: int = logging.INFO) -> None:
    """Route structlog through stdlib logging on stderr, as JSON or console output."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


async def run_pipeline(
    sheet: Path,
    context_files: list[Path],
    output: Path | None = None,
    as_json: bool = False,
) -> Report:
    """Run the complete pipeline: load -> analyze -> render."""
    print("=== Performance Review Pipeline ===\n")
    config = load_config()

    print(f"Loading ratings from {sheet}...")
    rows = load_rows(sheet)
    print(f"Loaded {len(rows)} rows\n")

    documents = []
    for path in context_files:
        documents.append(load_document(path))
        print(f"✓ Context document: {path.name}")

    mode = "AI" if config.ai_enabled else "rule-based"
    print(f"Analyzing employees ({mode} mode)...")
    report = await analyze_batch(rows, documents, config=config)
    info = report.processing_info
    print(f"✓ Analyzed {report.total_employees} employees in {info.processing_time_ms} ms")
    print(f"  AI success rate: {info.ai_success_rate:.1f}%, fallback used: {info.fallback_used}\n")

    content = report.model_dump_json(by_alias=True, indent=2) if as_json else report_to_markdown(report)
    if output:
        output.write_text(content)
        print(f"✓ Saved to {output}")
    else:
        print(content)
    return report


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point. Returns the process exit code."""
    parser = argparse.ArgumentParser(description="Generate performance review insights from a ratings spreadsheet.")
    parser.add_argument("sheet", type=Path, nargs="?", help="Ratings spreadsheet (.xlsx, .xls or .csv)")
    parser.add_argument(
        "--context", type=Path, action="append", help="Organizational context document (repeatable)"
    )
    parser.add_argument("--output", type=Path, help="Write the report here instead of stdout")
    parser.add_argument("--json", action="store_true", help="Emit the report as JSON instead of Markdown")
    parser.add_argument("--log-json", action="store_true", help="Emit structured logs as JSON")
    parser.add_argument("--check", action="store_true", help="Check the AI configuration and exit")
    args = parser.parse_args(argv)

    configure_logging(args.log_json)

    if args.check:
        print(json.dumps(asyncio.run(check_configuration(load_config())), indent=2))
        return 0
    if args.sheet is None:
        parser.error("a ratings spreadsheet is required")

    try:
        asyncio.run(run_pipeline(args.sheet, args.context or [], args.output, args.json))
    except (ReviewInsightsError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
