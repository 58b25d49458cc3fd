import json

from conftest import make_record

from review_insights.models import Insights, TeamAggregate, TeamInsights, model_fields_by_alias
from review_insights.prompts import build_employee_prompt, build_team_prompt


def schema_keys(prompt: str) -> set[str]:
    """Field names of the JSON object the prompt asks for."""
    block = prompt.split("JSON format:\n", 1)[1]
    schema, _ = json.JSONDecoder().raw_decode(block)
    return set(schema)


def test_employee_prompt_schema_matches_insights_fields():
    expected = set(model_fields_by_alias(Insights)) - {"hasDocumentContext"}
    record = make_record("Ada Lovelace", 4.0)

    assert schema_keys(build_employee_prompt(record)) == expected
    assert schema_keys(build_employee_prompt(record, context="ORG DOCS {with braces}")) == expected


def test_team_prompt_schema_matches_team_insights_fields():
    records = [make_record("Ada", 4.0), make_record("Bo", 2.0)]
    assert schema_keys(build_team_prompt(records)) == set(model_fields_by_alias(TeamInsights))


def test_employee_prompt_embeds_ratings_average_and_team_figures():
    record = make_record("Ada Lovelace", 4.0).model_copy(update={"ratings": {
        "collaboration": 5.0, "communication": 4.0, "respect": 3.0, "transparency": 4.0,
    }})
    aggregate = TeamAggregate(
        average_ratings={"collaboration": 3.6, "communication": 3.1, "respect": 4.0, "transparency": 3.3},
        team_size=12,
    )

    prompt = build_employee_prompt(record, aggregate)

    assert "- Name: Ada Lovelace" in prompt
    assert "- Collaboration: 5.0/5.0" in prompt
    assert "- Overall Average: 4.0/5.0" in prompt
    assert "- Team Size: 12 employees" in prompt
    assert "collaboration: 3.6" in prompt
    assert "- Role: Not specified" in prompt


def test_employee_prompt_includes_feedback_and_profile():
    record = make_record("Bo", 3.0, feedback="Needs to share updates sooner", role="Analyst")
    prompt = build_employee_prompt(record)
    assert '"Needs to share updates sooner"' in prompt
    assert "- Role: Analyst" in prompt


def test_generic_mode_has_no_citation_demands():
    prompt = build_employee_prompt(make_record("Ada", 4.0))
    assert "CONTEXT-ENHANCED" not in prompt
    assert "ORGANIZATION-SPECIFIC CONTEXT DOCUMENTS" not in prompt
    assert prompt.rstrip().endswith("with no text before or after it.")


def test_context_mode_embeds_blob_and_demands_citations():
    blob = "ORGANIZATIONAL CONTEXT DOCUMENTS:\n\n=== values.md ===\nWe value candor.\n"
    prompt = build_employee_prompt(make_record("Ada", 4.0), context=blob)

    assert blob in prompt
    assert "CONTEXT-ENHANCED ANALYSIS MODE" in prompt
    assert "MANDATORY CITATION" in prompt
    assert "cite the specific document" in prompt
    assert "ORGANIZATION-SPECIFIC TERMINOLOGY" in prompt
    assert 'Instead of "Improve communication skills" ->' in prompt
    assert prompt.rstrip().endswith("with no text before or after it.")


def test_team_prompt_lists_members_and_context():
    records = [make_record("Ada", 4.0), make_record("Bo", 2.0)]
    prompt = build_team_prompt(records, context="=== values.md ===\nCandor")

    assert "- Ada: 4.0/5.0" in prompt
    assert "- Bo: 2.0/5.0" in prompt
    assert "Candor" in prompt
    assert "MANDATORY CITATION" in prompt


def test_prompts_are_deterministic():
    record = make_record("Ada", 3.3)
    assert build_employee_prompt(record, context="x") == build_employee_prompt(record, context="x")
