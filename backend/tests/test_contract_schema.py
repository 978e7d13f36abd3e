import pytest

from briefguard.contract.schema import (
    ModelOutputParseError,
    StructuredOutput,
    parse_model_json,
    validate_structured_output,
)


def test_parse_model_json_accepts_raw_fenced_and_wrapped_documents() -> None:
    assert parse_model_json('{"title": "x"}') == {"title": "x"}
    assert parse_model_json('```json\n{"title": "fenced"}\n```') == {"title": "fenced"}
    assert parse_model_json('Here is the report:\n{"title": "wrapped"}\nThanks.') == {"title": "wrapped"}


@pytest.mark.parametrize("raw", ["", "   ", "no json here", "```json\n{broken\n```", "prefix {not: json} suffix"])
def test_parse_model_json_rejects_unusable_text(raw: str) -> None:
    with pytest.raises(ModelOutputParseError):
        parse_model_json(raw)


def test_parse_model_json_rejects_oversized_integers() -> None:
    with pytest.raises(ModelOutputParseError):
        parse_model_json('{"summaryBullets": [{"text": "x", "citations": [' + "2" * 5000 + "]}]}")


def test_parse_model_json_rejects_runaway_nesting() -> None:
    with pytest.raises(ModelOutputParseError):
        parse_model_json("[" * 200000 + "]" * 200000)
    with pytest.raises(ModelOutputParseError):
        parse_model_json("{" + '"a": [' * 200000 + "]" * 200000 + "}")


def test_valid_payload_round_trips_with_camel_case_aliases(report_payload) -> None:
    output, issues = validate_structured_output(report_payload)
    assert issues == []
    assert isinstance(output, StructuredOutput)
    assert output.possible_actions.next_72_hours[0].owner == "Category"
    assert output.selected_articles[0].key_metrics == ["Premiums up 12%"]

    payload = output.to_payload()
    assert set(payload["possibleActions"]) == {"next72Hours", "next2to4Weeks", "nextQuarter"}
    assert "imageAlt" not in payload["selectedArticles"][0]
    assert "signal" not in payload["summaryBullets"][0]


def test_schema_issues_are_path_prefixed(report_payload) -> None:
    report_payload["summaryBullets"] = report_payload["summaryBullets"][:4]
    report_payload["possibleActions"]["next72Hours"][0]["owner"] = "Finance"
    report_payload["selectedArticles"][0]["briefContent"] = "Too short."

    output, issues = validate_structured_output(report_payload)

    assert output is None
    assert any(issue.startswith("summaryBullets: ") for issue in issues)
    assert any(issue.startswith("possibleActions.next72Hours.0.owner: ") for issue in issues)
    assert any(issue.startswith("selectedArticles.0.briefContent: ") for issue in issues)
    assert len(issues) == len(set(issues))


def test_schema_rejects_non_integer_citations(report_payload) -> None:
    report_payload["summaryBullets"][0]["citations"] = ["2"]
    report_payload["impact"]["marketCostDrivers"][0]["citations"] = [True]

    output, issues = validate_structured_output(report_payload)

    assert output is None
    assert any(issue.startswith("summaryBullets.0.citations.0: ") for issue in issues)
    assert any(issue.startswith("impact.marketCostDrivers.0.citations.0: ") for issue in issues)


def test_schema_rejects_non_object_root() -> None:
    output, issues = validate_structured_output(["not", "a", "report"])
    assert output is None
    assert issues and issues[0].startswith("(root): ")
