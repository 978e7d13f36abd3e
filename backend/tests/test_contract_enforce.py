import json
import logging

import pytest

from briefguard.config import settings
from briefguard.contract import ContractViolationError, StructuredOutput, enforce_output_contract
from briefguard.contract.checks import action_total, check_cross_references, impact_total
from briefguard.contract.schema import validate_structured_output


def _raw(payload: dict[str, object]) -> str:
    return json.dumps(payload)


def test_enforce_accepts_contract_valid_output(report_payload) -> None:
    output = enforce_output_contract(_raw(report_payload), max_article_index=10, required_count=3)

    assert isinstance(output, StructuredOutput)
    assert [article.article_index for article in output.selected_articles] == [2, 5, 7]
    assert output.hero_selection.article_index == 5
    assert output.title == report_payload["title"]
    assert impact_total(output) == 10
    assert action_total(output) == 8


def test_enforce_accepts_fenced_output(report_payload) -> None:
    raw = f"```json\n{_raw(report_payload)}\n```"
    output = enforce_output_contract(raw, max_article_index=10, required_count=3)
    assert output.hero_selection.article_index == 5


def test_enforce_uses_configured_default_required_count(report_payload, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "contract_default_required_count", 2)
    output = enforce_output_contract(_raw(report_payload), max_article_index=10)
    assert [article.article_index for article in output.selected_articles] == [2, 5]


def test_enforce_repairs_selection_citations_and_title(report_payload) -> None:
    report_payload["title"] = "Copper Daily Brief for buyers"
    report_payload["selectedArticles"][1]["articleIndex"] = 2
    report_payload["summaryBullets"][1]["citations"] = [5]

    output = enforce_output_contract(_raw(report_payload), max_article_index=10, required_count=3)

    selected = [article.article_index for article in output.selected_articles]
    assert selected == [2, 1, 7]
    assert output.hero_selection.article_index == 2
    assert output.summary_bullets[1].citations == [2]
    assert "daily" not in output.title.lower()
    assert 8 <= len(output.title.split()) <= 14
    assert check_cross_references(output, max_article_index=10, required_count=3) == []


def test_enforce_output_is_stable_when_enforced_again(report_payload) -> None:
    report_payload["title"] = "Copper brief"
    report_payload["heroSelection"] = {"articleIndex": 9}

    first = enforce_output_contract(_raw(report_payload), max_article_index=10, required_count=3)
    second = enforce_output_contract(_raw(first.to_payload()), max_article_index=10, required_count=3)

    assert first == second


def test_enforce_rejects_unparseable_output() -> None:
    with pytest.raises(ContractViolationError) as exc_info:
        enforce_output_contract("The model refused to answer.", max_article_index=10, required_count=3)

    assert exc_info.value.stage == "parse"
    assert exc_info.value.issues == ["output: output was not valid JSON"]
    assert json.loads(str(exc_info.value)) == exc_info.value.issues


def test_enforce_rejects_schema_violations_before_repair(report_payload, caplog) -> None:
    report_payload["summaryBullets"] = report_payload["summaryBullets"][:3]
    report_payload["impact"]["marketCostDrivers"] = report_payload["impact"]["marketCostDrivers"][:1]

    with caplog.at_level(logging.WARNING, logger="briefguard.contract"):
        with pytest.raises(ContractViolationError) as exc_info:
            enforce_output_contract(_raw(report_payload), max_article_index=10, required_count=3)

    assert exc_info.value.stage == "schema"
    assert any(issue.startswith("summaryBullets: ") for issue in exc_info.value.issues)
    assert any(issue.startswith("impact.marketCostDrivers: ") for issue in exc_info.value.issues)

    rejected = [record for record in caplog.records if getattr(record, "event", None) == "contract_rejected"]
    assert rejected
    assert rejected[-1].stage == "schema"


def test_enforce_shortens_overlong_padded_title(report_payload) -> None:
    # Seven 22-character words already use the title budget before padding to eight words.
    report_payload["title"] = " ".join(["abcdefghijklmnopqrstuv"] * 7)

    output = enforce_output_contract(_raw(report_payload), max_article_index=10, required_count=3)

    assert len(output.title) <= 160
    assert 8 <= len(output.title.split()) <= 14


def test_enforce_final_gate_reports_unrepaired_output(report_payload, monkeypatch: pytest.MonkeyPatch) -> None:
    def leave_hero_outside_selection(payload, **kwargs):
        return {**payload, "heroSelection": {"articleIndex": 9}}

    monkeypatch.setattr(
        "briefguard.contract.enforce.normalize_output_payload",
        leave_hero_outside_selection,
    )

    with pytest.raises(ContractViolationError) as exc_info:
        enforce_output_contract(_raw(report_payload), max_article_index=10, required_count=3)

    assert exc_info.value.stage == "final_gate"
    assert "heroSelection.articleIndex must be one of selectedArticles.articleIndex" in exc_info.value.issues


def test_enforce_rejects_oversized_integer_citation(report_payload) -> None:
    raw = _raw(report_payload).replace('"citations": [2', '"citations": [' + "2" * 5000, 1)

    with pytest.raises(ContractViolationError) as exc_info:
        enforce_output_contract(raw, max_article_index=10, required_count=3)

    assert exc_info.value.stage == "parse"


def test_enforce_rejects_deeply_nested_output() -> None:
    with pytest.raises(ContractViolationError) as exc_info:
        enforce_output_contract("[" * 200000 + "]" * 200000, max_article_index=10, required_count=3)

    assert exc_info.value.stage == "parse"


def test_enforce_rejects_empty_corpus(report_payload) -> None:
    with pytest.raises(ContractViolationError) as exc_info:
        enforce_output_contract(_raw(report_payload), max_article_index=0, required_count=3)
    assert exc_info.value.stage == "input"


def test_enforce_rejects_non_positive_required_count(report_payload) -> None:
    with pytest.raises(ContractViolationError) as exc_info:
        enforce_output_contract(_raw(report_payload), max_article_index=10, required_count=0)

    assert exc_info.value.stage == "input"
    assert exc_info.value.issues == ["requiredCount: must be at least 1"]


def test_cross_reference_check_lists_each_violation_once(report_payload) -> None:
    report_payload["title"] = "The Daily Brief"
    report_payload["heroSelection"] = {"articleIndex": 9}
    report_payload["summaryBullets"][0]["citations"] = [9]
    report_payload["summaryBullets"][1]["citations"] = [9]
    report_payload["selectedArticles"].append({**report_payload["selectedArticles"][0], "articleIndex": 12})
    output, issues = validate_structured_output(report_payload)
    assert issues == []

    issues = check_cross_references(output, max_article_index=10, required_count=3)

    assert issues == [
        "selectedArticles.articleIndex must be between 1 and 10",
        "selectedArticles cannot exceed 3 entries",
        "heroSelection.articleIndex must be one of selectedArticles.articleIndex",
        "Citation 9 must reference a selected article index",
        "Title must be 8-14 words",
        "Title cannot include 'Daily Brief'",
    ]
