from __future__ import annotations

import json
import logging

from briefguard.config import settings
from briefguard.contract.checks import action_total, check_cross_references, impact_total
from briefguard.contract.normalize import normalize_output_payload
from briefguard.contract.schema import (
    ModelOutputParseError,
    StructuredOutput,
    parse_model_json,
    validate_structured_output,
)

logger = logging.getLogger("briefguard.contract")


class ContractViolationError(ValueError):
    """Raised when generated output cannot be turned into a contract-valid report.

    ``issues`` is the ordered list handed back to the generation retry loop; the
    exception message is that list encoded as a JSON array.
    """

    def __init__(self, issues: list[str], *, stage: str) -> None:
        self.issues = list(issues)
        self.stage = stage
        super().__init__(json.dumps(self.issues))


def enforce_output_contract(
    raw: str,
    *,
    max_article_index: int,
    required_count: int | None = None,
) -> StructuredOutput:
    """Parse, validate and normalize one generation attempt.

    Schema violations fail before any repair. After normalization the
    cross-reference checks run again as a final gate, so a repair defect surfaces
    as a ``ContractViolationError`` rather than an invalid report.
    """
    required = required_count if required_count is not None else settings.contract_default_required_count
    input_issues: list[str] = []
    if max_article_index < 1:
        input_issues.append("maxArticleIndex: must be at least 1")
    if required < 1:
        input_issues.append("requiredCount: must be at least 1")
    if input_issues:
        raise ContractViolationError(input_issues, stage="input")

    try:
        parsed = parse_model_json(raw)
    except ModelOutputParseError as exc:
        _log_rejection("parse", [f"output: {exc}"], raw)
        raise ContractViolationError([f"output: {exc}"], stage="parse") from exc

    validated, schema_issues = validate_structured_output(parsed)
    if validated is None:
        _log_rejection("schema", schema_issues, raw)
        raise ContractViolationError(schema_issues, stage="schema")

    normalized_payload = normalize_output_payload(
        validated.to_payload(),
        required_count=required,
        max_article_index=max_article_index,
        guard_limit=settings.contract_guard_limit,
        max_citations=settings.contract_max_citations,
    )
    output, gate_issues = validate_structured_output(normalized_payload)
    if output is not None:
        gate_issues = check_cross_references(
            output,
            max_article_index=max_article_index,
            required_count=required,
        )
    if gate_issues:
        _log_rejection("final_gate", gate_issues, raw)
        raise ContractViolationError(gate_issues, stage="final_gate")

    logger.info(
        "contract_enforced",
        extra={
            "event": "contract_enforced",
            "selected_articles": [article.article_index for article in output.selected_articles],
            "hero_article_index": output.hero_selection.article_index,
            "impact_total": impact_total(output),
            "action_total": action_total(output),
            "title_repaired": output.title != validated.title,
        },
    )
    return output


def _log_rejection(stage: str, issues: list[str], raw: str) -> None:
    logger.warning(
        "contract_rejected",
        extra={
            "event": "contract_rejected",
            "stage": stage,
            "issue_count": len(issues),
            "issues": issues[:10],
            "raw": raw,
        },
    )
