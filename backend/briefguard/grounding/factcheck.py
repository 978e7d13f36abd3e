from __future__ import annotations

import logging
from typing import Mapping, Sequence

from briefguard.evidence_tags import TagVocabulary, has_bracket_citations, parse_evidence_tag
from briefguard.grounding.matcher import selected_source_indices
from briefguard.grounding.models import BriefInput, CorpusEntry
from briefguard.numeric_tokens import content_contains_all_tokens, extract_numeric_tokens

logger = logging.getLogger("briefguard.factcheck")

ISSUE_PREFIX = "FACTCHECK: "


def _prepare(
    brief: BriefInput | Mapping[str, object],
    corpus: Sequence[CorpusEntry | Mapping[str, object]],
) -> tuple[BriefInput, dict[int, str], list[str]]:
    brief_model = brief if isinstance(brief, BriefInput) else BriefInput.model_validate(brief)
    entries = [entry if isinstance(entry, CorpusEntry) else CorpusEntry.model_validate(entry) for entry in corpus]
    content_by_index = {entry.index: entry.content or "" for entry in entries}
    selected = selected_source_indices(brief_model)
    selected_contents = (
        [content_by_index.get(index, "") for index in sorted(selected)]
        if selected
        else list(content_by_index.values())
    )
    return brief_model, content_by_index, selected_contents


def _log_checked(vocabulary: TagVocabulary, checked: int, issues: list[str]) -> None:
    logger.info(
        "numeric_claims_checked",
        extra={
            "event": "numeric_claims_checked",
            "vocabulary": vocabulary,
            "numeric_fields": checked,
            "issue_count": len(issues),
        },
    )


def validate_numeric_claims(
    brief: BriefInput | Mapping[str, object],
    corpus: Sequence[CorpusEntry | Mapping[str, object]],
    *,
    vocabulary: TagVocabulary = "article",
) -> list[str]:
    """Check that numbers in brief text are literally present in their cited source.

    Procurement actions and watchlist items must carry attribution when they
    contain numbers, and must not hide numbers behind an ``(analysis)`` tag.
    Summary-style sections may hold untagged numbers. The brief is not modified.

    The ``candidate`` vocabulary applies the market dashboard rules of
    :func:`validate_candidate_numeric_claims` instead.
    """
    if vocabulary == "candidate":
        return validate_candidate_numeric_claims(brief, corpus)

    brief_model, content_by_index, selected_contents = _prepare(brief, corpus)
    issues: list[str] = []
    checked = 0

    def record(message: str) -> None:
        issues.append(f"{ISSUE_PREFIX}{message}")

    def check_source_content(path: str, tokens: list[str], index: int) -> None:
        if not content_contains_all_tokens(tokens, content_by_index.get(index, "")):
            record(f"{path} contains '{', '.join(tokens)}' but not found in articleIndex {index} content.")

    def check_generic(path: str, text: str, require_evidence: bool) -> None:
        nonlocal checked
        tokens = extract_numeric_tokens(text)
        if not tokens:
            return
        checked += 1
        tag = parse_evidence_tag(text, "article")
        if tag.kind == "analysis":
            if require_evidence:
                record(
                    f"{path} is labeled (analysis) but contains numeric tokens ({', '.join(tokens)}); "
                    "analysis claim must not contain numbers."
                )
            return
        if tag.kind == "source" and tag.index is not None:
            check_source_content(path, tokens, tag.index)
            return
        if not require_evidence:
            return
        if not has_bracket_citations(text):
            record(f"{path} has numbers but is missing evidence tag.")
        elif not any(content_contains_all_tokens(tokens, content) for content in selected_contents):
            record(f"{path} contains '{', '.join(tokens)}' but not found in selected source content.")

    def check_anchored(path: str, text: str, evidence_index: int | None) -> None:
        nonlocal checked
        tokens = extract_numeric_tokens(text)
        if not tokens:
            return
        checked += 1
        tag = parse_evidence_tag(text, "article")
        effective_index = tag.index if tag.kind == "source" else evidence_index
        if not effective_index:
            # No attribution anchor: treated as analyst interpretation.
            return
        check_source_content(path, tokens, effective_index)

    if brief_model.summary:
        check_generic("summary", brief_model.summary, False)
    for idx, item in enumerate(brief_model.highlights or []):
        check_generic(f"highlights[{idx}]", item, False)
    for idx, item in enumerate(brief_model.procurement_actions or []):
        check_generic(f"procurementActions[{idx}]", item, True)
    for idx, item in enumerate(brief_model.watchlist or []):
        check_generic(f"watchlist[{idx}]", item, True)
    for idx, item in enumerate(brief_model.delta_since_last_run or []):
        check_generic(f"deltaSinceLastRun[{idx}]", item, False)

    for idx, article in enumerate(brief_model.selected_articles or []):
        base = f"selectedArticles[{idx}]"
        if article.brief_content:
            check_anchored(f"{base}.briefContent", article.brief_content, article.source_index)
        if article.category_importance:
            check_anchored(f"{base}.categoryImportance", article.category_importance, article.source_index)
        for metric_idx, metric in enumerate(article.key_metrics or []):
            check_anchored(f"{base}.keyMetrics[{metric_idx}]", metric, article.source_index)

    vp = brief_model.vp_snapshot
    if vp is not None:
        if vp.health is not None and vp.health.narrative:
            check_generic("vpSnapshot.health.narrative", vp.health.narrative, False)
        for idx, signal in enumerate(vp.top_signals or []):
            check_anchored(f"vpSnapshot.topSignals[{idx}].title", signal.title, signal.evidence_article_index)
            check_anchored(f"vpSnapshot.topSignals[{idx}].impact", signal.impact, signal.evidence_article_index)
        for idx, action in enumerate(vp.recommended_actions or []):
            base = f"vpSnapshot.recommendedActions[{idx}]"
            check_anchored(f"{base}.action", action.action, action.evidence_article_index)
            check_anchored(f"{base}.expectedImpact", action.expected_impact, action.evidence_article_index)
        for idx, risk in enumerate(vp.risk_register or []):
            base = f"vpSnapshot.riskRegister[{idx}]"
            check_anchored(f"{base}.risk", risk.risk, risk.evidence_article_index)
            check_anchored(f"{base}.mitigation", risk.mitigation, risk.evidence_article_index)
            check_anchored(f"{base}.trigger", risk.trigger, risk.evidence_article_index)

    cm = brief_model.cm_snapshot
    if cm is not None:
        for idx, priority in enumerate(cm.today_priorities or []):
            base = f"cmSnapshot.todayPriorities[{idx}]"
            check_anchored(f"{base}.title", priority.title, priority.evidence_article_index)
            check_anchored(f"{base}.why", priority.why, priority.evidence_article_index)
        for idx, radar in enumerate(cm.supplier_radar or []):
            base = f"cmSnapshot.supplierRadar[{idx}]"
            check_anchored(f"{base}.supplier", radar.supplier, radar.evidence_article_index)
            check_anchored(f"{base}.signal", radar.signal, radar.evidence_article_index)
            check_anchored(f"{base}.implication", radar.implication, radar.evidence_article_index)
            check_anchored(f"{base}.nextStep", radar.next_step, radar.evidence_article_index)
        for idx, lever in enumerate(cm.negotiation_levers or []):
            base = f"cmSnapshot.negotiationLevers[{idx}]"
            check_anchored(f"{base}.lever", lever.lever, lever.evidence_article_index)
            check_anchored(f"{base}.whenToUse", lever.when_to_use, lever.evidence_article_index)
            check_anchored(f"{base}.expectedOutcome", lever.expected_outcome, lever.evidence_article_index)
        for idx, item in enumerate(cm.intel_gaps or []):
            check_generic(f"cmSnapshot.intelGaps[{idx}]", item, False)
        for idx, item in enumerate(cm.talking_points or []):
            check_generic(f"cmSnapshot.talkingPoints[{idx}]", item, False)

    _log_checked("article", checked, issues)
    return issues


def validate_candidate_numeric_claims(
    brief: BriefInput | Mapping[str, object],
    corpus: Sequence[CorpusEntry | Mapping[str, object]],
) -> list[str]:
    """Market dashboard variant keyed by ``candidateIndex``.

    Only the summary, highlights, procurement actions and watchlist are read.
    Summary and highlights may carry numbers freely. In the two strict sections
    a tagged mismatch is reported, and an untagged number is reported as missing
    its tag plus, when no selected candidate holds it, as unsupported.
    """
    brief_model, content_by_index, selected_contents = _prepare(brief, corpus)
    issues: list[str] = []
    checked = 0

    def record(message: str) -> None:
        issues.append(f"{ISSUE_PREFIX}{message}")

    def check(path: str, text: str, require_evidence: bool) -> None:
        nonlocal checked
        tokens = extract_numeric_tokens(text)
        if not tokens:
            return
        checked += 1
        if not require_evidence:
            return
        joined = ", ".join(tokens)
        tag = parse_evidence_tag(text, "candidate")
        if tag.kind == "analysis":
            record(f"{path} is labeled (analysis) but contains numeric tokens ({joined}).")
            return
        if tag.kind == "source" and tag.index is not None:
            if not content_contains_all_tokens(tokens, content_by_index.get(tag.index, "")):
                record(f"{path} contains '{joined}' but not found in candidateIndex {tag.index} content.")
            return
        record(f"{path} has numbers but is missing an evidence tag.")
        if not any(content_contains_all_tokens(tokens, content) for content in selected_contents):
            record(f"{path} contains '{joined}' but not found in selected candidate content.")

    if brief_model.summary:
        check("summary", brief_model.summary, False)
    for idx, item in enumerate(brief_model.highlights or []):
        check(f"highlights[{idx}]", item, False)
    for idx, item in enumerate(brief_model.procurement_actions or []):
        check(f"procurementActions[{idx}]", item, True)
    for idx, item in enumerate(brief_model.watchlist or []):
        check(f"watchlist[{idx}]", item, True)

    _log_checked("candidate", checked, issues)
    return issues
