from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Mapping, Sequence

from briefguard.config import settings
from briefguard.evidence_tags import TagVocabulary, parse_evidence_tag, strip_evidence_tag
from briefguard.grounding.models import (
    BriefArticle,
    BriefIndicator,
    BriefInput,
    Claim,
    ClaimSection,
    ClaimStatus,
    CmSnapshot,
    CorpusEntry,
    DecisionSummary,
    Evidence,
    EvidenceResult,
    EvidenceStats,
    Source,
    VpSnapshot,
)
from briefguard.grounding.policy import GroundingPolicy
from briefguard.grounding.sources import (
    build_source_catalog,
    build_source_id,
    core_sources,
    source_for_corpus_entry,
)
from briefguard.numeric_tokens import has_numeric_token
from briefguard.similarity import find_best_excerpt

logger = logging.getLogger("briefguard.evidence")

CLAIM_PREVIEW_CHARS = 120


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def build_claim_id(section: str, text: str, index: int) -> str:
    return f"claim_{hash_text(f'{section}:{index}:{text}')[:10]}"


def corpus_from_articles(articles: Sequence[Mapping[str, object]]) -> list[CorpusEntry]:
    """Number raw article records 1..N in list order, matching citation numbering."""
    return [
        CorpusEntry.model_validate({**article, "index": position})
        for position, article in enumerate(articles, start=1)
    ]


def find_offsets(content: str, excerpt: str) -> tuple[int | None, int | None]:
    if not content or not excerpt:
        return None, None
    start = content.find(excerpt)
    if start == -1:
        return None, None
    return start, start + len(excerpt)


def guess_evidence_index(claim: str, corpus: Sequence[CorpusEntry], policy: GroundingPolicy) -> int | None:
    """Corpus index whose best sentence or sentence pair clears the auto-match threshold."""
    best_score = 0.0
    best_index: int | None = None
    for entry in corpus:
        if not entry.has_usable_content:
            continue
        match = find_best_excerpt(claim, entry.content or "", max_chars=policy.excerpt_max_chars)
        if match.excerpt and match.similarity > best_score:
            best_score = match.similarity
            best_index = entry.index
    if best_index is not None and best_score >= policy.auto_match_threshold:
        return best_index
    return None


def build_evidence(
    claim: str,
    entry: CorpusEntry | None,
    source: Source | None,
    policy: GroundingPolicy,
) -> Evidence | None:
    """Evidence for ``claim`` in one corpus entry, or None when support is below threshold."""
    if entry is None or source is None or not entry.has_usable_content:
        return None
    content = entry.content or ""
    match = find_best_excerpt(claim, content, max_chars=policy.excerpt_max_chars)
    if not match.excerpt or match.similarity < policy.similarity_threshold:
        return None
    start, end = find_offsets(content, match.excerpt)
    return Evidence(
        source_id=source.source_id,
        url=source.url,
        title=entry.title,
        excerpt=match.excerpt,
        start_offset=start,
        end_offset=end,
        content_hash=hash_text(match.excerpt),
        similarity=round(match.similarity, 4),
    )


def _clean_texts(values: list[str] | None) -> list[str]:
    return [cleaned for cleaned in (strip_evidence_tag(value) for value in values or []) if cleaned]


def _clean_article(article: BriefArticle) -> BriefArticle:
    return article.model_copy(
        update={
            "source_id": build_source_id(article.url) if article.url else article.source_id,
            "brief_content": strip_evidence_tag(article.brief_content),
            "category_importance": (
                strip_evidence_tag(article.category_importance) if article.category_importance else None
            ),
            "key_metrics": _clean_texts(article.key_metrics) if article.key_metrics is not None else None,
        }
    )


def _clean_indicator(indicator: BriefIndicator) -> BriefIndicator:
    return indicator.model_copy(
        update={
            "source_id": build_source_id(indicator.url) if indicator.url else indicator.source_id,
            "note": strip_evidence_tag(indicator.note),
        }
    )


def _clean_vp_snapshot(snapshot: VpSnapshot) -> VpSnapshot:
    update: dict[str, object] = {}
    if snapshot.health is not None:
        update["health"] = snapshot.health.model_copy(
            update={"narrative": strip_evidence_tag(snapshot.health.narrative)}
        )
    if snapshot.top_signals is not None:
        update["top_signals"] = [
            item.model_copy(update={"title": strip_evidence_tag(item.title), "impact": strip_evidence_tag(item.impact)})
            for item in snapshot.top_signals
        ]
    if snapshot.recommended_actions is not None:
        update["recommended_actions"] = [
            item.model_copy(
                update={
                    "action": strip_evidence_tag(item.action),
                    "expected_impact": strip_evidence_tag(item.expected_impact),
                }
            )
            for item in snapshot.recommended_actions
        ]
    if snapshot.risk_register is not None:
        update["risk_register"] = [
            item.model_copy(
                update={
                    "risk": strip_evidence_tag(item.risk),
                    "mitigation": strip_evidence_tag(item.mitigation),
                    "trigger": strip_evidence_tag(item.trigger),
                }
            )
            for item in snapshot.risk_register
        ]
    return snapshot.model_copy(update=update)


def _clean_cm_snapshot(snapshot: CmSnapshot) -> CmSnapshot:
    update: dict[str, object] = {}
    if snapshot.today_priorities is not None:
        update["today_priorities"] = [
            item.model_copy(update={"title": strip_evidence_tag(item.title), "why": strip_evidence_tag(item.why)})
            for item in snapshot.today_priorities
        ]
    if snapshot.supplier_radar is not None:
        update["supplier_radar"] = [
            item.model_copy(
                update={
                    "supplier": strip_evidence_tag(item.supplier),
                    "signal": strip_evidence_tag(item.signal),
                    "implication": strip_evidence_tag(item.implication),
                    "next_step": strip_evidence_tag(item.next_step),
                }
            )
            for item in snapshot.supplier_radar
        ]
    if snapshot.negotiation_levers is not None:
        update["negotiation_levers"] = [
            item.model_copy(
                update={
                    "lever": strip_evidence_tag(item.lever),
                    "when_to_use": strip_evidence_tag(item.when_to_use),
                    "expected_outcome": strip_evidence_tag(item.expected_outcome),
                }
            )
            for item in snapshot.negotiation_levers
        ]
    if snapshot.intel_gaps is not None:
        update["intel_gaps"] = _clean_texts(snapshot.intel_gaps)
    if snapshot.talking_points is not None:
        update["talking_points"] = _clean_texts(snapshot.talking_points)
    return snapshot.model_copy(update=update)


def _clean_decision_summary(summary: DecisionSummary) -> DecisionSummary:
    return summary.model_copy(
        update={
            "top_move": strip_evidence_tag(summary.top_move),
            "what_changed": _clean_texts(summary.what_changed),
            "do_next": _clean_texts(summary.do_next),
            "watch_this_week": _clean_texts(summary.watch_this_week),
        }
    )


def clean_brief(brief: BriefInput) -> BriefInput:
    """Copy of ``brief`` with every citation marker removed from user-visible text."""
    return brief.model_copy(
        update={
            "title": strip_evidence_tag(brief.title) if brief.title else brief.title,
            "summary": strip_evidence_tag(brief.summary) if brief.summary else brief.summary,
            "highlights": _clean_texts(brief.highlights),
            "procurement_actions": _clean_texts(brief.procurement_actions),
            "watchlist": _clean_texts(brief.watchlist),
            "delta_since_last_run": _clean_texts(brief.delta_since_last_run),
            "selected_articles": (
                [_clean_article(article) for article in brief.selected_articles]
                if brief.selected_articles is not None
                else None
            ),
            "market_indicators": (
                [_clean_indicator(indicator) for indicator in brief.market_indicators]
                if brief.market_indicators is not None
                else None
            ),
            "vp_snapshot": _clean_vp_snapshot(brief.vp_snapshot) if brief.vp_snapshot else None,
            "cm_snapshot": _clean_cm_snapshot(brief.cm_snapshot) if brief.cm_snapshot else None,
            "decision_summary": (
                _clean_decision_summary(brief.decision_summary) if brief.decision_summary else None
            ),
        }
    )


def selected_source_indices(brief: BriefInput) -> set[int]:
    return {
        article.source_index
        for article in brief.selected_articles or []
        if article.source_index is not None and article.source_index > 0
    }


def iter_brief_claims(brief: BriefInput) -> list[tuple[ClaimSection, str, int | None]]:
    """Claim-bearing strings of a brief with their section and structural article index."""
    items: list[tuple[ClaimSection, str, int | None]] = []
    items.append(("summary", brief.summary or "", None))
    items.extend(("highlight", text, None) for text in brief.highlights or [])
    items.extend(("procurement_action", text, None) for text in brief.procurement_actions or [])
    items.extend(("watchlist", text, None) for text in brief.watchlist or [])
    items.extend(("delta", text, None) for text in brief.delta_since_last_run or [])

    for article in brief.selected_articles or []:
        if article.brief_content:
            items.append(("top_story", article.brief_content, article.source_index))
        if article.category_importance:
            items.append(("category_importance", article.category_importance, article.source_index))
        items.extend(("top_story", metric, article.source_index) for metric in article.key_metrics or [])

    items.extend(("market_indicator", indicator.note, None) for indicator in brief.market_indicators or [])

    vp = brief.vp_snapshot
    if vp is not None:
        if vp.health is not None and vp.health.narrative:
            items.append(("vp_snapshot", vp.health.narrative, None))
        for signal in vp.top_signals or []:
            items.append(("vp_snapshot", signal.title, signal.evidence_article_index))
            items.append(("vp_snapshot", signal.impact, signal.evidence_article_index))
        for action in vp.recommended_actions or []:
            items.append(("vp_snapshot", action.action, action.evidence_article_index))
            items.append(("vp_snapshot", action.expected_impact, action.evidence_article_index))
        for risk in vp.risk_register or []:
            for text in (risk.risk, risk.mitigation, risk.trigger):
                items.append(("vp_snapshot", text, risk.evidence_article_index))

    cm = brief.cm_snapshot
    if cm is not None:
        for priority in cm.today_priorities or []:
            for text in (priority.title, priority.why):
                items.append(("cm_snapshot", text, priority.evidence_article_index))
        for radar in cm.supplier_radar or []:
            for text in (radar.supplier, radar.signal, radar.implication, radar.next_step):
                items.append(("cm_snapshot", text, radar.evidence_article_index))
        for lever in cm.negotiation_levers or []:
            for text in (lever.lever, lever.when_to_use, lever.expected_outcome):
                items.append(("cm_snapshot", text, lever.evidence_article_index))
        items.extend(("cm_snapshot", text, None) for text in cm.intel_gaps or [])
        items.extend(("cm_snapshot", text, None) for text in cm.talking_points or [])

    return items


def is_strict_claim(claim: Claim, policy: GroundingPolicy) -> bool:
    if claim.section in policy.strict_sections:
        return True
    return claim.section == "top_story" and has_numeric_token(claim.text)


def attach_evidence(
    brief: BriefInput | Mapping[str, object],
    corpus: Sequence[CorpusEntry | Mapping[str, object]],
    *,
    vocabulary: TagVocabulary = "article",
    now_iso: str | None = None,
    policy: GroundingPolicy | None = None,
) -> EvidenceResult:
    """Ground every claim of ``brief`` in ``corpus`` and build the source catalog.

    Claims keep brief order. Explicit ``(analysis)`` claims are exempt from
    grounding; everything else is supported only when its best excerpt in the
    resolved corpus entry clears the similarity threshold.
    """
    policy = policy or settings.grounding_policy()
    retrieved_at = now_iso or datetime.now(timezone.utc).isoformat()
    brief_model = brief if isinstance(brief, BriefInput) else BriefInput.model_validate(brief)
    entries = [entry if isinstance(entry, CorpusEntry) else CorpusEntry.model_validate(entry) for entry in corpus]

    corpus_by_index = {entry.index: entry for entry in entries}
    selected = selected_source_indices(brief_model)
    allowed = selected or set(corpus_by_index)
    corpus_for_match = [entry for entry in entries if entry.index in allowed]
    index_to_source = {entry.index: source_for_corpus_entry(entry, retrieved_at) for entry in entries}

    claims: list[Claim] = []
    issues: list[str] = []
    counts: dict[ClaimStatus, int] = {"supported": 0, "analysis": 0, "needs_verification": 0}

    for section, raw_text, structural_index in iter_brief_claims(brief_model):
        text = strip_evidence_tag(raw_text)
        if not text:
            continue
        tag = parse_evidence_tag(raw_text, vocabulary)

        evidence_index = tag.index if tag.kind == "source" else None
        if evidence_index is None and structural_index:
            evidence_index = structural_index
        if evidence_index is not None and evidence_index not in allowed:
            issues.append(f"Evidence tag references non-selected index {evidence_index} for section {section}.")
            evidence_index = None
        if evidence_index is not None and evidence_index not in corpus_by_index:
            issues.append(f"Evidence tag references unknown index {evidence_index} for section {section}.")
            evidence_index = None
        if evidence_index is None and tag.kind == "none":
            evidence_index = guess_evidence_index(text, corpus_for_match, policy)

        evidence: list[Evidence] = []
        status: ClaimStatus
        if tag.kind == "analysis":
            status = "analysis"
        else:
            found = None
            if evidence_index is not None:
                found = build_evidence(
                    text,
                    corpus_by_index.get(evidence_index),
                    index_to_source.get(evidence_index),
                    policy,
                )
            if found is not None:
                status = "supported"
                evidence.append(found)
            else:
                status = "needs_verification"

        if status == "needs_verification" and tag.kind == "none" and section in policy.auto_analysis_sections:
            status = "analysis"

        claims.append(
            Claim(
                id=build_claim_id(section, text, len(claims)),
                section=section,
                text=text,
                status=status,
                evidence=evidence,
            )
        )
        counts[status] += 1

    for claim in claims:
        if claim.status == "needs_verification" and is_strict_claim(claim, policy):
            issues.append(f'Claim needs verification: {claim.section} "{claim.text[:CLAIM_PREVIEW_CHARS]}"')

    used_ids = {item.source_id for claim in claims if claim.status == "supported" for item in claim.evidence}
    used_sources = [source for source in index_to_source.values() if source.source_id in used_ids]
    sources = build_source_catalog(
        used_sources,
        core_sources(brief_model.selected_articles, brief_model.market_indicators, retrieved_at),
    )

    stats = EvidenceStats(
        supported=counts["supported"],
        analysis=counts["analysis"],
        needs_verification=counts["needs_verification"],
        total=len(claims),
    )
    cleaned = clean_brief(brief_model).to_payload()
    cleaned["claims"] = [claim.to_payload() for claim in claims]
    cleaned["sources"] = [source.to_payload() for source in sources]

    logger.info(
        "evidence_attached",
        extra={
            "event": "evidence_attached",
            "vocabulary": vocabulary,
            "corpus_size": len(entries),
            "selected_indices": sorted(selected),
            "claims_total": stats.total,
            "claims_supported": stats.supported,
            "claims_analysis": stats.analysis,
            "claims_needs_verification": stats.needs_verification,
            "source_count": len(sources),
            "issue_count": len(issues),
        },
    )
    return EvidenceResult(brief=cleaned, claims=claims, sources=sources, issues=issues, stats=stats)
