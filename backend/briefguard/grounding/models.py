from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ClaimSection = Literal[
    "summary",
    "highlight",
    "procurement_action",
    "watchlist",
    "delta",
    "top_story",
    "category_importance",
    "market_indicator",
    "vp_snapshot",
    "cm_snapshot",
    "other",
]
ClaimStatus = Literal["supported", "analysis", "needs_verification"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class BriefFragment(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# Brief input: claim-bearing text fields. Unknown keys are kept so the cleaned
# brief round-trips everything the caller sent.


class BriefArticle(BriefFragment):
    title: str | None = None
    url: str | None = None
    brief_content: str | None = None
    category_importance: str | None = None
    key_metrics: list[str] | None = None
    source_index: int | None = None
    source_id: str | None = None
    published_at: str | None = None


class BriefIndicator(BriefFragment):
    id: str | None = None
    label: str | None = None
    url: str | None = None
    note: str = ""
    source_id: str | None = None


class VpHealth(BriefFragment):
    narrative: str | None = None


class VpSignal(BriefFragment):
    title: str = ""
    impact: str = ""
    evidence_article_index: int | None = None


class VpAction(BriefFragment):
    action: str = ""
    expected_impact: str = ""
    evidence_article_index: int | None = None


class VpRisk(BriefFragment):
    risk: str = ""
    mitigation: str = ""
    trigger: str = ""
    evidence_article_index: int | None = None


class VpSnapshot(BriefFragment):
    health: VpHealth | None = None
    top_signals: list[VpSignal] | None = None
    recommended_actions: list[VpAction] | None = None
    risk_register: list[VpRisk] | None = None


class CmPriority(BriefFragment):
    title: str = ""
    why: str = ""
    evidence_article_index: int | None = None


class CmSupplierSignal(BriefFragment):
    supplier: str = ""
    signal: str = ""
    implication: str = ""
    next_step: str = ""
    evidence_article_index: int | None = None


class CmLever(BriefFragment):
    lever: str = ""
    when_to_use: str = ""
    expected_outcome: str = ""
    evidence_article_index: int | None = None


class CmSnapshot(BriefFragment):
    today_priorities: list[CmPriority] | None = None
    supplier_radar: list[CmSupplierSignal] | None = None
    negotiation_levers: list[CmLever] | None = None
    intel_gaps: list[str] | None = None
    talking_points: list[str] | None = None


class DecisionSummary(BriefFragment):
    top_move: str = ""
    what_changed: list[str] = Field(default_factory=list)
    do_next: list[str] = Field(default_factory=list)
    watch_this_week: list[str] = Field(default_factory=list)


class BriefInput(BriefFragment):
    title: str | None = None
    summary: str | None = None
    highlights: list[str] | None = None
    procurement_actions: list[str] | None = None
    watchlist: list[str] | None = None
    delta_since_last_run: list[str] | None = None
    selected_articles: list[BriefArticle] | None = None
    market_indicators: list[BriefIndicator] | None = None
    vp_snapshot: VpSnapshot | None = None
    cm_snapshot: CmSnapshot | None = None
    decision_summary: DecisionSummary | None = None


class CorpusEntry(FrozenCamelModel):
    index: int = Field(..., ge=1)
    url: str = Field(..., min_length=1)
    title: str | None = None
    content: str | None = None
    published_at: str | None = None
    content_status: str | None = None

    @property
    def has_usable_content(self) -> bool:
        return bool(self.content) and self.content_status != "thin"


# Grounding output.


class Evidence(FrozenCamelModel):
    source_id: str
    url: str
    title: str | None = None
    excerpt: str = Field(..., max_length=520)
    start_offset: int | None = None
    end_offset: int | None = None
    content_hash: str
    similarity: float = Field(..., ge=0.0, le=1.0)


class Claim(FrozenCamelModel):
    id: str
    section: ClaimSection
    text: str
    status: ClaimStatus
    evidence: list[Evidence] = Field(default_factory=list)


class Source(FrozenCamelModel):
    source_id: str
    url: str
    title: str | None = None
    published_at: str | None = None
    retrieved_at: str | None = None


class EvidenceStats(FrozenCamelModel):
    supported: int = 0
    analysis: int = 0
    needs_verification: int = 0
    total: int = 0


class EvidenceResult(FrozenCamelModel):
    brief: dict[str, object]
    claims: list[Claim]
    sources: list[Source]
    issues: list[str]
    stats: EvidenceStats
