from briefguard.grounding.models import (
    BriefInput,
    Claim,
    CorpusEntry,
    Evidence,
    EvidenceResult,
    EvidenceStats,
    Source,
)
from briefguard.grounding.policy import GroundingPolicy

__all__ = [
    "BriefInput",
    "Claim",
    "CorpusEntry",
    "Evidence",
    "EvidenceResult",
    "EvidenceStats",
    "GroundingPolicy",
    "Source",
]
