from __future__ import annotations

from fastapi import APIRouter

from briefguard.api.contracts import AttachEvidenceRequest, FactCheckRequest
from briefguard.grounding.factcheck import validate_numeric_claims
from briefguard.grounding.matcher import attach_evidence


router = APIRouter(prefix="/evidence")


@router.post("/attach")
def attach(payload: AttachEvidenceRequest) -> dict[str, object]:
    result = attach_evidence(
        payload.brief,
        payload.corpus,
        vocabulary=payload.vocabulary,
        now_iso=payload.now_iso,
    )
    return result.to_payload()


@router.post("/factcheck")
def factcheck(payload: FactCheckRequest) -> dict[str, object]:
    issues = validate_numeric_claims(payload.brief, payload.corpus, vocabulary=payload.vocabulary)
    return {"issues": issues, "issue_count": len(issues)}
