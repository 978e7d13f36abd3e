from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from briefguard.api.contracts import EnforceContractRequest
from briefguard.contract import ContractViolationError, enforce_output_contract


router = APIRouter(prefix="/contract")


@router.post("/enforce", response_model=None)
def enforce(payload: EnforceContractRequest) -> JSONResponse:
    try:
        output = enforce_output_contract(
            payload.raw,
            max_article_index=payload.max_article_index,
            required_count=payload.required_count,
        )
    except ContractViolationError as exc:
        return JSONResponse(
            status_code=422,
            content={
                "message": "Generated output violates the report contract.",
                "stage": exc.stage,
                "issues": exc.issues,
            },
        )
    return JSONResponse(status_code=200, content={"output": output.to_payload(), "issues": []})
