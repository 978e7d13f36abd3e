from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from briefguard.config import settings
from briefguard.version import APP_VERSION


router = APIRouter()


@router.get("/")
def root() -> dict[str, str]:
    return {"service": "briefguard", "status": "running", "version": APP_VERSION}


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.app_env}


@router.get("/ready", response_model=None)
def ready() -> JSONResponse:
    policy = settings.grounding_policy()
    problems = policy.problems()
    payload: dict[str, object] = {
        "status": "ready" if not problems else "not_ready",
        "environment": settings.app_env,
        "checks": {
            "grounding_policy": {
                "ok": not problems,
                "similarity_threshold": policy.similarity_threshold,
                "auto_match_threshold": policy.auto_match_threshold,
                "strict_sections": sorted(policy.strict_sections),
                "errors": problems,
            }
        },
    }
    return JSONResponse(status_code=200 if not problems else 503, content=payload)
