from __future__ import annotations

import json
import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

SignalLevel = Literal["confirmed", "early-signal", "unconfirmed"]
ActionOwner = Literal["Category", "Contracts", "Legal", "Ops"]

ArticleRef = Annotated[int, Field(strict=True, gt=0)]
CitationList = Annotated[list[ArticleRef], Field(min_length=1, max_length=4)]

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", flags=re.IGNORECASE | re.DOTALL)


class ModelOutputParseError(ValueError):
    """Raised when generated text does not contain a JSON document."""


class ContractModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class CitedBullet(ContractModel):
    text: str = Field(..., min_length=12, max_length=400)
    citations: CitationList
    signal: SignalLevel | None = None


class Action(ContractModel):
    action: str = Field(..., min_length=8, max_length=180)
    rationale: str = Field(..., min_length=8, max_length=260)
    owner: ActionOwner
    expected_outcome: str = Field(..., min_length=8, max_length=220)
    citations: CitationList


class ImpactGroups(ContractModel):
    market_cost_drivers: list[CitedBullet] = Field(..., min_length=2, max_length=5)
    supply_base_capacity: list[CitedBullet] = Field(..., min_length=2, max_length=5)
    contracting_commercial_terms: list[CitedBullet] = Field(..., min_length=2, max_length=5)
    risk_regulatory_operational_constraints: list[CitedBullet] = Field(..., min_length=2, max_length=5)


class ActionHorizons(ContractModel):
    next_72_hours: list[Action] = Field(..., alias="next72Hours", min_length=2, max_length=4)
    next_2_to_4_weeks: list[Action] = Field(..., alias="next2to4Weeks", min_length=2, max_length=5)
    next_quarter: list[Action] = Field(..., min_length=2, max_length=5)


class SelectedArticle(ContractModel):
    article_index: ArticleRef
    brief_content: str = Field(..., min_length=80, max_length=1300)
    category_importance: str = Field(..., min_length=24, max_length=350)
    key_metrics: list[Annotated[str, Field(min_length=3, max_length=120)]] | None = Field(default=None, max_length=6)
    image_alt: str | None = Field(default=None, min_length=3, max_length=180)


class HeroSelection(ContractModel):
    article_index: ArticleRef


class MarketIndicatorNote(ContractModel):
    index_id: str = Field(..., min_length=2)
    note: str = Field(..., min_length=8, max_length=240)


class StructuredOutput(ContractModel):
    title: str = Field(..., min_length=8, max_length=160)
    summary_bullets: list[CitedBullet] = Field(..., min_length=5, max_length=8)
    impact: ImpactGroups
    possible_actions: ActionHorizons
    selected_articles: list[SelectedArticle] = Field(..., min_length=1, max_length=6)
    hero_selection: HeroSelection
    market_indicators: list[MarketIndicatorNote] = Field(..., min_length=2, max_length=8)

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _loads(text: str, failure: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ModelOutputParseError(f"{failure} ({exc.msg})") from exc
    except (ValueError, RecursionError) as exc:
        # Oversized integer literals and runaway nesting.
        raise ModelOutputParseError(f"{failure} ({exc})") from exc


def parse_model_json(raw: str) -> object:
    """Decode generated text as JSON, tolerating a fenced block or surrounding prose."""
    candidate = raw.strip()
    if not candidate:
        raise ModelOutputParseError("output was empty")
    try:
        return _loads(candidate, "output was not valid JSON")
    except ModelOutputParseError:
        pass

    fenced = _FENCED_BLOCK.search(candidate)
    if fenced:
        return _loads(fenced.group(1), "fenced block contained malformed JSON")

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start != -1 and end > start:
        return _loads(candidate[start : end + 1], "output contained malformed JSON")

    raise ModelOutputParseError("output was not valid JSON")


def format_validation_errors(err: ValidationError) -> list[str]:
    issues: list[str] = []
    for issue in err.errors():
        path = ".".join(str(part) for part in issue["loc"]) or "(root)"
        message = f"{path}: {issue['msg']}"
        if message not in issues:
            issues.append(message)
    return issues


def validate_structured_output(payload: object) -> tuple[StructuredOutput | None, list[str]]:
    """Check ``payload`` against the report shape, collecting every violation."""
    try:
        return StructuredOutput.model_validate(payload), []
    except ValidationError as err:
        return None, format_validation_errors(err)
