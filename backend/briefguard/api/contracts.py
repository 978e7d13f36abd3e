from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from briefguard.grounding.models import BriefInput, CorpusEntry


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnforceContractRequest(RequestModel):
    raw: str = Field(..., min_length=1)
    max_article_index: int = Field(..., ge=1)
    required_count: int | None = Field(default=None, ge=1, le=6)


class AttachEvidenceRequest(RequestModel):
    brief: BriefInput
    corpus: list[CorpusEntry] = Field(default_factory=list)
    vocabulary: Literal["article", "candidate"] = "article"
    now_iso: str | None = None


class FactCheckRequest(RequestModel):
    brief: BriefInput
    corpus: list[CorpusEntry] = Field(default_factory=list)
    vocabulary: Literal["article", "candidate"] = "article"
