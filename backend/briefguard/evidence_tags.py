"""Trailing citation markers embedded in generated text.

Two vocabularies exist: ``(source: articleIndex N)`` for the article corpus and
``(source: candidateIndex N)`` for candidate-numbered corpora. Both accept the
bare ``(source: N)`` form and share the ``(analysis)`` marker.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

TagVocabulary = Literal["article", "candidate"]
TagKind = Literal["source", "analysis", "none"]

ARTICLE_SOURCE_TAG = re.compile(r"\(\s*source\s*:\s*(?:articleIndex\s*)?(\d+)\s*\)\s*$", re.IGNORECASE)
CANDIDATE_SOURCE_TAG = re.compile(r"\(\s*source\s*:\s*(?:candidateIndex\s*)?(\d+)\s*\)\s*$", re.IGNORECASE)
ANALYSIS_TAG = re.compile(r"\(\s*analysis\s*\)\s*$", re.IGNORECASE)
# Footnote-style citations such as [1][2] added by report markdown.
BRACKET_CITATION = re.compile(r"\s*\[\d+\]\s*")
BRACKET_CITATION_DETECT = re.compile(r"\[\d+\]")

_SOURCE_PATTERNS: dict[str, re.Pattern[str]] = {
    "article": ARTICLE_SOURCE_TAG,
    "candidate": CANDIDATE_SOURCE_TAG,
}


@dataclass(frozen=True)
class EvidenceTag:
    kind: TagKind
    index: int | None = None


NO_TAG = EvidenceTag(kind="none")
ANALYSIS = EvidenceTag(kind="analysis")


def parse_evidence_tag(text: str, vocabulary: TagVocabulary = "article") -> EvidenceTag:
    if ANALYSIS_TAG.search(text):
        return ANALYSIS
    match = _SOURCE_PATTERNS[vocabulary].search(text)
    if match:
        index = int(match.group(1))
        if index >= 1:
            return EvidenceTag(kind="source", index=index)
    return NO_TAG


def strip_evidence_tag(text: str | None) -> str:
    if not text:
        return ""
    stripped = BRACKET_CITATION.sub(" ", text)
    stripped = ARTICLE_SOURCE_TAG.sub("", stripped)
    stripped = CANDIDATE_SOURCE_TAG.sub("", stripped)
    stripped = ANALYSIS_TAG.sub("", stripped)
    return " ".join(stripped.split())


def has_bracket_citations(text: str) -> bool:
    return BRACKET_CITATION_DETECT.search(text) is not None
