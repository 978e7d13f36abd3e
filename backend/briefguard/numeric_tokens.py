from __future__ import annotations

import re

from briefguard.evidence_tags import strip_evidence_tag

# Exact unit vocabulary; extend by listing, never by fuzzy matching.
MAGNITUDE_UNITS = (
    "million",
    "billion",
    "trillion",
    "percent",
    "mbpd",
    r"kb/d",
    "bpd",
    "mmbtu",
    "bbl",
    "boe",
    "tcf",
    "bcf",
    "barrels?",
    "tonnes?",
    "tons?",
    "mt",
    "kg",
    "megawatts?",
    "gigawatts?",
    "mw",
    "gw",
    "kb",
    "mb",
    "gb",
    "tb",
)

NUMERIC_TOKEN_PATTERN = re.compile(
    "|".join(
        [
            r"\bQ[1-4]\s?\d{4}\b",
            r"[$€£¥]\s?\d[\d,]*(?:\.\d+)?(?:/[a-z]+)?",
            r"\d[\d,]*(?:\.\d+)?%",
            r"\b\d+(?:\.\d+)?\s?(?:" + "|".join(MAGNITUDE_UNITS) + r")\b",
            r"\b\d[\d,]*\d(?:\.\d+)?\b",
            r"\b\d\.\d+\b",
        ]
    ),
    re.IGNORECASE,
)


def extract_numeric_tokens(text: str) -> list[str]:
    """Distinct numeric tokens of ``text`` in first-seen order, markers ignored."""
    stripped = strip_evidence_tag(text)
    tokens = [match.group(0).strip() for match in NUMERIC_TOKEN_PATTERN.finditer(stripped)]
    return list(dict.fromkeys(token for token in tokens if token))


def has_numeric_token(text: str) -> bool:
    return bool(extract_numeric_tokens(text))


def normalize_for_match(text: str) -> str:
    return " ".join(text.lower().replace(",", "").split())


def content_contains_all_tokens(tokens: list[str], content: str) -> bool:
    if not tokens:
        return True
    normalized_content = normalize_for_match(content)
    return all(normalize_for_match(token) in normalized_content for token in tokens)
