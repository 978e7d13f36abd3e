from __future__ import annotations

from typing import Iterable

from briefguard.grounding.models import BriefArticle, BriefIndicator, CorpusEntry, Source

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _fnv1a_32(text: str) -> int:
    value = _FNV_OFFSET_BASIS
    for char in text:
        value ^= ord(char)
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def build_source_id(url: str) -> str:
    """Stable identifier of a source, keyed on its trimmed lower-cased URL."""
    return f"src_{_to_base36(_fnv1a_32(url.strip().lower()))}"


def dedupe_sources(sources: Iterable[Source]) -> list[Source]:
    seen: set[str] = set()
    deduped: list[Source] = []
    for source in sources:
        key = source.source_id or source.url
        if key in seen:
            continue
        seen.add(key)
        deduped.append(source)
    return deduped


def source_for_corpus_entry(entry: CorpusEntry, retrieved_at: str) -> Source:
    return Source(
        source_id=build_source_id(entry.url),
        url=entry.url,
        title=entry.title,
        published_at=entry.published_at,
        retrieved_at=retrieved_at,
    )


def core_sources(
    selected_articles: list[BriefArticle] | None,
    market_indicators: list[BriefIndicator] | None,
    retrieved_at: str,
) -> list[Source]:
    """Sources that must stay attributed whatever the evidence outcome."""
    sources: list[Source] = []
    for article in selected_articles or []:
        if not article.url:
            continue
        sources.append(
            Source(
                source_id=build_source_id(article.url),
                url=article.url,
                title=article.title,
                published_at=article.published_at,
                retrieved_at=retrieved_at,
            )
        )
    for indicator in market_indicators or []:
        if not indicator.url:
            continue
        sources.append(
            Source(
                source_id=build_source_id(indicator.url),
                url=indicator.url,
                title=indicator.label,
                retrieved_at=retrieved_at,
            )
        )
    return sources


def build_source_catalog(used: Iterable[Source], core: list[Source]) -> list[Source]:
    """Sources cited by supported evidence first, then every core source."""
    return dedupe_sources([*used, *core])
