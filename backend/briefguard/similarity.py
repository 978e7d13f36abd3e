from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass

STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "from", "into", "over", "under",
        "about", "while", "when", "where", "which", "what", "will", "would", "could",
        "should", "a", "an", "of", "to", "in", "on", "by", "at", "is", "are", "was",
        "were", "be", "been", "it", "as", "or", "if", "than", "then", "but", "so", "we",
        "they", "their", "our", "your", "its", "these", "those",
    }
)

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")
_SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")


@dataclass(frozen=True)
class ExcerptMatch:
    excerpt: str
    similarity: float


def tokenize(text: str) -> list[str]:
    return [
        token
        for token in _TOKEN_PATTERN.findall(text.lower())
        if len(token) > 2 and token not in STOPWORDS
    ]


def text_similarity(a: str, b: str) -> float:
    """Cosine similarity of the stopword-filtered term frequencies of two spans."""
    freq_a = Counter(tokenize(a))
    freq_b = Counter(tokenize(b))
    if not freq_a or not freq_b:
        return 0.0
    dot = sum(count * freq_b[token] for token, count in freq_a.items() if token in freq_b)
    norm_a = math.sqrt(sum(count * count for count in freq_a.values()))
    norm_b = math.sqrt(sum(count * count for count in freq_b.values()))
    return min(1.0, dot / (norm_a * norm_b))


def split_sentences(text: str) -> list[str]:
    normalized = " ".join(text.split())
    if not normalized:
        return []
    return [sentence.strip() for sentence in _SENTENCE_PATTERN.findall(normalized) if sentence.strip()]


def clip_excerpt(text: str, max_chars: int) -> str:
    if len(text) > max_chars:
        return f"{text[: max_chars - 3].strip()}..."
    return text.strip()


def find_best_excerpt(claim: str, content: str, *, max_chars: int = 520) -> ExcerptMatch:
    """Best sentence, or adjacent sentence pair, of ``content`` for ``claim``.

    Ties keep the earliest candidate. An empty excerpt means the content had no
    sentences at all.
    """
    sentences = split_sentences(content)
    if not sentences:
        return ExcerptMatch(excerpt="", similarity=0.0)

    best = sentences[0]
    best_score = text_similarity(claim, best)
    for index, sentence in enumerate(sentences):
        score = text_similarity(claim, sentence)
        if score > best_score:
            best, best_score = sentence, score
        if index + 1 < len(sentences):
            combined = f"{sentence} {sentences[index + 1]}"
            combined_score = text_similarity(claim, combined)
            if combined_score > best_score:
                best, best_score = combined, combined_score

    return ExcerptMatch(excerpt=clip_excerpt(best, max_chars), similarity=best_score)
