from __future__ import annotations

import copy
import re
from dataclasses import dataclass

TITLE_MIN_WORDS = 8
TITLE_MAX_WORDS = 14
TITLE_MAX_CHARS = 160
TITLE_MIN_WORD_CHARS = 3
IMPACT_MIN_BULLETS = 10
IMPACT_MAX_BULLETS = 16
ACTIONS_MIN_TOTAL = 8
ACTIONS_MAX_TOTAL = 12
MAX_CITATIONS = 4
DEFAULT_GUARD_LIMIT = 64

TITLE_FILLER_WORDS = (
    "procurement",
    "signals",
    "reshape",
    "cost",
    "capacity",
    "and",
    "contract",
    "priorities",
    "today",
)
DEFAULT_TITLE = "Procurement signals reshape cost capacity and contract priorities today"
FORBIDDEN_TITLE_PHRASE = re.compile(r"\bdaily brief\b", re.IGNORECASE)
DAILY_WORD = re.compile(r"\bdaily\b", re.IGNORECASE)
TITLE_REPLACEMENT_PHRASE = "intel report"

PLACEHOLDER_BRIEF_CONTENT = (
    "No material category-specific items detected in selected inputs; broader market context "
    "is used for procurement relevance."
)
PLACEHOLDER_CATEGORY_IMPORTANCE = (
    "Maintain supplier optionality, contract flexibility, and active risk monitoring until "
    "category-specific signal depth improves."
)


@dataclass(frozen=True)
class GroupBounds:
    key: str
    minimum: int
    maximum: int


IMPACT_GROUPS = (
    GroupBounds("marketCostDrivers", 2, 5),
    GroupBounds("supplyBaseCapacity", 2, 5),
    GroupBounds("contractingCommercialTerms", 2, 5),
    GroupBounds("riskRegulatoryOperationalConstraints", 2, 5),
)
ACTION_GROUPS = (
    GroupBounds("next72Hours", 2, 4),
    GroupBounds("next2to4Weeks", 2, 5),
    GroupBounds("nextQuarter", 2, 5),
)


def _as_list(value: object) -> list[object]:
    return list(value) if isinstance(value, list) else []


def _as_dict(value: object) -> dict[str, object]:
    return dict(value) if isinstance(value, dict) else {}


def _valid_article_index(value: object, max_article_index: int) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if 1 <= value <= max_article_index else None


def pick_replacement_article_index(used: set[int], max_article_index: int, preferred: object = None) -> int:
    candidate = _valid_article_index(preferred, max_article_index)
    if candidate is not None and candidate not in used:
        return candidate
    for index in range(1, max_article_index + 1):
        if index not in used:
            return index
    return 1


def normalize_selected_articles(
    selected_articles: list[object],
    *,
    max_article_index: int,
    required_count: int,
) -> list[dict[str, object]]:
    max_allowed = max(1, min(required_count, max_article_index))
    normalized: list[dict[str, object]] = []
    used: set[int] = set()

    for article in selected_articles:
        if len(normalized) >= max_allowed:
            break
        if not isinstance(article, dict):
            continue
        article_index = pick_replacement_article_index(used, max_article_index, article.get("articleIndex"))
        used.add(article_index)
        normalized.append({**article, "articleIndex": article_index})

    if not normalized:
        normalized.append(
            {
                "articleIndex": pick_replacement_article_index(used, max_article_index, 1),
                "briefContent": PLACEHOLDER_BRIEF_CONTENT,
                "categoryImportance": PLACEHOLDER_CATEGORY_IMPORTANCE,
            }
        )
    return normalized


def normalize_citations(
    citations: object,
    selected: set[int],
    fallback_index: int,
    *,
    max_citations: int = MAX_CITATIONS,
) -> list[int]:
    kept = [
        citation
        for citation in _as_list(citations)
        if isinstance(citation, int) and not isinstance(citation, bool) and citation in selected
    ]
    normalized = list(dict.fromkeys(kept))
    if not normalized:
        return [fallback_index]
    return normalized[:max_citations]


def _with_citations(item: object, selected: set[int], fallback_index: int, max_citations: int) -> dict[str, object]:
    record = _as_dict(item)
    record["citations"] = normalize_citations(
        record.get("citations"), selected, fallback_index, max_citations=max_citations
    )
    return record


def balance_group_counts(
    groups: dict[str, list[dict[str, object]]],
    bounds: tuple[GroupBounds, ...],
    *,
    minimum_total: int,
    maximum_total: int,
    guard_limit: int = DEFAULT_GUARD_LIMIT,
) -> dict[str, list[dict[str, object]]]:
    """Pad or trim grouped items until their total sits inside the bounds.

    Padding duplicates the last item of the smallest group still under its own
    maximum; trimming drops the last item of the largest group still over its own
    minimum. Ties go to the group declared first. Each loop runs at most
    ``guard_limit`` times.
    """
    balanced = {spec.key: list(groups.get(spec.key, [])) for spec in bounds}

    def total() -> int:
        return sum(len(items) for items in balanced.values())

    def first_item() -> dict[str, object] | None:
        for spec in bounds:
            if balanced[spec.key]:
                return balanced[spec.key][0]
        return None

    for _ in range(guard_limit):
        if total() >= minimum_total:
            break
        eligible = [spec for spec in bounds if len(balanced[spec.key]) < spec.maximum]
        target = min(eligible, key=lambda spec: len(balanced[spec.key])) if eligible else bounds[0]
        items = balanced[target.key]
        seed = items[-1] if items else first_item()
        if seed is None:
            break
        items.append(copy.deepcopy(seed))

    for _ in range(guard_limit):
        if total() <= maximum_total:
            break
        eligible = [spec for spec in bounds if len(balanced[spec.key]) > spec.minimum]
        if not eligible:
            break
        target = max(eligible, key=lambda spec: len(balanced[spec.key]))
        balanced[target.key].pop()

    return balanced


def _normalize_groups(
    raw_groups: object,
    bounds: tuple[GroupBounds, ...],
    selected: set[int],
    fallback_index: int,
    *,
    minimum_total: int,
    maximum_total: int,
    guard_limit: int,
    max_citations: int,
) -> dict[str, object]:
    source = _as_dict(raw_groups)
    cited = {
        spec.key: [
            _with_citations(item, selected, fallback_index, max_citations)
            for item in _as_list(source.get(spec.key))
        ]
        for spec in bounds
    }
    balanced = balance_group_counts(
        cited,
        bounds,
        minimum_total=minimum_total,
        maximum_total=maximum_total,
        guard_limit=guard_limit,
    )
    return {**source, **balanced}


def _fit_title_length(words: list[str], max_chars: int = TITLE_MAX_CHARS) -> list[str]:
    """Shorten the longest words until the joined title fits ``max_chars``."""
    fitted = list(words)
    for _ in range(DEFAULT_GUARD_LIMIT):
        overflow = len(" ".join(fitted)) - max_chars
        if overflow <= 0:
            break
        longest = max(range(len(fitted)), key=lambda position: len(fitted[position]))
        keep = max(TITLE_MIN_WORD_CHARS, len(fitted[longest]) - overflow)
        if keep >= len(fitted[longest]):
            break
        shortened = fitted[longest][:keep]
        if DAILY_WORD.fullmatch(shortened):
            shortened = shortened[:-1]
        fitted[longest] = shortened
    return fitted


def normalize_title(title: str) -> str:
    initial = FORBIDDEN_TITLE_PHRASE.sub("", title)
    initial = DAILY_WORD.sub("", initial)
    words = initial.split()
    if not words:
        return DEFAULT_TITLE

    while len(words) < TITLE_MIN_WORDS:
        words.append(TITLE_FILLER_WORDS[(len(words) - 1) % len(TITLE_FILLER_WORDS)])

    normalized = " ".join(words[:TITLE_MAX_WORDS])
    if FORBIDDEN_TITLE_PHRASE.search(normalized):
        normalized = FORBIDDEN_TITLE_PHRASE.sub(TITLE_REPLACEMENT_PHRASE, normalized)
    return " ".join(_fit_title_length(normalized.split()))


def normalize_output_payload(
    payload: dict[str, object],
    *,
    required_count: int,
    max_article_index: int,
    guard_limit: int = DEFAULT_GUARD_LIMIT,
    max_citations: int = MAX_CITATIONS,
) -> dict[str, object]:
    """Repair selection, hero, citations, counts and title of a report payload.

    Returns a new payload; ``payload`` is left untouched. Running it again on its
    own result yields an identical payload.
    """
    source = copy.deepcopy(payload)
    selected_articles = normalize_selected_articles(
        _as_list(source.get("selectedArticles")),
        max_article_index=max_article_index,
        required_count=required_count,
    )
    selected = {int(article["articleIndex"]) for article in selected_articles}
    fallback_index = int(selected_articles[0]["articleIndex"])

    hero = _as_dict(source.get("heroSelection"))
    if _valid_article_index(hero.get("articleIndex"), max_article_index) not in selected:
        hero["articleIndex"] = fallback_index

    summary_bullets = [
        _with_citations(item, selected, fallback_index, max_citations)
        for item in _as_list(source.get("summaryBullets"))
    ]
    impact = _normalize_groups(
        source.get("impact"),
        IMPACT_GROUPS,
        selected,
        fallback_index,
        minimum_total=IMPACT_MIN_BULLETS,
        maximum_total=IMPACT_MAX_BULLETS,
        guard_limit=guard_limit,
        max_citations=max_citations,
    )
    possible_actions = _normalize_groups(
        source.get("possibleActions"),
        ACTION_GROUPS,
        selected,
        fallback_index,
        minimum_total=ACTIONS_MIN_TOTAL,
        maximum_total=ACTIONS_MAX_TOTAL,
        guard_limit=guard_limit,
        max_citations=max_citations,
    )

    return {
        **source,
        "title": normalize_title(str(source.get("title") or "")),
        "summaryBullets": summary_bullets,
        "impact": impact,
        "possibleActions": possible_actions,
        "selectedArticles": selected_articles,
        "heroSelection": hero,
    }
