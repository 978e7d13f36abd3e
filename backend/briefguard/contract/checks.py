from __future__ import annotations

from briefguard.contract.normalize import (
    ACTIONS_MAX_TOTAL,
    ACTIONS_MIN_TOTAL,
    FORBIDDEN_TITLE_PHRASE,
    IMPACT_MAX_BULLETS,
    IMPACT_MIN_BULLETS,
    TITLE_MAX_WORDS,
    TITLE_MIN_WORDS,
)
from briefguard.contract.schema import StructuredOutput


def collect_citations(output: StructuredOutput) -> list[int]:
    impact = output.impact
    actions = output.possible_actions
    items = [
        *output.summary_bullets,
        *impact.market_cost_drivers,
        *impact.supply_base_capacity,
        *impact.contracting_commercial_terms,
        *impact.risk_regulatory_operational_constraints,
        *actions.next_72_hours,
        *actions.next_2_to_4_weeks,
        *actions.next_quarter,
    ]
    return [citation for item in items for citation in item.citations]


def impact_total(output: StructuredOutput) -> int:
    impact = output.impact
    return (
        len(impact.market_cost_drivers)
        + len(impact.supply_base_capacity)
        + len(impact.contracting_commercial_terms)
        + len(impact.risk_regulatory_operational_constraints)
    )


def action_total(output: StructuredOutput) -> int:
    actions = output.possible_actions
    return len(actions.next_72_hours) + len(actions.next_2_to_4_weeks) + len(actions.next_quarter)


def check_cross_references(
    output: StructuredOutput,
    *,
    max_article_index: int,
    required_count: int,
) -> list[str]:
    """Range, reference, count and title violations of an output, in a stable order."""
    issues: list[str] = []

    def add(message: str) -> None:
        if message not in issues:
            issues.append(message)

    selected_indices = [article.article_index for article in output.selected_articles]
    selected = set(selected_indices)
    if len(selected) != len(selected_indices):
        add("selectedArticles must use unique articleIndex values")
    if any(index < 1 or index > max_article_index for index in selected_indices):
        add(f"selectedArticles.articleIndex must be between 1 and {max_article_index}")
    if len(output.selected_articles) > required_count:
        add(f"selectedArticles cannot exceed {required_count} entries")
    if output.hero_selection.article_index not in selected:
        add("heroSelection.articleIndex must be one of selectedArticles.articleIndex")

    for citation in collect_citations(output):
        if citation not in selected:
            add(f"Citation {citation} must reference a selected article index")

    if not IMPACT_MIN_BULLETS <= impact_total(output) <= IMPACT_MAX_BULLETS:
        add(f"Impact must contain {IMPACT_MIN_BULLETS}-{IMPACT_MAX_BULLETS} bullets total")
    if not ACTIONS_MIN_TOTAL <= action_total(output) <= ACTIONS_MAX_TOTAL:
        add(f"Possible actions must contain {ACTIONS_MIN_TOTAL}-{ACTIONS_MAX_TOTAL} actions total")

    word_count = len(output.title.split())
    if not TITLE_MIN_WORDS <= word_count <= TITLE_MAX_WORDS:
        add(f"Title must be {TITLE_MIN_WORDS}-{TITLE_MAX_WORDS} words")
    if FORBIDDEN_TITLE_PHRASE.search(output.title):
        add("Title cannot include 'Daily Brief'")

    return issues
