from __future__ import annotations

import copy

import pytest


def _bullet(text: str, citations: list[int]) -> dict[str, object]:
    return {"text": text, "citations": citations}


def _action(action: str, owner: str, citations: list[int]) -> dict[str, object]:
    return {
        "action": action,
        "rationale": "Supplier notices point to firmer pricing next cycle.",
        "owner": owner,
        "expectedOutcome": "Budget exposure is capped before renewals.",
        "citations": citations,
    }


def _article(index: int) -> dict[str, object]:
    return {
        "articleIndex": index,
        "briefContent": (
            f"Article {index} reports that regional copper cathode premiums climbed as smelter outages "
            "cut available supply for wire and cable fabricators."
        ),
        "categoryImportance": "Cable buyers face firmer premiums on open volumes.",
        "keyMetrics": ["Premiums up 12%"],
    }


REPORT_PAYLOAD: dict[str, object] = {
    "title": "Copper premiums tighten supplier capacity across regional wire markets",
    "summaryBullets": [
        _bullet("Copper cathode premiums climbed on smelter outages.", [2]),
        _bullet("Wire fabricators report longer lead times this month.", [5]),
        _bullet("Freight surcharges eased on the main Asia lanes.", [7]),
        _bullet("Two suppliers signalled allocation for Q3 volumes.", [2, 5]),
        _bullet("Regulators opened a review of export licensing rules.", [7]),
    ],
    "impact": {
        "marketCostDrivers": [
            _bullet("Premium increases lift landed cost on spot buys.", [2]),
            _bullet("Energy surcharges persist at two major smelters.", [2]),
            _bullet("Scrap spreads narrowed as recyclers held stock.", [5]),
        ],
        "supplyBaseCapacity": [
            _bullet("Smelter outages cut regional cathode availability.", [2]),
            _bullet("Fabricators are prioritising contracted customers.", [5]),
            _bullet("Backup mills have limited spare rolling capacity.", [7]),
        ],
        "contractingCommercialTerms": [
            _bullet("Suppliers push shorter price validity windows.", [5]),
            _bullet("Allocation clauses are appearing in renewals.", [7]),
        ],
        "riskRegulatoryOperationalConstraints": [
            _bullet("Export licensing review may delay shipments.", [7]),
            _bullet("Port congestion risk persists at two hubs.", [7]),
        ],
    },
    "possibleActions": {
        "next72Hours": [
            _action("Confirm open volumes with top suppliers", "Category", [2]),
            _action("Lock pricing on priority spot orders", "Contracts", [5]),
            _action("Flag allocation risk to operations leads", "Ops", [7]),
        ],
        "next2to4Weeks": [
            _action("Negotiate price validity extensions", "Contracts", [5]),
            _action("Qualify a backup rolling mill supplier", "Category", [7]),
            _action("Review allocation clause language", "Legal", [7]),
        ],
        "nextQuarter": [
            _action("Rebalance the supplier portfolio mix", "Category", [2]),
            _action("Add index-linked pricing to renewals", "Contracts", [5]),
        ],
    },
    "selectedArticles": [_article(2), _article(5), _article(7)],
    "heroSelection": {"articleIndex": 5},
    "marketIndicators": [
        {"indexId": "lme-copper", "note": "LME copper held near recent highs."},
        {"indexId": "brent", "note": "Brent crude was steady on the week."},
    ],
}


@pytest.fixture
def report_payload() -> dict[str, object]:
    """A contract-valid report for maxArticleIndex=10 and requiredCount=3."""
    return copy.deepcopy(REPORT_PAYLOAD)
