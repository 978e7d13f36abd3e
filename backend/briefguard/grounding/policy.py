from __future__ import annotations

from dataclasses import dataclass, field
from typing import get_args

from briefguard.grounding.models import ClaimSection

DEFAULT_STRICT_SECTIONS = frozenset({"procurement_action", "watchlist"})
DEFAULT_AUTO_ANALYSIS_SECTIONS = frozenset({"summary", "highlight", "delta"})


@dataclass(frozen=True)
class GroundingPolicy:
    """Thresholds and section rules applied while grounding claims.

    ``strict_sections`` lists sections whose unverified claims are reported as
    issues. Top-story claims that carry a numeric token are always strict.
    ``auto_analysis_sections`` lists sections allowed to hold untagged synthesis.
    """

    similarity_threshold: float = 0.14
    auto_match_threshold: float = 0.20
    excerpt_max_chars: int = 520
    strict_sections: frozenset[str] = field(default_factory=lambda: DEFAULT_STRICT_SECTIONS)
    auto_analysis_sections: frozenset[str] = field(default_factory=lambda: DEFAULT_AUTO_ANALYSIS_SECTIONS)

    def problems(self) -> list[str]:
        problems: list[str] = []
        for name in ("similarity_threshold", "auto_match_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                problems.append(f"{name} must be between 0 and 1, found {value}")
        if not 16 <= self.excerpt_max_chars <= 520:
            problems.append(f"excerpt_max_chars must be between 16 and 520, found {self.excerpt_max_chars}")
        known = set(get_args(ClaimSection))
        for name in ("strict_sections", "auto_analysis_sections"):
            unknown = sorted(getattr(self, name) - known)
            if unknown:
                problems.append(f"{name} has unknown sections: {', '.join(unknown)}")
        return problems
