#!/usr/bin/env python3
"""Summarize how well a generated brief is grounded in its article corpus."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from briefguard.contract.schema import format_validation_errors
from briefguard.grounding.factcheck import validate_numeric_claims
from briefguard.grounding.matcher import attach_evidence, corpus_from_articles
from briefguard.grounding.models import BriefInput


class ReportInputError(ValueError):
    """Raised when the brief or corpus file does not have the expected shape."""


def _read_json(path: Path) -> Any:
    if not path.is_file():
        raise ReportInputError(f"missing input file '{path}'")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ReportInputError(f"{path.name}: invalid JSON at line {exc.lineno} ({exc.msg})") from exc


def load_brief(path: Path) -> BriefInput:
    payload = _read_json(path)
    if not isinstance(payload, dict):
        raise ReportInputError(f"{path.name}: brief must be a JSON object")
    try:
        return BriefInput.model_validate(payload)
    except ValidationError as exc:
        raise ReportInputError(f"{path.name}: {'; '.join(format_validation_errors(exc))}") from exc


def load_corpus(path: Path):
    payload = _read_json(path)
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise ReportInputError(f"{path.name}: corpus must be a JSON array of article objects")
    try:
        return corpus_from_articles(payload)
    except ValidationError as exc:
        raise ReportInputError(f"{path.name}: {'; '.join(format_validation_errors(exc))}") from exc


def _pct(value: float) -> float:
    return round(value * 100, 2)


def build_report(brief: BriefInput, corpus, *, vocabulary: str = "article", now_iso: str | None = None) -> dict[str, Any]:
    result = attach_evidence(brief, corpus, vocabulary=vocabulary, now_iso=now_iso)
    factcheck_issues = validate_numeric_claims(brief, corpus, vocabulary=vocabulary)
    stats = result.stats
    support_base = stats.supported + stats.needs_verification
    return {
        "vocabulary": vocabulary,
        "corpus_size": len(corpus),
        "stats": stats.model_dump(by_alias=True),
        "metrics": {
            "support_rate_pct": _pct(stats.supported / support_base) if support_base else 0.0,
            "analysis_share_pct": _pct(stats.analysis / stats.total) if stats.total else 0.0,
            "source_count": len(result.sources),
        },
        "evidence_issues": result.issues,
        "factcheck_issues": factcheck_issues,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Report evidence coverage and numeric fact checks for a brief.")
    parser.add_argument("--brief", required=True, help="Brief JSON path.")
    parser.add_argument("--corpus", required=True, help="Article corpus JSON path, numbered 1..N in list order.")
    parser.add_argument("--vocabulary", choices=("article", "candidate"), default="article")
    parser.add_argument("--now", default=None, help="ISO timestamp recorded as retrievedAt on sources.")
    parser.add_argument("--out", default="grounding-report.json", help="Output JSON path.")
    args = parser.parse_args()

    try:
        brief = load_brief(Path(args.brief))
        corpus = load_corpus(Path(args.corpus))
    except ReportInputError as exc:
        raise SystemExit(f"Grounding report failed: {exc}") from exc

    report = build_report(brief, corpus, vocabulary=args.vocabulary, now_iso=args.now)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    print(f"Wrote grounding report: {out_path}")
    print(json.dumps(report["metrics"], indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
