from __future__ import annotations
from dataclasses import dataclass
from typing import List, Dict, Any

REQUIRED_CAPABILITIES = [
    "apa.font",
    "apa.spacing",
    "apa.page_numbers",
    "apa.margins",
    "apa.title_page",
    "apa.abstract",
    "apa.headings",
    "apa.citations",
    "apa.references",
]

REQUIRED_SEVERITIES = [
    "font", "spacing", "page_numbers", "margins",
    "author", "institution",
    "abstract_too_long", "abstract_too_short",
    "no_headings", "heading_not_bold", "heading_not_centered", "heading_hierarchy",
    "no_citations", "quotes_missing_pages",
    "references_missing", "references_not_alphabetical",
    "parse_failure",
]

@dataclass
class PersnicketyChecklistResult:
    ok: bool
    missing: List[str]
    notes: List[str]

def assert_rule_pack_coverage(rule_pack: Dict[str, Any]) -> PersnicketyChecklistResult:
    capabilities = rule_pack.get("capabilities") or []
    severities = rule_pack.get("severities") or {}
    missing = [c for c in REQUIRED_CAPABILITIES if c not in capabilities]
    missing += [f"severities.{s}" for s in REQUIRED_SEVERITIES if s not in severities]
    notes = []
    if not missing:
        notes.append("All APA 7 rule groups have capabilities and severities configured.")
    else:
        notes.append("Rules without a severity fall back to 'warning'.")
    return PersnicketyChecklistResult(ok=(len(missing)==0), missing=missing, notes=notes)
