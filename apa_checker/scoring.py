from __future__ import annotations
from typing import Dict, Iterable, List, Set

from apa_checker.ir import SEVERITIES, Finding

DEFAULT_WEIGHTS = {"error": 15, "warning": 8, "suggestion": 3}

def compute_score(issues: Iterable[Finding], weights: Dict[str, int] = DEFAULT_WEIGHTS) -> int:
    deduction = sum(weights.get(i.severity, 0) for i in issues)
    return max(0, min(100, 100 - deduction))

def active_issues(issues: Iterable[Finding], dismissed_ids: Set[str]) -> List[Finding]:
    """Issues the reader has not dismissed; the report itself is never changed."""
    return [i for i in issues if i.id not in dismissed_ids]

def group_by_severity(issues: Iterable[Finding]) -> Dict[str, List[Finding]]:
    grouped: Dict[str, List[Finding]] = {sev: [] for sev in SEVERITIES}
    for i in issues:
        grouped[i.severity].append(i)
    return grouped
