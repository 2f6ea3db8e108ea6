from __future__ import annotations
from typing import Dict, Any, List
import json

from apa_checker.ir import SEVERITIES

def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

def write_txt(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(payload))

def render_txt(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"APA 7 Report: {payload.get('filename')}")
    lines.append(f"Score: {payload.get('score')}/100")
    lines.append("")
    passing = payload.get("passing", []) or []
    lines.append(f"Passed ({len(passing)})")
    for p in passing:
        lines.append(f"- {p['message']}")
    lines.append("")
    issues = payload.get("issues", []) or []
    for sev in SEVERITIES:
        group = [i for i in issues if i.get("severity") == sev]
        if not group:
            continue
        lines.append(f"{sev.capitalize()}s ({len(group)})")
        for i in group:
            lines.append(f"- [{i['id']}] {i['message']}")
            if i.get("details"):
                lines.append(f"    {i['details']}")
        lines.append("")
    if not issues:
        lines.append("No issues found.")
        lines.append("")
    debug = payload.get("debug", {}) or {}
    if debug:
        lines.append("Debug")
        for k, v in debug.items():
            lines.append(f"- {k}: {v}")
    return "\n".join(lines)
