from __future__ import annotations
from typing import Any, Dict, Optional
import logging

from apa_checker.adapters.docx_adapter import extract_structure
from apa_checker.errors import MalformedPackage
from apa_checker.ir import DocumentStructure, Finding, ValidationReport
from apa_checker.lint import count_citations, lint_apa
from apa_checker.persnicketybot import assert_rule_pack_coverage
from apa_checker.rules.load_rules import load_default_font, load_rule_pack, severity_for, weights
from apa_checker.scoring import compute_score

logger = logging.getLogger(__name__)

def validate_document(
    data: bytes,
    filename: str,
    *,
    pack: Optional[Dict[str, Any]] = None,
    rules_path: Optional[str] = None,
    html: Optional[str] = None,
) -> ValidationReport:
    """Check one .docx against APA 7 and return a scored report.

    A package that cannot be opened is reported, not raised: the report holds a
    single error finding and a score of 0.
    """
    if pack is None:
        pack = load_rule_pack(rules_path)
    checklist = assert_rule_pack_coverage(pack)
    if not checklist.ok:
        logger.warning(f"Rule pack incomplete, missing: {', '.join(checklist.missing)}")

    try:
        structure = extract_structure(data, html=html, default_font=load_default_font(pack))
    except MalformedPackage as e:
        logger.warning(f"Could not parse {filename}: {e}")
        return _parse_failure_report(filename, e, pack)

    findings = lint_apa(structure, pack)
    report = ValidationReport(
        filename=filename,
        passing=[f for f in findings if not f.is_issue],
        issues=[f for f in findings if f.is_issue],
        debug=structure_summary(structure),
    )
    report.score = compute_score(report.issues, weights(pack))
    logger.info(
        f"{filename}: score {report.score} ({len(report.passing)} passing, {len(report.issues)} issues)"
    )
    return report

def _parse_failure_report(filename: str, err: MalformedPackage, pack: Dict[str, Any]) -> ValidationReport:
    return ValidationReport(
        filename=filename,
        passing=[],
        issues=[Finding(
            id="document-parse-failed",
            severity=severity_for(pack, "parse_failure"),
            message="Document could not be read",
            details=f"Document parsing failed: {err}",
        )],
        score=0,
        debug={"error": str(err)},
    )

def structure_summary(s: DocumentStructure) -> Dict[str, Any]:
    m = s.margins
    return {
        "fonts_found": list(s.fonts_found),
        "font": s.font_info.family,
        "size_pt": s.font_info.size_pt,
        "paragraph_count": len(s.paragraphs),
        "heading_count": len(s.headings),
        "citation_count": count_citations(s.text),
        "double_spaced": s.spacing_info.is_double_spaced,
        "page_numbers": s.page_numbers_present,
        "margins": None if m is None else {"top": m.top, "bottom": m.bottom, "left": m.left, "right": m.right},
        "used_fallback": s.used_fallback,
        "text_length": len(s.text),
    }
