from __future__ import annotations
from typing import Any, Callable, Dict, List
import re

from apa_checker.ir import DocumentStructure, Finding
from apa_checker.rules.load_rules import load_acceptable_fonts, setting, severity_for

_AUTHOR_PATTERNS = [
    re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+", re.MULTILINE),
    re.compile(r"Author", re.IGNORECASE),
    re.compile(r"\b[Bb]y\s+[A-Z]"),
]
_INSTITUTION = re.compile(r"\b(?:university|college|school|institute|institution)\b", re.IGNORECASE)

_ABSTRACT = re.compile(r"Abstract\s*(.*?)(?:Keywords?|Introduction|$)", re.IGNORECASE | re.DOTALL)
_REFERENCES = re.compile(r"References\s*(.*?)(?:\bAppendix|$)", re.IGNORECASE | re.DOTALL)

# (Author, 2020) (Smith & Lee, 2019b, p. 4) (Jones et al., 2021, pp. 10-12)
_CITATION = re.compile(r"\(([A-Za-z\s&,.-]+),\s*(\d{4}[a-z]?)(?:,\s*pp?\.\s*\d+(?:-\d+)?)?\)")
_PAGE_CITATION_AHEAD = re.compile(r"^\s*\([^)]+,\s*\d{4}[^)]*,\s*pp?\.\s*\d+")
_REFERENCE_AUTHOR = re.compile(r"^([^(,]+)")


def _passed(message: str, details: str) -> Finding:
    return Finding(message=message, details=details)


def _issue(pack: Dict[str, Any], rule: str, issue_id: str, message: str, details: str) -> Finding:
    return Finding(message=message, details=details, id=issue_id, severity=severity_for(pack, rule))


def _fmt_pt(size: float) -> str:
    return f"{size:g}"


def _first_page(s: DocumentStructure, limit: int) -> str:
    # paragraph starts stay on their own line so name patterns can anchor
    if not s.paragraphs:
        return s.text[:limit]
    return "\n".join(p.text for p in s.paragraphs)[:limit]


def count_citations(text: str) -> int:
    return sum(1 for _ in _CITATION.finditer(text))


def lint_general_formatting(s: DocumentStructure, pack: Dict[str, Any]) -> List[Finding]:
    findings: List[Finding] = []
    fi = s.font_info
    tolerance = float(pack.get("font_size_tolerance_pt", 1))
    acceptable = load_acceptable_fonts(pack)
    family = fi.family.lower()
    if any(a.name.lower() in family and abs(fi.size_pt - a.size) <= tolerance for a in acceptable):
        findings.append(_passed(
            f"Font is correct: {fi.family} {_fmt_pt(fi.size_pt)}pt",
            "Meets APA 7 font requirements",
        ))
    else:
        allowed = ", ".join(f"{a.name} {_fmt_pt(a.size)}pt" for a in acceptable)
        findings.append(_issue(
            pack, "font", "font-incorrect",
            f'Font "{fi.family} {_fmt_pt(fi.size_pt)}pt" is not APA compliant',
            f"Use one of: {allowed}",
        ))

    if s.spacing_info.is_double_spaced:
        findings.append(_passed(
            "Document is double-spaced",
            "Line spacing follows APA 7 requirements",
        ))
    else:
        findings.append(_issue(
            pack, "spacing", "spacing-unverified",
            "Double spacing could not be confirmed",
            "Set line spacing to double (2.0) throughout the entire document",
        ))

    if s.page_numbers_present:
        findings.append(_passed(
            "Page numbers are present",
            "Page numbering follows APA requirements",
        ))
    else:
        findings.append(_issue(
            pack, "page_numbers", "page-numbers-missing",
            "Page numbers are missing",
            "Insert page numbers in the top right corner of every page",
        ))

    if s.margins is not None:
        want = int(setting(pack, "margins", "twips", 1440))
        tol = int(setting(pack, "margins", "tolerance_twips", 20))
        m = s.margins
        sides = {"top": m.top, "bottom": m.bottom, "left": m.left, "right": m.right}
        off = {k: v for k, v in sides.items() if abs(abs(v) - want) > tol}
        if not off:
            findings.append(_passed("Margins are 1 inch on all sides", "Page margins follow APA 7"))
        else:
            desc = ", ".join(f"{k} {v / 1440:.2f}in" for k, v in off.items())
            findings.append(_issue(
                pack, "margins", "margins-incorrect",
                "Page margins are not 1 inch",
                f"Set all margins to 1 inch (found {desc})",
            ))
    return findings


def lint_title_page(s: DocumentStructure, pack: Dict[str, Any]) -> List[Finding]:
    findings: List[Finding] = []
    first_page = _first_page(s, int(setting(pack, "title_page", "first_page_chars", 1500)))

    if len(first_page.strip()) > int(setting(pack, "title_page", "min_chars", 10)):
        findings.append(_passed(
            "Title page content detected",
            "Document appears to have a title page",
        ))

    if any(p.search(first_page) for p in _AUTHOR_PATTERNS):
        findings.append(_passed(
            "Author information found",
            "Title page includes author information",
        ))
    else:
        findings.append(_issue(
            pack, "author", "author-missing",
            "Author information missing from title page",
            "Include author name(s) on the title page",
        ))

    if _INSTITUTION.search(first_page):
        findings.append(_passed(
            "Institutional affiliation found",
            "Title page includes institutional information",
        ))
    else:
        findings.append(_issue(
            pack, "institution", "institution-missing",
            "Institutional affiliation may be missing",
            "Include your university or institution on the title page",
        ))
    return findings


def lint_abstract(s: DocumentStructure, pack: Dict[str, Any]) -> List[Finding]:
    findings: List[Finding] = []
    m = _ABSTRACT.search(s.text)
    if not m:
        return findings
    findings.append(_passed("Abstract section found", "Document includes an abstract section"))

    lo = int(setting(pack, "abstract", "min_words", 150))
    hi = int(setting(pack, "abstract", "max_words", 250))
    floor = int(setting(pack, "abstract", "report_floor", 50))
    wc = len(m.group(1).strip().split())
    if lo <= wc <= hi:
        findings.append(_passed(
            f"Abstract word count is appropriate ({wc} words)",
            f"Abstract length follows APA guidelines ({lo}-{hi} words)",
        ))
    elif wc > hi:
        findings.append(_issue(
            pack, "abstract_too_long", "abstract-too-long",
            f"Abstract is too long ({wc} words)",
            f"APA recommends {lo}-{hi} words for abstracts",
        ))
    elif wc > floor:
        findings.append(_issue(
            pack, "abstract_too_short", "abstract-too-short",
            f"Abstract may be too short ({wc} words)",
            f"Consider expanding to {lo}-{hi} words",
        ))
    return findings


def lint_headings(s: DocumentStructure, pack: Dict[str, Any]) -> List[Finding]:
    findings: List[Finding] = []
    reserved = {str(r).lower() for r in setting(pack, "headings", "reserved", [])}
    max_level = int(setting(pack, "headings", "max_level", 5))
    content = [h for h in s.headings if h.text.strip().rstrip(":").lower() not in reserved]

    if not content:
        findings.append(_issue(
            pack, "no_headings", "no-headings",
            "No headings detected",
            "Consider using APA-style headings to organize your content",
        ))
        return findings

    findings.append(_passed(
        f"Document uses {len(content)} heading(s)",
        "Headings help organize content according to APA style",
    ))

    for i in range(1, len(content)):
        prev, cur = content[i - 1], content[i]
        if cur.level > prev.level + 1:
            findings.append(_issue(
                pack, "heading_hierarchy", f"heading-hierarchy-{i}",
                "Heading level skipped",
                f'Cannot jump from Level {prev.level} to Level {cur.level} ("{cur.text}")',
            ))

    for i, h in enumerate(content):
        if h.level > max_level:
            continue
        if h.is_bold:
            findings.append(_passed(
                f"Level {h.level} heading is bold",
                f'"{h.text}" follows APA bold formatting',
            ))
        else:
            findings.append(_issue(
                pack, "heading_not_bold", f"heading-not-bold-{i}",
                f"Level {h.level} heading should be bold",
                f'"{h.text}" must be formatted in bold',
            ))
        if h.level != 1:
            continue
        if h.is_centered:
            findings.append(_passed(
                "Level 1 heading is centered",
                f'"{h.text}" follows APA centering requirements',
            ))
        else:
            findings.append(_issue(
                pack, "heading_not_centered", f"heading-not-centered-{i}",
                "Level 1 heading should be centered",
                f'"{h.text}" should be centered according to APA format',
            ))
    return findings


def lint_citations(s: DocumentStructure, pack: Dict[str, Any]) -> List[Finding]:
    findings: List[Finding] = []
    text = s.text
    n = count_citations(text)
    if n:
        findings.append(_passed(
            f"Found {n} properly formatted citation(s)",
            "Citations follow APA author-date format",
        ))
    else:
        findings.append(_issue(
            pack, "no_citations", "no-citations",
            "No in-text citations found",
            "Cite sources in author-date format, e.g. (Smith, 2020)",
        ))

    min_chars = int(setting(pack, "citations", "quote_min_chars", 20))
    lookahead = int(setting(pack, "citations", "quote_lookahead_chars", 50))
    quote = re.compile('["“]([^"“”]{%d,})["”]' % min_chars)
    missing = 0
    for m in quote.finditer(text):
        after = text[m.end():m.end() + lookahead]
        if not _PAGE_CITATION_AHEAD.match(after):
            missing += 1
    if missing:
        findings.append(_issue(
            pack, "quotes_missing_pages", "quotes-missing-pages",
            f"{missing} direct quote(s) missing page numbers",
            "All direct quotes must include page numbers: (Author, Year, p. #)",
        ))
    return findings


def _reference_entries(s: DocumentStructure) -> List[str]:
    entries: List[str] = []
    inside = False
    for p in s.paragraphs:
        t = p.text.strip()
        if not inside:
            inside = t.rstrip(":").lower() == "references"
            continue
        if t.lower().startswith("appendix"):
            break
        if t:
            entries.append(t)
    return entries


def _first_author(entry: str) -> str:
    m = _REFERENCE_AUTHOR.match(entry)
    return m.group(1).strip().lower() if m else ""


def lint_references(s: DocumentStructure, pack: Dict[str, Any]) -> List[Finding]:
    findings: List[Finding] = []
    m = _REFERENCES.search(s.text)
    if not m:
        findings.append(_issue(
            pack, "references_missing", "references-missing",
            "References section not found",
            "Add a References section listing every cited source",
        ))
        return findings
    findings.append(_passed("References section found", "Document includes a references section"))

    if len(m.group(1).strip()) > int(setting(pack, "references", "min_body_chars", 100)):
        findings.append(_passed(
            "Reference entries found",
            "References section contains bibliography entries",
        ))

    entries = _reference_entries(s)
    if len(entries) < 2:
        return findings
    authors = [_first_author(e) for e in entries]
    if authors == sorted(authors):
        findings.append(_passed(
            "References are in alphabetical order",
            "Reference list follows APA alphabetization requirements",
        ))
    else:
        findings.append(_issue(
            pack, "references_not_alphabetical", "references-not-alphabetical",
            "References are not in alphabetical order",
            "Sort references alphabetically by first author's last name",
        ))
    return findings


RULES: List[Callable[[DocumentStructure, Dict[str, Any]], List[Finding]]] = [
    lint_general_formatting,
    lint_title_page,
    lint_abstract,
    lint_headings,
    lint_citations,
    lint_references,
]


def lint_apa(s: DocumentStructure, pack: Dict[str, Any]) -> List[Finding]:
    findings: List[Finding] = []
    for rule in RULES:
        findings.extend(rule(s, pack))
    return findings
