from apa_checker.ir import SEVERITIES
from apa_checker.pipeline import validate_document

WEIGHTS = {"error": 15, "warning": 8, "suggestion": 3}


def test_compliant_paper_scores_100(apa_paper):
    report = validate_document(apa_paper, "paper.docx")
    assert report.issues == []
    assert report.score == 100
    assert report.filename == "paper.docx"
    messages = [p.message for p in report.passing]
    assert "Font is correct: Times New Roman 12pt" in messages
    assert "Abstract word count is appropriate (160 words)" in messages
    assert "Found 2 properly formatted citation(s)" in messages
    assert "References are in alphabetical order" in messages
    assert report.debug["heading_count"] == 5
    assert report.debug["citation_count"] == 2
    assert report.debug["used_fallback"] is False


def test_score_matches_weighted_issue_count(docx):
    body = [
        docx.para("notes"),
        docx.para("Participants", style="Heading2"),
        docx.para('He said "' + "x" * 30 + '" and left.'),
    ]
    data = docx.build(docx.document(body), docx.styles(font="Comic Sans MS", half_points=28, double=False))
    report = validate_document(data, "draft.docx")
    assert report.issues
    deduction = sum(WEIGHTS[i.severity] for i in report.issues)
    assert report.score == max(0, 100 - deduction)
    assert 0 <= report.score <= 100
    for i in report.issues:
        assert i.severity in SEVERITIES and i.id
    for p in report.passing:
        assert p.severity is None and p.id is None
    assert "font-incorrect" in [i.id for i in report.issues]
    assert "heading-not-bold-0" in [i.id for i in report.issues]
    assert "quotes-missing-pages" in [i.id for i in report.issues]


def test_score_is_floored_at_zero(docx):
    body = [docx.para(f"Section {n}", style="Heading1") for n in range(10)]
    report = validate_document(docx.build(docx.document(body)), "many.docx")
    assert sum(WEIGHTS[i.severity] for i in report.issues) > 100
    assert report.score == 0


def test_same_bytes_give_identical_reports(apa_paper, docx):
    assert validate_document(apa_paper, "a.docx").to_dict() == validate_document(apa_paper, "a.docx").to_dict()
    messy = docx.build(docx.document([docx.para("Intro", style="Heading3")]))
    assert validate_document(messy, "b.docx").to_dict() == validate_document(messy, "b.docx").to_dict()


def test_malformed_package_gives_degraded_report():
    report = validate_document(b"PK\x03\x04 definitely not a zip", "broken.docx")
    assert report.score == 0
    assert report.passing == []
    assert len(report.issues) == 1
    assert report.issues[0].severity == "error"
    assert report.issues[0].id == "document-parse-failed"
    assert "error" in report.debug


def test_report_to_dict_omits_ids_on_passing_findings(apa_paper):
    d = validate_document(apa_paper, "paper.docx").to_dict()
    assert set(d) == {"filename", "passing", "issues", "score", "debug"}
    assert all(set(p) == {"message", "details"} for p in d["passing"])


def test_custom_rule_pack(tmp_path, docx):
    rules = tmp_path / "strict.yml"
    rules.write_text("severities:\n  page_numbers: error\nweights:\n  error: 20\n", encoding="utf-8")
    data = docx.build(docx.document([docx.para("Method", style="Heading1", bold=True, centered=True)]))
    report = validate_document(data, "x.docx", rules_path=str(rules))
    pages = [i for i in report.issues if i.id == "page-numbers-missing"]
    assert pages[0].severity == "error"
    weights = {"error": 20, "warning": 8, "suggestion": 3}
    assert report.score == max(0, 100 - sum(weights[i.severity] for i in report.issues))


def test_missing_main_part_gives_degraded_report(docx):
    report = validate_document(docx.build(None, docx.styles()), "empty.docx")
    assert report.score == 0
    assert report.passing == []
    assert [(i.id, i.severity) for i in report.issues] == [("document-parse-failed", "error")]
    assert "word/document.xml" in report.debug["error"]


def test_default_font_from_rule_pack(tmp_path, docx):
    rules = tmp_path / "calibri.yml"
    rules.write_text("default_font:\n  family: Calibri\n  size_pt: 11\n", encoding="utf-8")
    data = docx.build(docx.document([docx.para("Body")]))
    report = validate_document(data, "x.docx", rules_path=str(rules))
    assert (report.debug["font"], report.debug["size_pt"]) == ("Calibri", 11)
    assert "font-incorrect" not in [i.id for i in report.issues]
    assert validate_document(data, "x.docx").debug["font"] == "Times New Roman"
