from __future__ import annotations
from typing import Dict, Iterable, Optional
from xml.sax.saxutils import escape
import io
import zipfile

import pytest

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
XML_DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'

CONTENT_TYPES = (
    XML_DECL
    + '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    "</Types>"
)

ROOT_RELS = (
    XML_DECL
    + '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" '
    'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="{target}"/>'
    "</Relationships>"
)


class DocxFactory:
    """Builds small .docx packages in memory, one XML part at a time."""

    @staticmethod
    def para(text: str, style: Optional[str] = None, bold: bool = False,
             centered: bool = False, italic: bool = False) -> str:
        ppr = ""
        if style:
            ppr += f'<w:pStyle w:val="{style}"/>'
        if centered:
            ppr += '<w:jc w:val="center"/>'
        if ppr:
            ppr = f"<w:pPr>{ppr}</w:pPr>"
        rpr = ""
        if bold:
            rpr += "<w:b/>"
        if italic:
            rpr += "<w:i/>"
        if rpr:
            rpr = f"<w:rPr>{rpr}</w:rPr>"
        return f'<w:p>{ppr}<w:r>{rpr}<w:t xml:space="preserve">{escape(text)}</w:t></w:r></w:p>'

    @staticmethod
    def runs(*texts: str) -> str:
        body = "".join(f'<w:r><w:t xml:space="preserve">{escape(t)}</w:t></w:r>' for t in texts)
        return f"<w:p>{body}</w:p>"

    @staticmethod
    def margins(top: int = 1440, bottom: int = 1440, left: int = 1440, right: int = 1440) -> str:
        return (
            f'<w:sectPr><w:pgMar w:top="{top}" w:right="{right}" w:bottom="{bottom}" '
            f'w:left="{left}" w:header="720" w:footer="720" w:gutter="0"/></w:sectPr>'
        )

    @staticmethod
    def document(paragraphs: Iterable[str], sect: str = "") -> str:
        return (
            XML_DECL
            + f'<w:document xmlns:w="{W_NS}"><w:body>'
            + "".join(paragraphs)
            + sect
            + "</w:body></w:document>"
        )

    @staticmethod
    def styles(font: str = "Times New Roman", half_points: int = 24, double: bool = True,
               extra: str = "") -> str:
        spacing = '<w:spacing w:line="480" w:lineRule="auto"/>' if double else '<w:spacing w:after="160"/>'
        return (
            XML_DECL
            + f'<w:styles xmlns:w="{W_NS}">'
            "<w:docDefaults><w:rPrDefault><w:rPr>"
            f'<w:rFonts w:ascii="{font}" w:hAnsi="{font}"/><w:sz w:val="{half_points}"/>'
            "</w:rPr></w:rPrDefault>"
            f"<w:pPrDefault><w:pPr>{spacing}</w:pPr></w:pPrDefault></w:docDefaults>"
            + extra
            + "</w:styles>"
        )

    @staticmethod
    def heading_style(style_id: str, name: str, bold: bool = False, centered: bool = False) -> str:
        ppr = '<w:pPr><w:jc w:val="center"/></w:pPr>' if centered else ""
        rpr = "<w:rPr><w:b/></w:rPr>" if bold else ""
        return (
            f'<w:style w:type="paragraph" w:styleId="{style_id}">'
            f'<w:name w:val="{name}"/>{ppr}{rpr}</w:style>'
        )

    @staticmethod
    def page_number_footer() -> str:
        return (
            XML_DECL
            + f'<w:ftr xmlns:w="{W_NS}"><w:p><w:pPr><w:jc w:val="right"/></w:pPr>'
            '<w:r><w:fldChar w:fldCharType="begin"/></w:r>'
            '<w:r><w:instrText xml:space="preserve"> PAGE   \\* MERGEFORMAT </w:instrText></w:r>'
            '<w:r><w:fldChar w:fldCharType="separate"/></w:r>'
            "<w:r><w:t>1</w:t></w:r>"
            '<w:r><w:fldChar w:fldCharType="end"/></w:r>'
            "</w:p></w:ftr>"
        )

    @staticmethod
    def words(n: int, word: str = "memory") -> str:
        return " ".join([word] * n)

    @staticmethod
    def build(document_xml: Optional[str], styles_xml: Optional[str] = None,
              parts: Optional[Dict[str, str]] = None, main_part: str = "word/document.xml") -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            zf.writestr("[Content_Types].xml", CONTENT_TYPES)
            zf.writestr("_rels/.rels", ROOT_RELS.format(target=main_part))
            if document_xml is not None:
                zf.writestr(main_part, document_xml)
            if styles_xml is not None:
                zf.writestr("word/styles.xml", styles_xml)
            for name, xml in (parts or {}).items():
                zf.writestr(name, xml)
        return buf.getvalue()


@pytest.fixture
def docx():
    return DocxFactory()


@pytest.fixture
def apa_paper(docx) -> bytes:
    """A short paper that passes every check."""
    p = docx.para
    body = [
        p("The Effects of Sleep on Memory", style="Title", bold=True, centered=True),
        p("Jane Doe"),
        p("Department of Psychology, State University"),
        p("Abstract", style="Heading1", bold=True, centered=True),
        p(docx.words(160)),
        p("Keywords: sleep, memory"),
        p("Method", style="Heading1", bold=True, centered=True),
        p(
            "Participants slept well (Smith, 2020). As noted, "
            '"sleep strengthens recently formed memories" (Walker, 2017, p. 45).'
        ),
        p("Participants", style="Heading2", bold=True),
        p("Results", style="Heading1", bold=True, centered=True),
        p("References", style="Heading1", bold=True, centered=True),
        p("Smith, J. (2020). Sleep and memory. Journal of Sleep Research, 12(3), 45-67."),
        p("Walker, M. (2017). Why we sleep: Unlocking the power of sleep and dreams. Scribner."),
    ]
    return docx.build(
        docx.document(body, sect=docx.margins()),
        docx.styles(),
        parts={"word/footer1.xml": docx.page_number_footer()},
    )
