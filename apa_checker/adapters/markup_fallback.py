"""
Pattern-matching scan of WordprocessingML markup.

Used when ``word/document.xml`` is not well-formed XML, so the structured
parser in ``docx_adapter`` cannot build a tree. The scan works on the raw
markup string and recovers the same facts the structured path does, with less
precision (nested elements and unusual attribute order are not handled).
"""
from __future__ import annotations
from html import unescape
from typing import List, Optional
import re

from apa_checker.ir import Margins, Paragraph

_PARAGRAPH = re.compile(r"<w:p\b[^>]*?(?<!/)>(.*?)</w:p>", re.S)
_TEXT = re.compile(r"<w:t(?:\s[^>]*)?>([^<]*)</w:t>")
_STYLE = re.compile(r'<w:pStyle\s+w:val="([^"]+)"')
_BOLD = re.compile(r'<w:b(?:\s+w:val="(?:true|1|on)")?\s*/>')
_ITALIC = re.compile(r'<w:i(?:\s+w:val="(?:true|1|on)")?\s*/>')
_CENTER = re.compile(r'<w:jc\s+w:val="center"')
_ASCII_FONT = re.compile(r'w:(?:ascii|hAnsi)="([^"]+)"')
_SIZE = re.compile(r'<w:sz\s+w:val="(\d+)"')
_DOUBLE_LINE = re.compile(r'w:line="480"|w:lineRule="auto"')
_PAGE_MARGIN = re.compile(r"<w:pgMar\b[^>]*/?>")


def scan_paragraphs(markup: str) -> List[Paragraph]:
    out: List[Paragraph] = []
    for m in _PARAGRAPH.finditer(markup):
        body = m.group(1)
        text = " ".join(unescape(t) for t in _TEXT.findall(body))
        style = _STYLE.search(body)
        out.append(Paragraph(
            text=text,
            style_id=style.group(1) if style else "",
            is_bold=bool(_BOLD.search(body)),
            is_italic=bool(_ITALIC.search(body)),
            is_centered=bool(_CENTER.search(body)),
        ))
    return out


def scan_font_families(markup: str) -> List[str]:
    return [unescape(f) for f in _ASCII_FONT.findall(markup)]


def scan_half_point_sizes(markup: str) -> List[int]:
    return [int(v) for v in _SIZE.findall(markup)]


def scan_double_spacing(markup: str) -> bool:
    return bool(_DOUBLE_LINE.search(markup))


def scan_margins(markup: str) -> Optional[Margins]:
    m = _PAGE_MARGIN.search(markup)
    if not m:
        return None
    tag = m.group(0)

    def _side(name: str) -> int:
        v = re.search(rf'w:{name}="(-?\d+)"', tag)
        return int(v.group(1)) if v else 0

    return Margins(top=_side("top"), bottom=_side("bottom"), left=_side("left"), right=_side("right"))
