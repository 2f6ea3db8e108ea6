from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple
import io
import logging
import posixpath
import re
import zipfile
import zlib

from docx.oxml import parse_xml
from docx.oxml.ns import qn
from lxml import etree

from apa_checker.adapters import markup_fallback
from apa_checker.errors import MalformedPackage
from apa_checker.ir import (
    DocumentStructure, FontInfo, Heading, Margins, Paragraph, SpacingInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_FONT = FontInfo(family="Times New Roman", size_pt=12.0)

_MAIN_PART = "word/document.xml"
_STYLES_PART = "word/styles.xml"
_OFFICE_DOCUMENT_REL = "/officeDocument"
_HEADER_FOOTER = re.compile(r"^word/(?:header|footer)\d*\.xml$")

_HEADING_STYLE = re.compile(r"heading\s*(\d*)\s*$", re.IGNORECASE)
_OFF_VALUES = {"0", "false", "off", "none"}

_FIELD_PAGE_TOKEN = re.compile(r"\bPAGE\b", re.IGNORECASE)
# one field only: stop at the first end marker after begin
_PAGE_FIELD_SEQUENCE = re.compile(
    r'w:fldCharType="begin"(?:(?!w:fldCharType="end").)*?\bPAGE\b', re.S
)
_PAGE_NUMBER_ELEMENT = re.compile(r"<w:pgNum[\s/>]")
_PAGE_SWITCH = re.compile(r"\bPAGE\s*\\\*")

_CSS_DOUBLE_LINE_HEIGHT = re.compile(r"line-height\s*:\s*(?:2(?:\.0+)?(?![\d.%])|200%)", re.IGNORECASE)


@dataclass(frozen=True)
class _StyleProps:
    name: str
    is_bold: bool
    is_italic: bool
    is_centered: bool


@dataclass
class _Part:
    name: str
    markup: str
    root: Optional[etree._Element]


def _norm(s: str) -> str:
    return " ".join(s.split()).strip()


def _open_package(data: bytes) -> zipfile.ZipFile:
    # docx.Document() rejects a main part that is not well-formed, which the
    # pattern-matching fallback still reads, so parts are pulled from the zip
    if not data:
        raise MalformedPackage("Document is empty")
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise MalformedPackage(f"Not a valid .docx archive: {e}") from e


def _main_part_name(zf: zipfile.ZipFile) -> str:
    # _rels/.rels points at the main part; nearly always word/document.xml
    try:
        rels = parse_xml(zf.read("_rels/.rels"))
    except (KeyError, etree.XMLSyntaxError, zipfile.BadZipFile, zlib.error):
        return _MAIN_PART
    for rel in rels:
        if str(rel.get("Type", "")).endswith(_OFFICE_DOCUMENT_REL) and rel.get("Target"):
            return posixpath.normpath(rel.get("Target").lstrip("/"))
    return _MAIN_PART


def _read_text(zf: zipfile.ZipFile, name: str) -> str:
    return zf.read(name).decode("utf-8")


def _read_main(zf: zipfile.ZipFile) -> _Part:
    name = _main_part_name(zf)
    try:
        markup = _read_text(zf, name)
    except KeyError as e:
        raise MalformedPackage(f"Main document part {name} is missing") from e
    except (zipfile.BadZipFile, zlib.error, RuntimeError, UnicodeDecodeError) as e:
        raise MalformedPackage(f"Main document part {name} is unreadable: {e}") from e
    try:
        root = parse_xml(markup.encode("utf-8"))
    except etree.XMLSyntaxError as e:
        logger.warning(f"{name} is not well-formed ({e}); using pattern matching")
        root = None
    return _Part(name=name, markup=markup, root=root)


def _read_optional(zf: zipfile.ZipFile, name: str) -> Optional[_Part]:
    try:
        markup = _read_text(zf, name)
    except KeyError:
        logger.debug(f"{name} not present; using defaults")
        return None
    except (zipfile.BadZipFile, zlib.error, RuntimeError, UnicodeDecodeError) as e:
        logger.debug(f"{name} unreadable ({e}); using defaults")
        return None
    try:
        root = parse_xml(markup.encode("utf-8"))
    except etree.XMLSyntaxError as e:
        logger.debug(f"{name} is not well-formed ({e})")
        root = None
    return _Part(name=name, markup=markup, root=root)


def _is_on(el: Optional[etree._Element]) -> bool:
    if el is None:
        return False
    return str(el.get(qn("w:val"), "true")).lower() not in _OFF_VALUES


def _has_marker(container: etree._Element, tag: str) -> bool:
    return any(_is_on(el) for el in container.iter(qn(tag)))


def _centered(container: etree._Element) -> bool:
    return any(jc.get(qn("w:val")) == "center" for jc in container.iter(qn("w:jc")))


def _style_map(styles: Optional[_Part]) -> Dict[str, _StyleProps]:
    out: Dict[str, _StyleProps] = {}
    if styles is None or styles.root is None:
        return out
    for st in styles.root.iter(qn("w:style")):
        style_id = st.get(qn("w:styleId"))
        if not style_id:
            continue
        name_el = st.find(qn("w:name"))
        out[style_id] = _StyleProps(
            name=name_el.get(qn("w:val"), "") if name_el is not None else "",
            is_bold=_has_marker(st, "w:b"),
            is_italic=_has_marker(st, "w:i"),
            is_centered=_centered(st),
        )
    return out


def _heading_level(style_id: str, style: Optional[_StyleProps]) -> int:
    for candidate in (style_id, style.name if style else ""):
        m = _HEADING_STYLE.search(candidate or "")
        if m:
            return int(m.group(1)) if m.group(1) else 1
    return 0


def _parse_paragraphs(root: etree._Element) -> List[Paragraph]:
    out: List[Paragraph] = []
    for p in root.iter(qn("w:p")):
        text = " ".join(t.text or "" for t in p.iter(qn("w:t")))
        style_id = ""
        p_pr = p.find(qn("w:pPr"))
        if p_pr is not None:
            p_style = p_pr.find(qn("w:pStyle"))
            if p_style is not None:
                style_id = p_style.get(qn("w:val"), "")
        out.append(Paragraph(
            text=text,
            style_id=style_id,
            is_bold=_has_marker(p, "w:b"),
            is_italic=_has_marker(p, "w:i"),
            is_centered=_centered(p),
        ))
    return out


def _classify(paragraphs: List[Paragraph], styles: Dict[str, _StyleProps]) -> List[Paragraph]:
    out: List[Paragraph] = []
    for p in paragraphs:
        if not p.text.strip():
            continue
        style = styles.get(p.style_id)
        level = _heading_level(p.style_id, style) if p.style_id else 0
        if style is not None:
            p = replace(
                p,
                is_bold=p.is_bold or style.is_bold,
                is_italic=p.is_italic or style.is_italic,
                is_centered=p.is_centered or style.is_centered,
            )
        out.append(replace(p, text=_norm(p.text), heading_level=level))
    return out


def _font_families(part: Optional[_Part]) -> List[str]:
    if part is None:
        return []
    if part.root is None:
        return markup_fallback.scan_font_families(part.markup)
    out: List[str] = []
    for rf in part.root.iter(qn("w:rFonts")):
        family = rf.get(qn("w:ascii")) or rf.get(qn("w:hAnsi"))
        if family:
            out.append(family)
    return out


def _half_point_sizes(part: Optional[_Part]) -> List[int]:
    if part is None:
        return []
    if part.root is None:
        return markup_fallback.scan_half_point_sizes(part.markup)
    out: List[int] = []
    for sz in part.root.iter(qn("w:sz")):
        val = sz.get(qn("w:val"), "")
        if val.isdigit():
            out.append(int(val))
    return out


def detect_font(
    styles: Optional[_Part], main: _Part, default: FontInfo = DEFAULT_FONT
) -> Tuple[FontInfo, Tuple[str, ...]]:
    """First declared family and size anywhere in styles + document markup.

    No cascade: document defaults, paragraph styles and direct formatting are
    not ranked against each other. ``default`` fills in whatever is not declared.
    """
    families = _font_families(styles) + _font_families(main)
    sizes = _half_point_sizes(styles) + _half_point_sizes(main)
    family = families[0] if families else default.family
    size_pt = sizes[0] / 2 if sizes else default.size_pt
    found = tuple(dict.fromkeys(families))
    return FontInfo(family=family, size_pt=size_pt), found


def _spacing_markers(part: Optional[_Part]) -> bool:
    if part is None:
        return False
    if part.root is None:
        return markup_fallback.scan_double_spacing(part.markup)
    for sp in part.root.iter(qn("w:spacing")):
        if sp.get(qn("w:line")) == "480" or sp.get(qn("w:lineRule")) == "auto":
            return True
    return False


def detect_spacing(styles: Optional[_Part], main: _Part, html: Optional[str] = None) -> SpacingInfo:
    # positive evidence only; no markers does not mean single spacing
    double = (
        _spacing_markers(styles)
        or _spacing_markers(main)
        or bool(html and _CSS_DOUBLE_LINE_HEIGHT.search(html))
    )
    return SpacingInfo(is_double_spaced=double)


def _page_field_in_tree(root: etree._Element) -> bool:
    for instr in root.iter(qn("w:instrText")):
        if _FIELD_PAGE_TOKEN.search(instr.text or ""):
            return True
    for fld in root.iter(qn("w:fldSimple")):
        if _FIELD_PAGE_TOKEN.search(fld.get(qn("w:instr"), "")):
            return True
    return False


def detect_page_numbers(parts: List[_Part]) -> bool:
    for part in parts:
        if part.root is not None:
            if _page_field_in_tree(part.root):
                return True
        elif _PAGE_FIELD_SEQUENCE.search(part.markup):
            return True
    return any(
        _PAGE_NUMBER_ELEMENT.search(part.markup) or _PAGE_SWITCH.search(part.markup)
        for part in parts
    )


def detect_margins(main: _Part) -> Optional[Margins]:
    if main.root is None:
        return markup_fallback.scan_margins(main.markup)
    pg_mar = next(main.root.iter(qn("w:pgMar")), None)
    if pg_mar is None:
        return None

    def _side(name: str) -> int:
        try:
            return int(pg_mar.get(qn(f"w:{name}"), "0"))
        except ValueError:
            return 0

    return Margins(top=_side("top"), bottom=_side("bottom"), left=_side("left"), right=_side("right"))


def extract_structure(
    data: bytes, html: Optional[str] = None, default_font: FontInfo = DEFAULT_FONT
) -> DocumentStructure:
    """Derive a DocumentStructure from raw .docx bytes.

    Raises MalformedPackage when the archive cannot be opened or the main
    document part cannot be read. Missing styles, header or footer parts fall
    back to defaults. ``html`` is an optional HTML rendering of the document,
    consulted only for line-height. ``default_font`` is reported when the
    markup declares no font family or size.
    """
    with _open_package(data) as zf:
        main = _read_main(zf)
        styles = _read_optional(zf, _STYLES_PART)
        headers_footers = [
            part for part in (
                _read_optional(zf, name) for name in sorted(zf.namelist()) if _HEADER_FOOTER.match(name)
            ) if part is not None
        ]

    if main.root is not None:
        raw_paragraphs = _parse_paragraphs(main.root)
    else:
        raw_paragraphs = markup_fallback.scan_paragraphs(main.markup)
    paragraphs = _classify(raw_paragraphs, _style_map(styles))

    text = _norm(" ".join(p.text for p in raw_paragraphs))

    font_info, fonts_found = detect_font(styles, main, default_font)
    headings = tuple(
        Heading(level=p.heading_level, text=p.text, is_bold=p.is_bold,
                is_centered=p.is_centered, is_italic=p.is_italic)
        for p in paragraphs if p.heading_level
    )
    structure = DocumentStructure(
        text=text,
        font_info=font_info,
        spacing_info=detect_spacing(styles, main, html),
        headings=headings,
        page_numbers_present=detect_page_numbers([main] + headers_footers),
        paragraphs=tuple(paragraphs),
        fonts_found=fonts_found,
        margins=detect_margins(main),
        used_fallback=main.root is None,
    )
    logger.debug(
        f"Extracted {len(paragraphs)} paragraphs, {len(headings)} headings, "
        f"font={font_info.family} {font_info.size_pt}pt"
    )
    return structure
