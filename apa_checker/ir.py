from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

SEVERITIES = ("error", "warning", "suggestion")

@dataclass(frozen=True)
class FontInfo:
    family: str
    size_pt: float

@dataclass(frozen=True)
class SpacingInfo:
    is_double_spaced: bool

@dataclass(frozen=True)
class Margins:
    # twentieths of a point (1440 == 1 inch)
    top: int
    bottom: int
    left: int
    right: int

@dataclass(frozen=True)
class Paragraph:
    text: str
    style_id: str = ""
    heading_level: int = 0   # 0 when not a heading
    is_bold: bool = False
    is_italic: bool = False
    is_centered: bool = False

@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    is_bold: bool = False
    is_centered: bool = False
    is_italic: bool = False

@dataclass(frozen=True)
class DocumentStructure:
    text: str
    font_info: FontInfo
    spacing_info: SpacingInfo
    headings: Tuple[Heading, ...] = ()
    page_numbers_present: bool = False
    paragraphs: Tuple[Paragraph, ...] = ()
    fonts_found: Tuple[str, ...] = ()
    margins: Optional[Margins] = None
    used_fallback: bool = False

@dataclass
class Finding:
    message: str
    details: str = ""
    id: Optional[str] = None
    severity: Optional[str] = None  # error|warning|suggestion, None when passing

    @property
    def is_issue(self) -> bool:
        return self.severity is not None

    def to_dict(self) -> Dict[str, str]:
        d: Dict[str, str] = {}
        if self.id is not None:
            d["id"] = self.id
        if self.severity is not None:
            d["severity"] = self.severity
        d["message"] = self.message
        d["details"] = self.details
        return d

@dataclass
class ValidationReport:
    filename: str
    passing: List[Finding] = field(default_factory=list)
    issues: List[Finding] = field(default_factory=list)
    score: int = 0
    debug: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "passing": [f.to_dict() for f in self.passing],
            "issues": [f.to_dict() for f in self.issues],
            "score": self.score,
            "debug": self.debug,
        }
