from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import yaml

from apa_checker.ir import SEVERITIES, FontInfo

logger = logging.getLogger(__name__)

DEFAULT_RULE_PACK = Path(__file__).parent / "apa7.yml"

@dataclass(frozen=True)
class AcceptableFont:
    name: str
    size: float

def load_rule_pack(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a YAML rule pack, layered over the bundled APA 7 defaults.

    A custom pack only needs the keys it overrides; nested mappings are merged
    key by key, lists and scalars replace the default outright.
    """
    with open(DEFAULT_RULE_PACK, "r", encoding="utf-8") as f:
        pack = yaml.safe_load(f) or {}
    if path is None or Path(path) == DEFAULT_RULE_PACK:
        return pack

    with open(path, "r", encoding="utf-8") as f:
        custom = yaml.safe_load(f) or {}
    if not isinstance(custom, dict):
        raise ValueError(f"Rule pack {path} must be a mapping, got {type(custom).__name__}")
    logger.debug(f"Loaded rule pack overrides from {path}: {sorted(custom)}")
    return _merge(pack, custom)

def _merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = deepcopy(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out

def load_acceptable_fonts(pack: Dict[str, Any]) -> List[AcceptableFont]:
    fonts: List[AcceptableFont] = []
    for f in pack.get("fonts", []) or []:
        fonts.append(AcceptableFont(name=str(f["name"]), size=float(f["size"])))
    return fonts

def load_default_font(pack: Dict[str, Any]) -> FontInfo:
    d = pack.get("default_font") or {}
    return FontInfo(
        family=str(d.get("family", "Times New Roman")),
        size_pt=float(d.get("size_pt", 12)),
    )

def severity_for(pack: Dict[str, Any], rule: str) -> str:
    sev = str((pack.get("severities") or {}).get(rule, "warning")).lower()
    if sev not in SEVERITIES:
        raise ValueError(f"Unknown severity {sev!r} for rule {rule!r}")
    return sev

def weights(pack: Dict[str, Any]) -> Dict[str, int]:
    w = pack.get("weights") or {}
    return {sev: int(w.get(sev, 0)) for sev in SEVERITIES}

def setting(pack: Dict[str, Any], section: str, key: str, default: Any = None) -> Any:
    return (pack.get(section) or {}).get(key, default)
