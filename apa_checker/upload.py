from __future__ import annotations
from typing import Optional

from apa_checker.errors import InvalidInput

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

def check_upload(filename: Optional[str], size: int, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    """Reject uploads the checker should never see: no file, not .docx, or too large."""
    if not filename:
        raise InvalidInput("Please upload a .docx file")
    if not filename.lower().endswith(".docx"):
        raise InvalidInput(f"{filename} is not a .docx file")
    if size > max_bytes:
        raise InvalidInput(
            f"{filename} is {size / (1024 * 1024):.1f} MiB; the limit is {max_bytes // (1024 * 1024)} MiB"
        )
