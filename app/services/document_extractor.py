"""
Plain text and PDF extraction for chat attachments.

Extraction never raises. A failure yields an `ExtractionResult` with
`ok=False` whose text describes the error, so the model still receives
something and can tell the user the document was unreadable.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from pypdf import PdfReader

from app.core.logger import get_logger

log = get_logger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ExtractionResult:
    ok: bool
    text: str


def read_text_file(path: PathLike) -> ExtractionResult:
    try:
        return ExtractionResult(ok=True, text=Path(path).read_bytes().decode("utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        log.warning("Text read failed for %s: %s", path, e)
        return ExtractionResult(ok=False, text=f"[Gagal membaca teks file: {e}]")


def extract_pdf_text(path: PathLike) -> ExtractionResult:
    try:
        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        # pypdf raises a wide range of errors on malformed input
        log.warning("PDF parse failed for %s: %s", path, e)
        return ExtractionResult(ok=False, text=f"[Error membaca PDF: {e}]")
    return ExtractionResult(ok=True, text="\n".join(pages))
