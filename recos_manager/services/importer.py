"""
Best-effort text import from uploaded PDF / PowerPoint files.

No format parser is involved: the raw bytes are scanned and only printable
ASCII survives.  This recovers the plain strings of simple, uncompressed
documents and yields noise or nothing for compressed streams; callers get
an ExtractionError when too little text comes out.

Public API
----------
extract_printable_text(data, min_length)  -> str
parse_text_content(text)                  -> (title, description)
build_imported_recommendation(...)        -> Dict (row ready for insert)
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from recos_manager.config import settings
from recos_manager.models.database_models import Category, Priority, Status

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Document importé"
FALLBACK_DESCRIPTION = "Contenu importé du document"
IMPORT_TAG = "importé"

_NON_PRINTABLE_RE = re.compile(rb"[^\x20-\x7e\n]+")
_SPACE_RUN_RE = re.compile(r" {2,}")
_TRAILING_SPACE_RE = re.compile(r" +\n")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


class ExtractionError(ValueError):
    """The upload did not yield enough readable text."""


def extract_printable_text(data: bytes, min_length: Optional[int] = None) -> str:
    """
    Keep printable ASCII from raw *data*.

    CR, LF and CRLF become ``\\n``; every run of other bytes becomes one
    space.  Space runs are collapsed, trailing spaces dropped and three or
    more newlines reduced to one blank line.

    Raises:
        ExtractionError: fewer than *min_length* characters remain
    """
    if min_length is None:
        min_length = settings.IMPORT_MIN_TEXT_LENGTH

    data = data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
    text = _NON_PRINTABLE_RE.sub(b" ", data).decode("ascii")
    text = _SPACE_RUN_RE.sub(" ", text)
    text = _TRAILING_SPACE_RE.sub("\n", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    text = text.strip()

    if len(text) < min_length:
        raise ExtractionError(
            f"Could not extract enough text from the document "
            f"({len(text)} characters, minimum {min_length})."
        )
    return text


def parse_text_content(text: str) -> Tuple[str, str]:
    """First non-empty line is the title, the rest the description."""
    lines = [line.strip() for line in text.split("\n")]
    non_empty = [line for line in lines if line]
    if not non_empty:
        return FALLBACK_TITLE, FALLBACK_DESCRIPTION

    title = non_empty[0]
    title_index = lines.index(title)
    description = "\n".join(lines[title_index + 1:]).strip()
    return title, description or FALLBACK_DESCRIPTION


def build_imported_recommendation(
    filename: str,
    text: str,
    created_by: Optional[str] = None,
) -> Dict[str, Any]:
    """Row for a draft recommendation created from an imported file."""
    title, description = parse_text_content(text)
    extension = Path(filename).suffix.lower().lstrip(".")
    return {
        "client_id": None,
        "title": title[:255],
        "category": Category.STRATEGY.value,
        "description": description,
        "context": f"Importé depuis {filename}",
        "prompt": "",
        "priority": Priority.MEDIUM.value,
        "status": Status.DRAFT.value,
        "tags": [IMPORT_TAG, extension],
        "created_by": created_by,
    }
