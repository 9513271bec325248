"""
Chapter segmentation of recommendation descriptions.

Strategy (in priority order):
  1. AI:        the chat-completion service splits the text, when configured
                and when it returns at least one chapter
  2. Numbered:  split on "1. ", "2. " ... markers at line start; the heading
                text after the numeral is the chapter title
  3. Paragraph: split on blank lines; the first line of each paragraph is
                the chapter title

Chapters are recomputed on every export and never stored.  Any AI failure
falls back to the deterministic splitters, so segmentation itself never
raises.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from recos_manager.services.ai_assistant import AIAssistantService

logger = logging.getLogger(__name__)

SOURCE_AI = "ai"
SOURCE_NUMBERED = "numbered"
SOURCE_PARAGRAPHS = "paragraphs"
SOURCE_EMPTY = "empty"

INTRODUCTION_TITLE = "Introduction"


@dataclass
class Chapter:
    """A titled slice of a description."""

    title: str
    content: str


# "1. Heading" at the start of a line; the heading runs to end of line
_NUMBERED_MARKER_RE = re.compile(r"^[ \t]*(\d+)\.[ \t]+(\S[^\n]*)$", re.MULTILINE)
_BLANK_LINE_RE = re.compile(r"\n\s*\n")
_HEADING_PREFIX_RE = re.compile(r"^#*\s*(?:\d+\.\s*)?")


def _default_title(index: int) -> str:
    return f"Chapitre {index}"


def split_numbered(text: str) -> List[Chapter]:
    """
    Split on numbered markers.  Returns [] when the text has none.

    Text before the first marker, when present, becomes a leading
    "Introduction" chapter.
    """
    matches = list(_NUMBERED_MARKER_RE.finditer(text))
    if not matches:
        return []

    chapters: List[Chapter] = []
    preamble = text[:matches[0].start()].strip()
    if preamble:
        chapters.append(Chapter(title=INTRODUCTION_TITLE, content=preamble))

    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        title = match.group(2).strip() or _default_title(len(chapters) + 1)
        content = text[match.end():end].strip()
        chapters.append(Chapter(title=title, content=content))
    return chapters


def split_paragraphs(text: str) -> List[Chapter]:
    """
    One chapter per blank-line-delimited paragraph.

    The first line (leading "#" marks stripped) is the title; a single-line
    paragraph keeps that line as its content too.
    """
    paragraphs = [p.strip() for p in _BLANK_LINE_RE.split(text) if p.strip()]
    chapters: List[Chapter] = []
    for index, paragraph in enumerate(paragraphs, start=1):
        lines = paragraph.split("\n")
        title = _HEADING_PREFIX_RE.sub("", lines[0]).strip() or _default_title(index)
        content = "\n".join(lines[1:]).strip() or paragraph
        chapters.append(Chapter(title=title, content=content))
    return chapters


def segment_fallback(description: str) -> Tuple[str, List[Chapter]]:
    """Deterministic segmentation: numbered markers first, then paragraphs."""
    text = (description or "").replace("\r\n", "\n").replace("\r", "\n").strip()
    if not text:
        return SOURCE_EMPTY, []

    numbered = split_numbered(text)
    if numbered:
        return SOURCE_NUMBERED, numbered
    return SOURCE_PARAGRAPHS, split_paragraphs(text)


async def segment_description(
    description: str,
    ai_service: Optional["AIAssistantService"] = None,
) -> Tuple[str, List[Chapter]]:
    """
    Segment *description* into chapters.

    Returns ``(source, chapters)`` where source is one of "ai", "numbered",
    "paragraphs" or "empty".
    """
    if not (description or "").strip():
        return SOURCE_EMPTY, []

    if ai_service is not None and ai_service.is_configured:
        try:
            chapters = await ai_service.segment_chapters(description)
            if chapters:
                return SOURCE_AI, chapters
            logger.info("AI segmentation returned no chapters, using fallback splitter")
        except Exception as exc:
            logger.warning("AI segmentation failed (%s), using fallback splitter", exc)

    return segment_fallback(description)
