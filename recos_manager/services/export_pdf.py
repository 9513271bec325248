"""
Paginated PDF export built with PyMuPDF.

A4 portrait.  Page 1 is the cover (title, client, pills, context panel,
tags); each chapter then gets one page with its title, an accent rule and
the body laid out as bullets or paragraphs in fixed boxes.  Text that does
not fit its box is shrunk down to MIN_FONT_SIZE and then truncated, so a
chapter never spills onto a second page.
"""
from __future__ import annotations

import logging
from typing import List, Tuple

import fitz  # PyMuPDF

from recos_manager.config import settings
from recos_manager.models.schemas import RecommendationResponse
from recos_manager.services import layout
from recos_manager.services.chapters import Chapter

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN = 50
CONTENT_RIGHT = PAGE_WIDTH - MARGIN
BODY_BOTTOM = PAGE_HEIGHT - 70
FOOTER_TOP = PAGE_HEIGHT - 45

REGULAR = "helv"
BOLD = "hebo"
BODY_SIZE = 11
MIN_FONT_SIZE = 7
BULLET_INDENT = 16
BLOCK_GAP = 8


def _color(hex_value: str) -> Tuple[float, float, float]:
    r, g, b = layout.hex_to_rgb(hex_value)
    return r / 255, g / 255, b / 255


def fit_textbox(page, rect: fitz.Rect, text: str, fontsize: float = BODY_SIZE,
                fontname: str = REGULAR, color: str = layout.BODY_COLOR,
                align: int = fitz.TEXT_ALIGN_LEFT) -> float:
    """
    Write *text* into *rect*, shrinking and then truncating until it fits.

    Returns the height actually used.
    """
    if not text:
        return 0.0

    size = fontsize
    words = text.split()
    while True:
        rc = page.insert_textbox(rect, text, fontsize=size, fontname=fontname,
                                 color=_color(color), align=align)
        if rc >= 0:
            return rect.height - rc
        if size > MIN_FONT_SIZE:
            size -= 1
            continue
        # Smallest size still overflows: drop the last quarter of the words
        if len(words) <= 1:
            return 0.0
        words = words[: len(words) * 3 // 4]
        text = " ".join(words) + " ..."


def _page(doc) -> "fitz.Page":
    page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
    page.draw_rect(page.rect, color=None, fill=_color(layout.BACKGROUND_COLOR), width=0)
    return page


def _pill(page, rect: fitz.Rect, text: str, fill: str, outline: str, text_color: str) -> None:
    page.draw_rect(rect, color=_color(outline), fill=_color(fill), width=1.5)
    label = fitz.Rect(rect.x0, rect.y0 + 5, rect.x1, rect.y1)
    fit_textbox(page, label, text, 10, BOLD, text_color, fitz.TEXT_ALIGN_CENTER)


def _footer(page, text: str) -> None:
    rect = fitz.Rect(MARGIN, FOOTER_TOP, CONTENT_RIGHT, FOOTER_TOP + 15)
    fit_textbox(page, rect, text, 8, REGULAR, layout.MUTED_COLOR, fitz.TEXT_ALIGN_RIGHT)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

def add_cover_page(doc, reco: RecommendationResponse, client_name: str) -> None:
    page = _page(doc)

    y = 60
    y += fit_textbox(page, fitz.Rect(MARGIN, y, CONTENT_RIGHT, y + 90), reco.title, 26,
                     BOLD, layout.TITLE_COLOR) + 6
    y += fit_textbox(page, fitz.Rect(MARGIN, y, CONTENT_RIGHT, y + 24), client_name, 14,
                     REGULAR, layout.NEUTRAL_COLOR) + 12

    category = layout.category_color(reco.category)
    _pill(page, fitz.Rect(MARGIN, y, MARGIN + 110, y + 24), reco.category, category, category,
          "FFFFFF")
    priority = layout.priority_color(reco.priority)
    _pill(page, fitz.Rect(MARGIN + 122, y, MARGIN + 232, y + 24), f"{reco.priority} Priority",
          "FFFFFF", priority, priority)
    y += 24 + 20

    if reco.context:
        panel = fitz.Rect(MARGIN, y, CONTENT_RIGHT, y + 130)
        page.draw_rect(panel, color=None, fill=_color(layout.PANEL_COLOR), width=0)
        fit_textbox(page, fitz.Rect(MARGIN + 14, y + 12, CONTENT_RIGHT - 14, y + 28),
                    "CONTEXTE", 10, BOLD, layout.LABEL_COLOR)
        fit_textbox(page, fitz.Rect(MARGIN + 14, y + 32, CONTENT_RIGHT - 14, y + 122),
                    reco.context, BODY_SIZE, REGULAR, layout.BODY_COLOR)
        y += 130 + 16

    if reco.tags:
        fit_textbox(page, fitz.Rect(MARGIN, y, CONTENT_RIGHT, y + 30),
                    "Tags: " + ", ".join(reco.tags), 10, REGULAR, layout.NEUTRAL_COLOR)

    _footer(page, settings.EXPORT_AUTHOR)


def add_chapter_page(doc, reco: RecommendationResponse, chapter: Chapter, index: int,
                     total: int) -> None:
    page = _page(doc)

    y = 50
    y += fit_textbox(page, fitz.Rect(MARGIN, y, CONTENT_RIGHT, y + 60),
                     chapter.title or f"Chapitre {index}", 20, BOLD, layout.TITLE_COLOR) + 6
    page.draw_rect(fitz.Rect(MARGIN, y, CONTENT_RIGHT, y + 2), color=None,
                   fill=_color(layout.accent_color(reco.category)), width=0)
    y += 2 + 16

    content = layout.classify_content(chapter.content)
    if content.lead:
        y += fit_textbox(page, fitz.Rect(MARGIN, y, CONTENT_RIGHT, BODY_BOTTOM),
                         content.lead) + BLOCK_GAP

    for item in content.bullets:
        if y >= BODY_BOTTOM - BODY_SIZE:
            break
        page.draw_circle(fitz.Point(MARGIN + 4, y + BODY_SIZE * 0.55), 2,
                         color=None, fill=_color(layout.BODY_COLOR))
        y += fit_textbox(page, fitz.Rect(MARGIN + BULLET_INDENT, y, CONTENT_RIGHT, BODY_BOTTOM),
                         item) + BLOCK_GAP / 2

    for para in content.paragraphs:
        if y >= BODY_BOTTOM - BODY_SIZE:
            break
        y += fit_textbox(page, fitz.Rect(MARGIN, y, CONTENT_RIGHT, BODY_BOTTOM),
                         para) + BLOCK_GAP

    _footer(page, f"{index} / {total}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_pdf(reco: RecommendationResponse, client_name: str, chapters: List[Chapter]) -> bytes:
    """Render the document and return the PDF bytes."""
    doc = fitz.open()
    try:
        doc.set_metadata({
            "title": reco.title,
            "author": settings.EXPORT_AUTHOR,
            "subject": reco.category,
            "keywords": ", ".join(reco.tags),
        })
        add_cover_page(doc, reco, client_name)
        for index, chapter in enumerate(chapters, start=1):
            add_chapter_page(doc, reco, chapter, index, len(chapters))

        logger.info("PDF export: %r, %d pages", reco.title, doc.page_count)
        return doc.tobytes(garbage=3, deflate=True)
    finally:
        doc.close()
