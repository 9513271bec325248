"""
Slide-deck export (16:9) built with python-pptx.

Slide 1 carries the recommendation header: title, client, category and
priority pills, the optional context panel and the tag line.  Every chapter
then gets its own slide with an accent rule in the category colour and
either a bulleted list or stacked paragraphs.  All coordinates are fixed.
"""
from __future__ import annotations

import io
import logging
from typing import List, Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.oxml.ns import qn
from pptx.util import Emu, Inches, Pt

from recos_manager.config import settings
from recos_manager.models.schemas import RecommendationResponse
from recos_manager.services import layout
from recos_manager.services.chapters import Chapter

logger = logging.getLogger(__name__)

SLIDE_WIDTH = Inches(10)
SLIDE_HEIGHT = Inches(5.625)
BLANK_LAYOUT = 6
FONT_FACE = "Arial"

# Chapter body area (inches)
BODY_TOP = 1.7
BODY_MAX_Y = 5.0
LINE_HEIGHT = 0.3
PARAGRAPH_GAP = 0.2
CHARS_PER_LINE = 80


def _rgb(hex_value: str) -> RGBColor:
    return RGBColor.from_string(hex_value)


def _set_background(slide, hex_value: str = layout.BACKGROUND_COLOR) -> None:
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = _rgb(hex_value)


def _style_run(run, size: int, color: str, bold: bool = False) -> None:
    run.font.name = FONT_FACE
    run.font.size = Pt(size)
    run.font.bold = bold
    run.font.color.rgb = _rgb(color)


def add_text(slide, left, top, width, height, text, size=14, color=layout.BODY_COLOR,
             bold=False, align=PP_ALIGN.LEFT):
    """Place a wrapped single-paragraph text box."""
    box = slide.shapes.add_textbox(Inches(left), Inches(top), Inches(width), Inches(height))
    tf = box.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.TOP
    p = tf.paragraphs[0]
    p.alignment = align
    run = p.add_run()
    run.text = text
    _style_run(run, size, color, bold)
    return box


def add_pill(slide, left, top, width, height, text, fill: Optional[str], line: Optional[str],
             text_color: str):
    """Rounded rectangle with centred bold label."""
    shape = slide.shapes.add_shape(
        MSO_SHAPE.ROUNDED_RECTANGLE, Inches(left), Inches(top), Inches(width), Inches(height)
    )
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(fill or "FFFFFF")
    if line:
        shape.line.color.rgb = _rgb(line)
        shape.line.width = Pt(2)
    else:
        shape.line.fill.background()

    tf = shape.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.MIDDLE
    p = tf.paragraphs[0]
    p.alignment = PP_ALIGN.CENTER
    run = p.add_run()
    run.text = text
    _style_run(run, 14, text_color, bold=True)
    return shape


def add_rect(slide, left, top, width, height, fill: str):
    shape = slide.shapes.add_shape(
        MSO_SHAPE.RECTANGLE, Inches(left), Inches(top), Inches(width), Inches(height)
    )
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(fill)
    shape.line.fill.background()
    return shape


def _make_bullet(paragraph) -> None:
    """Turn a text-box paragraph into a hanging-indent bullet."""
    pPr = paragraph._p.get_or_add_pPr()
    indent = Inches(0.25)
    pPr.set("marL", str(Emu(indent)))
    pPr.set("indent", str(-Emu(indent)))
    bu_char = pPr.makeelement(qn("a:buChar"), {"char": "•"})
    pPr.insert_element_before(bu_char, "a:tabLst", "a:defRPr", "a:extLst")


# ---------------------------------------------------------------------------
# Slides
# ---------------------------------------------------------------------------

def add_title_slide(prs, reco: RecommendationResponse, client_name: str) -> None:
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _set_background(slide)

    add_text(slide, 0.5, 0.5, 8.5, 1.0, reco.title, 32, layout.TITLE_COLOR, bold=True)
    add_text(slide, 0.5, 1.6, 8.5, 0.4, client_name, 18, layout.NEUTRAL_COLOR)

    add_pill(slide, 0.5, 2.1, 1.5, 0.4, reco.category,
             fill=layout.category_color(reco.category), line=None, text_color="FFFFFF")
    priority = layout.priority_color(reco.priority)
    add_pill(slide, 2.2, 2.1, 1.5, 0.4, f"{reco.priority} Priority",
             fill="FFFFFF", line=priority, text_color=priority)

    if reco.context:
        panel = slide.shapes.add_shape(
            MSO_SHAPE.ROUNDED_RECTANGLE, Inches(0.5), Inches(2.8), Inches(8.5), Inches(1.2)
        )
        panel.fill.solid()
        panel.fill.fore_color.rgb = _rgb(layout.PANEL_COLOR)
        panel.line.fill.background()
        add_text(slide, 0.7, 2.9, 8.1, 0.3, "CONTEXTE", 12, layout.LABEL_COLOR, bold=True)
        add_text(slide, 0.7, 3.2, 8.1, 0.7, reco.context, 14, layout.BODY_COLOR)

    if reco.tags:
        tags_y = 4.2 if reco.context else 2.8
        add_text(slide, 0.5, tags_y, 8.5, 0.4, "Tags: " + " • ".join(reco.tags), 12,
                 layout.NEUTRAL_COLOR)


def add_chapter_slide(prs, reco: RecommendationResponse, chapter: Chapter, index: int,
                      total: int) -> None:
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _set_background(slide)

    add_text(slide, 0.5, 0.5, 8.5, 0.8, chapter.title or f"Chapitre {index}", 28,
             layout.TITLE_COLOR, bold=True)
    add_rect(slide, 0.5, 1.4, 8.5, 0.03, layout.accent_color(reco.category))

    content = layout.classify_content(chapter.content)
    if content.is_bulleted:
        _add_bullet_body(slide, content)
    else:
        _add_paragraph_body(slide, content.paragraphs)

    add_text(slide, 8.5, 5.2, 0.8, 0.3, f"{index} / {total}", 10, layout.MUTED_COLOR,
             align=PP_ALIGN.RIGHT)


def _add_bullet_body(slide, content: layout.ContentLayout) -> None:
    box = slide.shapes.add_textbox(
        Inches(0.5), Inches(BODY_TOP), Inches(8.5), Inches(BODY_MAX_Y + 0.5 - BODY_TOP)
    )
    tf = box.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.TOP

    first = True
    if content.lead:
        p = tf.paragraphs[0]
        run = p.add_run()
        run.text = content.lead
        _style_run(run, 14, layout.BODY_COLOR)
        first = False

    for item in content.bullets:
        p = tf.paragraphs[0] if first else tf.add_paragraph()
        first = False
        _make_bullet(p)
        p.space_after = Pt(6)
        run = p.add_run()
        run.text = item
        _style_run(run, 14, layout.BODY_COLOR)


def _add_paragraph_body(slide, paragraphs: List[str]) -> None:
    current_y = BODY_TOP
    for para in paragraphs:
        if current_y >= BODY_MAX_Y:
            logger.debug("Slide body full, %d chars dropped", len(para))
            break
        height = layout.estimate_lines(para, CHARS_PER_LINE) * LINE_HEIGHT
        add_text(slide, 0.5, current_y, 8.5, height, para, 14, layout.BODY_COLOR)
        current_y += height + PARAGRAPH_GAP


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_pptx(reco: RecommendationResponse, client_name: str, chapters: List[Chapter]) -> bytes:
    """Render the deck and return the .pptx bytes."""
    prs = Presentation()
    prs.slide_width = SLIDE_WIDTH
    prs.slide_height = SLIDE_HEIGHT
    prs.core_properties.author = settings.EXPORT_AUTHOR
    prs.core_properties.title = reco.title

    add_title_slide(prs, reco, client_name)
    for index, chapter in enumerate(chapters, start=1):
        add_chapter_slide(prs, reco, chapter, index, len(chapters))

    buffer = io.BytesIO()
    prs.save(buffer)
    logger.info("PPTX export: %r, %d slides", reco.title, len(prs.slides))
    return buffer.getvalue()
