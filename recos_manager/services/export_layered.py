"""
Layered image export in the OpenRaster (.ora) format.

An .ora file is a zip archive holding one PNG per layer, a ``stack.xml``
describing their order, a flattened ``mergedimage.png`` and a thumbnail.
GIMP, Krita and MyPaint open it directly, which keeps every block of the
visual (background, header, badges, context, one layer per chapter, tags)
separately editable.  Layers are full-canvas RGBA images drawn with Pillow.

Only the first chapter layer is visible; the others are shipped hidden so a
designer can toggle through them.
"""
from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

from recos_manager.models.schemas import RecommendationResponse
from recos_manager.services import layout
from recos_manager.services.chapters import Chapter

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 1080
CANVAS_HEIGHT = 1350
MARGIN = 72
THUMBNAIL_SIZE = (256, 256)
ORA_MIMETYPE = "image/openraster"

FONT_REGULAR = "DejaVuSans.ttf"
FONT_BOLD = "DejaVuSans-Bold.ttf"

HEADER_TOP = 80
BADGE_TOP = 330
CONTEXT_TOP = 420
CONTEXT_HEIGHT = 220
CHAPTER_TOP = 680
TAGS_TOP = CANVAS_HEIGHT - 110


@dataclass
class Layer:
    """One named RGBA layer of the stack."""

    name: str
    image: Image.Image
    visible: bool = True

    @property
    def filename(self) -> str:
        return "data/" + "".join(c if c.isalnum() else "_" for c in self.name.lower()) + ".png"


def load_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    """DejaVu when installed, otherwise Pillow's bundled scalable default."""
    try:
        return ImageFont.truetype(FONT_BOLD if bold else FONT_REGULAR, size)
    except OSError:
        return ImageFont.load_default(size=size)


def _rgba(hex_value: str, alpha: int = 255):
    return layout.hex_to_rgb(hex_value) + (alpha,)


def _blank() -> Image.Image:
    return Image.new("RGBA", (CANVAS_WIDTH, CANVAS_HEIGHT), (0, 0, 0, 0))


def wrap_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: int) -> List[str]:
    """Greedy word wrap measured with the actual font."""
    lines: List[str] = []
    for raw_line in (text or "").split("\n"):
        words = raw_line.split()
        if not words:
            continue
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if draw.textlength(candidate, font=font) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


def draw_block(draw: ImageDraw.ImageDraw, x: int, y: int, text: str, font, color: str,
               max_width: int, max_bottom: int, line_gap: int = 8) -> int:
    """Draw wrapped text from (x, y) without passing *max_bottom*; returns the new y."""
    line_height = font.size + line_gap if hasattr(font, "size") else 20
    for line in wrap_text(draw, text, font, max_width):
        if y + line_height > max_bottom:
            break
        draw.text((x, y), line, font=font, fill=_rgba(color))
        y += line_height
    return y


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------

def background_layer() -> Layer:
    image = Image.new("RGBA", (CANVAS_WIDTH, CANVAS_HEIGHT), _rgba(layout.BACKGROUND_COLOR))
    return Layer("Background", image)


def header_layer(reco: RecommendationResponse, client_name: str) -> Layer:
    image = _blank()
    draw = ImageDraw.Draw(image)
    width = CANVAS_WIDTH - 2 * MARGIN
    y = draw_block(draw, MARGIN, HEADER_TOP, reco.title, load_font(56, bold=True),
                   layout.TITLE_COLOR, width, BADGE_TOP - 70)
    draw_block(draw, MARGIN, y + 16, client_name, load_font(32), layout.NEUTRAL_COLOR,
               width, BADGE_TOP - 10)
    return Layer("Header", image)


def badges_layer(reco: RecommendationResponse) -> Layer:
    image = _blank()
    draw = ImageDraw.Draw(image)
    font = load_font(26, bold=True)

    category = layout.category_color(reco.category)
    draw.rounded_rectangle((MARGIN, BADGE_TOP, MARGIN + 260, BADGE_TOP + 56), radius=28,
                           fill=_rgba(category))
    draw.text((MARGIN + 130, BADGE_TOP + 28), reco.category, font=font,
              fill=_rgba("FFFFFF"), anchor="mm")

    priority = layout.priority_color(reco.priority)
    left = MARGIN + 290
    draw.rounded_rectangle((left, BADGE_TOP, left + 260, BADGE_TOP + 56), radius=28,
                           fill=_rgba("FFFFFF"), outline=_rgba(priority), width=4)
    draw.text((left + 130, BADGE_TOP + 28), f"{reco.priority} Priority", font=font,
              fill=_rgba(priority), anchor="mm")
    return Layer("Badges", image)


def context_layer(reco: RecommendationResponse) -> Optional[Layer]:
    if not reco.context:
        return None
    image = _blank()
    draw = ImageDraw.Draw(image)
    bottom = CONTEXT_TOP + CONTEXT_HEIGHT
    draw.rounded_rectangle((MARGIN, CONTEXT_TOP, CANVAS_WIDTH - MARGIN, bottom), radius=24,
                           fill=_rgba(layout.PANEL_COLOR))
    draw.text((MARGIN + 28, CONTEXT_TOP + 24), "CONTEXTE", font=load_font(24, bold=True),
              fill=_rgba(layout.LABEL_COLOR))
    draw_block(draw, MARGIN + 28, CONTEXT_TOP + 66, reco.context, load_font(28),
               layout.BODY_COLOR, CANVAS_WIDTH - 2 * MARGIN - 56, bottom - 16)
    return Layer("Context", image)


def chapter_layer(reco: RecommendationResponse, chapter: Chapter, index: int,
                  visible: bool) -> Layer:
    image = _blank()
    draw = ImageDraw.Draw(image)
    width = CANVAS_WIDTH - 2 * MARGIN

    y = draw_block(draw, MARGIN, CHAPTER_TOP, chapter.title or f"Chapitre {index}",
                   load_font(40, bold=True), layout.TITLE_COLOR, width, TAGS_TOP - 40)
    y += 8
    draw.rectangle((MARGIN, y, CANVAS_WIDTH - MARGIN, y + 4),
                   fill=_rgba(layout.accent_color(reco.category)))
    y += 28

    body_font = load_font(28)
    content = layout.classify_content(chapter.content)
    if content.lead:
        y = draw_block(draw, MARGIN, y, content.lead, body_font, layout.BODY_COLOR,
                       width, TAGS_TOP - 20) + 12
    for item in content.bullets:
        if y + 36 > TAGS_TOP - 20:
            break
        draw.ellipse((MARGIN + 4, y + 12, MARGIN + 14, y + 22), fill=_rgba(layout.BODY_COLOR))
        y = draw_block(draw, MARGIN + 32, y, item, body_font, layout.BODY_COLOR,
                       width - 32, TAGS_TOP - 20) + 8
    for para in content.paragraphs:
        y = draw_block(draw, MARGIN, y, para, body_font, layout.BODY_COLOR,
                       width, TAGS_TOP - 20) + 12

    return Layer(f"Chapitre {index}", image, visible=visible)


def tags_layer(reco: RecommendationResponse) -> Optional[Layer]:
    if not reco.tags:
        return None
    image = _blank()
    draw = ImageDraw.Draw(image)
    draw_block(draw, MARGIN, TAGS_TOP, "Tags: " + " • ".join(reco.tags), load_font(24),
               layout.NEUTRAL_COLOR, CANVAS_WIDTH - 2 * MARGIN, CANVAS_HEIGHT - 30)
    return Layer("Tags", image)


def build_layers(reco: RecommendationResponse, client_name: str,
                 chapters: List[Chapter]) -> List[Layer]:
    """Layers bottom to top."""
    layers = [background_layer(), header_layer(reco, client_name), badges_layer(reco)]
    context = context_layer(reco)
    if context:
        layers.append(context)
    for index, chapter in enumerate(chapters, start=1):
        layers.append(chapter_layer(reco, chapter, index, visible=index == 1))
    tags = tags_layer(reco)
    if tags:
        layers.append(tags)
    return layers


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------

def _png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def stack_xml(layers: List[Layer]) -> bytes:
    """stack.xml lists layers top-most first."""
    root = ET.Element("image", {"version": "0.0.3", "w": str(CANVAS_WIDTH),
                                "h": str(CANVAS_HEIGHT)})
    stack = ET.SubElement(root, "stack")
    for layer in reversed(layers):
        ET.SubElement(stack, "layer", {
            "name": layer.name,
            "src": layer.filename,
            "x": "0",
            "y": "0",
            "opacity": "1.0",
            "visibility": "visible" if layer.visible else "hidden",
        })
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def merge_layers(layers: List[Layer]) -> Image.Image:
    merged = _blank()
    for layer in layers:
        if layer.visible:
            merged = Image.alpha_composite(merged, layer.image)
    return merged


def build_ora(reco: RecommendationResponse, client_name: str, chapters: List[Chapter]) -> bytes:
    """Render the layer stack and return the .ora archive bytes."""
    layers = build_layers(reco, client_name, chapters)
    merged = merge_layers(layers)
    thumbnail = merged.copy()
    thumbnail.thumbnail(THUMBNAIL_SIZE)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        # mimetype must be the first entry and stored uncompressed
        archive.writestr("mimetype", ORA_MIMETYPE, compress_type=zipfile.ZIP_STORED)
        archive.writestr("stack.xml", stack_xml(layers), compress_type=zipfile.ZIP_DEFLATED)
        for layer in layers:
            archive.writestr(layer.filename, _png(layer.image), compress_type=zipfile.ZIP_DEFLATED)
        archive.writestr("mergedimage.png", _png(merged), compress_type=zipfile.ZIP_DEFLATED)
        archive.writestr("Thumbnails/thumbnail.png", _png(thumbnail),
                         compress_type=zipfile.ZIP_DEFLATED)

    logger.info("ORA export: %r, %d layers", reco.title, len(layers))
    return buffer.getvalue()
