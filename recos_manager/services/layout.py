"""
Shared layout rules for the export renderers.

Colours are the category / priority palette used across every format.
Chapter content is classified into a lead paragraph plus bullets, or plain
paragraphs, before each renderer places it at its own fixed coordinates.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

CATEGORY_COLORS = {
    "SEO": "10B981",
    "Social Media": "EC4899",
    "Content": "3B82F6",
    "Design": "8B5CF6",
    "Development": "06B6D4",
    "Strategy": "F97316",
}

PRIORITY_COLORS = {
    "High": "EF4444",
    "Medium": "F59E0B",
    "Low": "10B981",
}

NEUTRAL_COLOR = "64748B"
ACCENT_FALLBACK_COLOR = "3B82F6"
BACKGROUND_COLOR = "F8FAFC"
PANEL_COLOR = "F1F5F9"
TITLE_COLOR = "1E293B"
BODY_COLOR = "334155"
LABEL_COLOR = "475569"
MUTED_COLOR = "94A3B8"

UNSPECIFIED_CLIENT = "Client non spécifié"

_BULLET_RE = re.compile(r"^\s*[-•*]\s*")


@dataclass
class ContentLayout:
    """Chapter content classified for rendering."""

    lead: str = ""
    bullets: List[str] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)

    @property
    def is_bulleted(self) -> bool:
        return bool(self.bullets)


def category_color(category: Optional[str]) -> str:
    return CATEGORY_COLORS.get(category or "", NEUTRAL_COLOR)


def accent_color(category: Optional[str]) -> str:
    """Colour of the rule under chapter titles."""
    return CATEGORY_COLORS.get(category or "", ACCENT_FALLBACK_COLOR)


def priority_color(priority: Optional[str]) -> str:
    return PRIORITY_COLORS.get(priority or "", NEUTRAL_COLOR)


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    """'1E293B' -> (30, 41, 59)."""
    value = value.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def is_bullet_line(line: str) -> bool:
    return bool(_BULLET_RE.match(line)) and bool(_BULLET_RE.sub("", line).strip())


def classify_content(content: str) -> ContentLayout:
    """
    Split chapter content into bullets or paragraphs.

    Lines starting with "-", "•" or "*" are bullet items; a non-bullet line
    after a bullet continues that item.  Text before the first bullet is the
    lead paragraph.  Content without any bullet line becomes one paragraph
    per non-empty line.
    """
    lines = [line.rstrip() for line in (content or "").split("\n")]

    if not any(is_bullet_line(line) for line in lines):
        return ContentLayout(paragraphs=[line.strip() for line in lines if line.strip()])

    lead_lines: List[str] = []
    bullets: List[str] = []
    for line in lines:
        if not line.strip():
            continue
        if is_bullet_line(line):
            bullets.append(_BULLET_RE.sub("", line).strip())
        elif bullets:
            bullets[-1] = f"{bullets[-1]} {line.strip()}"
        else:
            lead_lines.append(line.strip())

    return ContentLayout(lead=" ".join(lead_lines), bullets=bullets)


def estimate_lines(text: str, chars_per_line: int) -> int:
    """Rough wrapped line count for a fixed-width text box."""
    if not text:
        return 0
    return max(1, -(-len(text) // chars_per_line))
